"""Data models for md-query."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum, auto

from .exceptions import PatternError


class ParserState(Enum):
    """Lexer states used while scanning Markdown content.

    Attributes:
        NORMAL: Default state for regular text.
        IN_FENCED_CODE: Inside a fenced code block.
    """

    NORMAL = auto()
    IN_FENCED_CODE = auto()


@dataclass
class ParserContext:
    """Encapsulate fence state while walking Markdown text.

    Attributes:
        state: Current lexer state.
        fence_char: Fence character that opened a fenced code block, if any.
        fence_length: Number of fence characters that opened the block.
        fence_indent_columns: Indentation width preceding the opening fence.
    """

    state: ParserState = ParserState.NORMAL
    fence_char: str | None = None
    fence_length: int = 0
    fence_indent_columns: int = 0


class TokenKind(str, Enum):
    """Block token kinds produced by the lexer.

    ``LIST_ITEM`` tokens only appear inside a list token's ``items``;
    ``SPACE`` covers blank lines so the token stream has no gaps.
    """

    HEADING = "heading"
    PARAGRAPH = "paragraph"
    TABLE = "table"
    CODE = "code"
    LIST = "list"
    LIST_ITEM = "list_item"
    BLOCKQUOTE = "blockquote"
    HR = "hr"
    SPACE = "space"


@dataclass(frozen=True)
class Token:
    """One lexical block.

    Attributes:
        kind: Block kind.
        raw: Verbatim source text that produced the token.
        text: Plain rendered text; its meaning depends on `kind`.
        depth: Heading level (1-6), None for other kinds.
        header: Table header cell texts.
        rows: Table body rows, each truncated to the header width.
        align: Table column alignments (``"left"``, ``"center"``, ``"right"`` or None).
        items: List items; each item's `raw` is a substring of the list's `raw`.
        ordered: Whether a list uses numbered markers.
        start: First number of an ordered list.
        lang: Info word of a fenced code block.
        checked: Task-list state of a list item, None when not a task item.
    """

    kind: TokenKind
    raw: str
    text: str = ""
    depth: int | None = None
    header: tuple[str, ...] = ()
    rows: tuple[tuple[str, ...], ...] = ()
    align: tuple[str | None, ...] = ()
    items: tuple[Token, ...] = ()
    ordered: bool = False
    start: int | None = None
    lang: str | None = None
    checked: bool | None = None


@dataclass(frozen=True)
class IndexedRange:
    """A token located in the source document.

    Attributes:
        token: The located token.
        start: Zero-based character offset of the token's span.
        length: Number of characters in the span.
    """

    token: Token
    start: int
    length: int

    @property
    def end(self) -> int:
        return self.start + self.length


@dataclass(frozen=True)
class MatchedRange(IndexedRange):
    """A range produced by the resolver.

    Section matches span from their heading to the end of the section and list
    the ranges they own in `inner_ranges`; other matches leave it None.
    """

    inner_ranges: tuple[IndexedRange, ...] | None = None


class SelectorKind(str, Enum):
    """Selector words understood by the query language."""

    HEADING = "heading"
    H1 = "h1"
    H2 = "h2"
    H3 = "h3"
    H4 = "h4"
    H5 = "h5"
    H6 = "h6"
    PARAGRAPH = "paragraph"
    TABLE = "table"
    CODE = "code"
    LIST = "list"
    BLOCKQUOTE = "blockquote"
    HR = "hr"
    ITEM = "item"
    SECTION = "section"
    SECTION1 = "section1"
    SECTION2 = "section2"
    SECTION3 = "section3"
    SECTION4 = "section4"
    SECTION5 = "section5"
    SECTION6 = "section6"

    @property
    def is_section(self) -> bool:
        return self.value.startswith("section")

    @property
    def depth(self) -> int | None:
        """Heading depth fixed by ``h1``..``h6`` and ``section1``..``section6``."""
        if self.value[-1].isdigit():
            return int(self.value[-1])
        return None

    @property
    def token_kind(self) -> TokenKind:
        if self.depth is not None or self is SelectorKind.SECTION:
            return TokenKind.HEADING
        return _SELECTOR_TOKEN_KINDS[self]


_SELECTOR_TOKEN_KINDS = {
    SelectorKind.HEADING: TokenKind.HEADING,
    SelectorKind.PARAGRAPH: TokenKind.PARAGRAPH,
    SelectorKind.TABLE: TokenKind.TABLE,
    SelectorKind.CODE: TokenKind.CODE,
    SelectorKind.LIST: TokenKind.LIST,
    SelectorKind.BLOCKQUOTE: TokenKind.BLOCKQUOTE,
    SelectorKind.HR: TokenKind.HR,
    SelectorKind.ITEM: TokenKind.LIST_ITEM,
}


class MatchMode(str, Enum):
    """How a text matcher compares its value."""

    EXACT = "exact"
    CONTAINS = "contains"
    REGEX = "regex"


@dataclass(frozen=True)
class TextMatcher:
    """Text predicate attached to a selector segment.

    Regex matchers are compiled on construction and always evaluated
    case-insensitively, whatever flags were written in the selector.

    Attributes:
        mode: Comparison mode.
        value: Literal text or regular expression source.
        negated: Invert the comparison result.

    Raises:
        PatternError: If `mode` is regex and `value` does not compile.

    Examples:
        TextMatcher(MatchMode.CONTAINS, "Auth").matches("Authentication")  # True
        TextMatcher(MatchMode.EXACT, "API", negated=True).matches("API")  # False
    """

    mode: MatchMode
    value: str
    negated: bool = False
    pattern: re.Pattern[str] | None = field(default=None, compare=False, repr=False)

    def __post_init__(self):
        if self.mode is not MatchMode.REGEX:
            return
        try:
            compiled = re.compile(self.value, re.IGNORECASE)
        except re.error as error:
            raise PatternError(self.value, str(error)) from error
        object.__setattr__(self, "pattern", compiled)

    def matches(self, text: str) -> bool:
        if self.mode is MatchMode.EXACT:
            result = text == self.value
        elif self.mode is MatchMode.CONTAINS:
            result = self.value in text
        else:
            result = self.pattern.search(text) is not None
        return not result if self.negated else result


@dataclass(frozen=True)
class Index:
    """Single-position filter; negative values count from the end."""

    value: int


@dataclass(frozen=True)
class Slice:
    """Half-open range filter with Python slice semantics."""

    start: int | None = None
    stop: int | None = None


@dataclass(frozen=True)
class QuerySegment:
    """One whitespace-separated stage of a selector.

    Attributes:
        name: Selector word as written.
        selector: Parsed selector kind, None when `name` is not a known word.
        text_matcher: Optional text predicate.
        position: Optional index or slice, applied after text matching.
    """

    name: str
    selector: SelectorKind | None
    text_matcher: TextMatcher | None = None
    position: Index | Slice | None = None
