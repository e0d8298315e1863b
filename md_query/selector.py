"""Selector parsing.

A selector is a whitespace-separated chain of segments::

    section2("API") table[0]
    heading(!~"draft")[1:3]
    item(/^step/i)[-1]

Each segment is a selector word, an optional text matcher in parentheses and
any number of bracket filters. Parsing is permissive: characters that cannot
start a selector word are skipped and unrecognised bracket bodies are ignored.
"""

from __future__ import annotations

from .constants import (
    IDENTIFIER_CHARS,
    INDEX_PATTERN,
    QUOTE_CHARS,
    REGEX_FLAG_CHARS,
    SLICE_PATTERN,
)
from .models import Index, MatchMode, QuerySegment, SelectorKind, Slice, TextMatcher

_SELECTOR_WORDS = {kind.value: kind for kind in SelectorKind}


class _Reader:
    """Character cursor over a selector string."""

    def __init__(self, text: str):
        self.text = text
        self.pos = 0

    def at_end(self) -> bool:
        return self.pos >= len(self.text)

    def peek(self) -> str:
        return "" if self.at_end() else self.text[self.pos]

    def advance(self) -> str:
        character = self.peek()
        self.pos += 1
        return character

    def skip_whitespace(self):
        while not self.at_end() and self.text[self.pos].isspace():
            self.pos += 1

    def read_while(self, accepted) -> str:
        start = self.pos
        while not self.at_end() and self.text[self.pos] in accepted:
            self.pos += 1
        return self.text[start : self.pos]

    def read_until(self, stop: str) -> str:
        """Read up to (not including) `stop` or the end of input."""
        start = self.pos
        while not self.at_end() and self.text[self.pos] != stop:
            self.pos += 1
        return self.text[start : self.pos]

    def read_quoted(self) -> str:
        r"""Read a quoted string; the opening quote is the current character.

        A backslash takes the next character literally, so ``\"`` embeds the
        quote. An unterminated string runs to the end of input.
        """
        quote = self.advance()
        characters = []
        while not self.at_end() and self.peek() != quote:
            character = self.advance()
            if character == "\\":
                character = self.advance()
            characters.append(character)
        if not self.at_end():
            self.advance()
        return "".join(characters)


def _parse_text_matcher(reader: _Reader) -> TextMatcher:
    negated = False
    if reader.peek() == "!":
        negated = True
        reader.advance()

    if reader.peek() == "~":
        reader.advance()
        return TextMatcher(MatchMode.CONTAINS, _read_value(reader), negated)

    if reader.peek() == "/":
        reader.advance()
        pattern = reader.read_until("/")
        if not reader.at_end():
            reader.advance()
        # Flags are accepted for familiarity; matching is always case-insensitive
        reader.read_while(REGEX_FLAG_CHARS)
        return TextMatcher(MatchMode.REGEX, pattern, negated)

    return TextMatcher(MatchMode.EXACT, _read_value(reader), negated)


def _read_value(reader: _Reader) -> str:
    if reader.peek() in QUOTE_CHARS:
        return reader.read_quoted()
    return reader.read_until(")").strip()


def _parse_position(body: str) -> Index | Slice | None:
    if INDEX_PATTERN.match(body):
        return Index(int(body))

    slice_match = SLICE_PATTERN.match(body)
    if slice_match:
        start, stop = slice_match.group("start"), slice_match.group("stop")
        return Slice(
            int(start) if start is not None else None,
            int(stop) if stop is not None else None,
        )

    return None


def _parse_segment(reader: _Reader, name: str) -> QuerySegment:
    text_matcher = None
    if reader.peek() == "(":
        reader.advance()
        text_matcher = _parse_text_matcher(reader)
        if reader.peek() == ")":
            reader.advance()

    position = None
    while reader.peek() == "[":
        reader.advance()
        parsed = _parse_position(reader.read_until("]"))
        if parsed is not None:
            position = parsed
        if reader.peek() == "]":
            reader.advance()

    return QuerySegment(
        name=name,
        selector=_SELECTOR_WORDS.get(name),
        text_matcher=text_matcher,
        position=position,
    )


def parse_query(selector: str) -> list[QuerySegment]:
    """Parse a selector string into query segments.

    Args:
        selector: Selector text such as ``'section("API") table[0]'``.

    Returns:
        list[QuerySegment]: One segment per stage, in order. Unknown selector
            words are kept with ``selector=None`` so they match nothing.

    Raises:
        PatternError: If a regex matcher does not compile.

    Examples:
        parse_query("h2")
        parse_query('section3(~"Auth") code[-1]')
    """
    reader = _Reader(selector)
    segments = []

    while not reader.at_end():
        reader.skip_whitespace()
        if reader.at_end():
            break

        name = reader.read_while(IDENTIFIER_CHARS)
        if not name:
            reader.advance()
            continue

        segments.append(_parse_segment(reader, name))

    return segments
