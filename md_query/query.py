"""Query results over a Markdown document."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from .lexer import build_token_index
from .models import IndexedRange, TokenKind
from .resolver import expand_sections, resolve
from .selector import parse_query

LOGGER = logging.getLogger(__name__)


class MarkdownQuery:
    """A set of matched ranges over an immutable Markdown document.

    Every navigation or query call returns a new `MarkdownQuery` bound to the
    same source; `replace` returns a new string. Neither the source nor any
    existing result is ever modified.

    Args:
        source: Markdown document text.
        matches: Current matches. Defaults to every block token of `source`.

    Examples:
        doc = MarkdownQuery(markdown)
        doc.query('section("API") table[0]').to_json()
        doc.query("h2").each()
    """

    def __init__(self, source: str, matches: Sequence[IndexedRange] | None = None):
        self._source = source
        self._matches = tuple(build_token_index(source) if matches is None else matches)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(matches={len(self._matches)})"

    def __len__(self) -> int:
        return len(self._matches)

    @property
    def source(self) -> str:
        return self._source

    @property
    def matches(self) -> tuple[IndexedRange, ...]:
        return self._matches

    def _derive(self, matches: Sequence[IndexedRange]) -> MarkdownQuery:
        return type(self)(self._source, matches)

    def query(self, selector: str) -> MarkdownQuery:
        """Run `selector` against the current matches.

        Section matches from an earlier call are flattened first, so their
        headings and contents are matched as siblings.

        Raises:
            PatternError: If the selector contains an invalid regex matcher.
        """
        segments = parse_query(selector)
        results = resolve(expand_sections(self._matches), segments)
        LOGGER.debug("Query %r produced %d matches", selector, len(results))
        return self._derive(results)

    def text(self) -> str:
        """Concatenate the source text of every match, in match order."""
        return "".join(self._source[match.start : match.end] for match in self._matches)

    def get(self) -> str:
        return self.text()

    def to_json(self) -> list[dict[str, str]]:
        """Convert matched tables into row mappings keyed by header text.

        Cells missing from a row map to ``""``. Non-table matches contribute
        nothing.

        Examples:
            MarkdownQuery("| A | B |\\n|---|---|\\n| 1 | 2 |\\n").query("table").to_json()
            # [{"A": "1", "B": "2"}]
        """
        records = []
        for match in self._matches:
            token = match.token
            if token.kind is not TokenKind.TABLE:
                continue
            for row in token.rows:
                records.append(
                    {
                        name: row[column] if column < len(row) else ""
                        for column, name in enumerate(token.header)
                    }
                )
        return records

    def count(self) -> int:
        return len(self._matches)

    def first(self) -> MarkdownQuery:
        return self._derive(self._matches[:1])

    def last(self) -> MarkdownQuery:
        return self._derive(self._matches[-1:])

    def each(self) -> list[MarkdownQuery]:
        """Split the matches into one result per match."""
        return [self._derive([match]) for match in self._matches]

    def before(self) -> MarkdownQuery:
        """Select every block token ending at or before the first match.

        Tokens come from a fresh index of the whole document, regardless of
        how the current matches were scoped.
        """
        if not self._matches:
            return self._derive([])
        cutoff = self._matches[0].start
        return self._derive([r for r in build_token_index(self._source) if r.end <= cutoff])

    def after(self) -> MarkdownQuery:
        """Select every block token starting at or after the end of the last match."""
        if not self._matches:
            return self._derive([])
        cutoff = self._matches[-1].end
        return self._derive([r for r in build_token_index(self._source) if r.start >= cutoff])

    def replace(self, content: str) -> str:
        """Return the source with every match replaced by `content`.

        Matches are applied in document order; a match that starts inside an
        already kept match is dropped, so an enclosing section is replaced once
        rather than together with its own descendants.

        Args:
            content: Literal replacement text.

        Returns:
            str: The rewritten document. The source is returned unchanged when
                there are no matches.
        """
        kept = []
        last_end = -1
        for match in sorted(self._matches, key=lambda m: m.start):
            if match.start < last_end:
                continue
            kept.append(match)
            last_end = match.end

        parts = []
        cursor = 0
        for match in kept:
            parts.append(self._source[cursor : match.start])
            parts.append(content)
            cursor = match.end
        parts.append(self._source[cursor:])

        LOGGER.debug("Replaced %d of %d matches", len(kept), len(self._matches))
        return "".join(parts)


def mdq(source: str) -> MarkdownQuery:
    """Start a query over `source`.

    Examples:
        mdq(markdown).query('section("Settings") item[0]').text()
    """
    return MarkdownQuery(source)
