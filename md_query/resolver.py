"""Range resolution for parsed selectors."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from .constants import TABLE_HEADER_SEPARATOR
from .models import (
    Index,
    IndexedRange,
    MatchedRange,
    QuerySegment,
    SelectorKind,
    Slice,
    Token,
    TokenKind,
)

LOGGER = logging.getLogger(__name__)


def comparison_text(token: Token) -> str:
    """Return the text a matcher compares against for `token`.

    Tables compare against their header cells joined with ``", "``; lists,
    rules and blank space have no comparable text.
    """
    if token.kind in (
        TokenKind.HEADING,
        TokenKind.PARAGRAPH,
        TokenKind.CODE,
        TokenKind.BLOCKQUOTE,
        TokenKind.LIST_ITEM,
    ):
        return token.text
    if token.kind is TokenKind.TABLE:
        return TABLE_HEADER_SEPARATOR.join(token.header)
    return ""


def apply_position(ranges: list[IndexedRange], position: Index | Slice | None) -> list[IndexedRange]:
    """Narrow `ranges` to a single index or a slice.

    Out-of-range indexes yield an empty list rather than an error.

    Examples:
        apply_position(ranges, Index(-1))  # last range only
        apply_position(ranges, Slice(None, 2))  # first two ranges
    """
    if position is None:
        return ranges

    if isinstance(position, Index):
        index = position.value + len(ranges) if position.value < 0 else position.value
        return [ranges[index]] if 0 <= index < len(ranges) else []

    return ranges[position.start : position.stop]


def _filter_text(ranges: list[IndexedRange], segment: QuerySegment) -> list[IndexedRange]:
    if segment.text_matcher is None:
        return ranges
    return [r for r in ranges if segment.text_matcher.matches(comparison_text(r.token))]


def compute_sections(candidates: Sequence[IndexedRange], segment: QuerySegment) -> list[MatchedRange]:
    """Open one section per heading accepted by `segment`.

    A section runs from its heading up to, but not including, the next heading
    of the same or a shallower depth among `candidates`. Everything in between
    becomes the section's ``inner_ranges``.
    """
    depth_filter = segment.selector.depth
    sections = []

    for position, candidate in enumerate(candidates):
        heading = candidate.token
        if heading.kind is not TokenKind.HEADING:
            continue
        if depth_filter is not None and heading.depth != depth_filter:
            continue
        if segment.text_matcher is not None and not segment.text_matcher.matches(heading.text):
            continue

        inner_ranges = []
        end = candidate.end
        for following in candidates[position + 1 :]:
            token = following.token
            if token.kind is TokenKind.HEADING and token.depth <= heading.depth:
                break
            inner_ranges.append(following)
            end = following.end

        sections.append(
            MatchedRange(
                token=heading,
                start=candidate.start,
                length=end - candidate.start,
                inner_ranges=tuple(inner_ranges),
            )
        )

    return sections


def extract_list_items(candidates: Sequence[IndexedRange]) -> list[IndexedRange]:
    """Locate the items of every list among `candidates`.

    Items are found by scanning the list's raw text with a cursor that moves
    past each located item, so identical items resolve to distinct offsets.
    """
    items = []

    for candidate in candidates:
        if candidate.token.kind is not TokenKind.LIST:
            continue

        list_raw = candidate.token.raw
        cursor = 0
        for item in candidate.token.items:
            found = list_raw.find(item.raw, cursor)
            if found == -1:
                continue
            items.append(IndexedRange(item, candidate.start + found, len(item.raw)))
            cursor = found + len(item.raw)

    return items


def expand_sections(matches: Sequence[IndexedRange]) -> list[IndexedRange]:
    """Flatten section matches back into sibling ranges.

    Each section becomes its heading (restricted to the heading's own raw
    length) followed by its inner ranges. Other ranges pass through.
    """
    expanded = []
    for match in matches:
        if not isinstance(match, MatchedRange) or match.inner_ranges is None:
            expanded.append(match)
            continue
        expanded.append(IndexedRange(match.token, match.start, len(match.token.raw)))
        expanded.extend(match.inner_ranges)
    return expanded


def resolve(candidates: Sequence[IndexedRange], segments: Sequence[QuerySegment]) -> list[IndexedRange]:
    """Resolve a chain of segments against candidate ranges.

    Section stages scope every following stage to each section on its own, so
    ``section2 paragraph[0]`` yields the first paragraph of every second-level
    section rather than one paragraph overall.

    Args:
        candidates: Ranges to select from, in document order.
        segments: Parsed selector stages.

    Returns:
        list[IndexedRange]: Matching ranges in discovery order. Section matches
            are `MatchedRange` instances carrying their inner ranges.
    """
    if not segments:
        return list(candidates)

    segment, remaining = segments[0], segments[1:]
    selector = segment.selector

    if selector is None:
        LOGGER.debug("Unknown selector %r matches nothing", segment.name)
        return []

    if selector.is_section:
        sections = apply_position(compute_sections(candidates, segment), segment.position)
        LOGGER.debug("Segment %r opened %d sections", segment.name, len(sections))
        if not remaining:
            return sections

        results = []
        for section in sections:
            results.extend(resolve(section.inner_ranges, remaining))
        return results

    if selector is SelectorKind.ITEM:
        matches = _filter_text(extract_list_items(candidates), segment)
    else:
        token_kind = selector.token_kind
        matches = [r for r in candidates if r.token.kind is token_kind]
        if selector.depth is not None:
            matches = [r for r in matches if r.token.depth == selector.depth]
        matches = _filter_text(matches, segment)

    matches = apply_position(matches, segment.position)
    LOGGER.debug("Segment %r matched %d ranges", segment.name, len(matches))
    return resolve(matches, remaining)
