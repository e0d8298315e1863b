from __future__ import annotations

import pytest

from md_query.exceptions import PatternError
from md_query.models import Index, MatchMode, SelectorKind, Slice, TextMatcher
from md_query.selector import parse_query


def test_parses_simple_selector():
    segments = parse_query("heading")

    assert len(segments) == 1
    assert segments[0].name == "heading"
    assert segments[0].selector is SelectorKind.HEADING
    assert segments[0].text_matcher is None
    assert segments[0].position is None


@pytest.mark.parametrize(
    ("selector", "kind"),
    [
        ("h3", SelectorKind.H3),
        ("section", SelectorKind.SECTION),
        ("section6", SelectorKind.SECTION6),
        ("item", SelectorKind.ITEM),
        ("hr", SelectorKind.HR),
    ],
)
def test_parses_selector_words(selector: str, kind: SelectorKind):
    assert parse_query(selector)[0].selector is kind


@pytest.mark.parametrize(
    ("selector", "mode", "value", "negated"),
    [
        ('section("API")', MatchMode.EXACT, "API", False),
        ("section('API')", MatchMode.EXACT, "API", False),
        ('section(~"Settings")', MatchMode.CONTAINS, "Settings", False),
        ("heading(/api/)", MatchMode.REGEX, "api", False),
        ("section(/^api$/i)", MatchMode.REGEX, "^api$", False),
        ("section(/^api$/gimsuy)", MatchMode.REGEX, "^api$", False),
        ('section(!"API")', MatchMode.EXACT, "API", True),
        ('section(!~"Set")', MatchMode.CONTAINS, "Set", True),
        ("heading(!/api/)", MatchMode.REGEX, "api", True),
    ],
)
def test_parses_text_matchers(selector: str, mode: MatchMode, value: str, negated: bool):
    matcher = parse_query(selector)[0].text_matcher

    assert matcher == TextMatcher(mode, value, negated)


def test_section_depth_with_matcher():
    segment = parse_query('section3(~"Auth")')[0]

    assert segment.selector is SelectorKind.SECTION3
    assert segment.selector.depth == 3
    assert segment.text_matcher == TextMatcher(MatchMode.CONTAINS, "Auth")


def test_quoted_values_support_escapes():
    matcher = parse_query(r'heading("say \"hi\"")')[0].text_matcher

    assert matcher.value == 'say "hi"'


def test_quoted_value_may_contain_delimiters():
    segments = parse_query('paragraph("a ) [0] b") code')

    assert segments[0].text_matcher.value == "a ) [0] b"
    assert segments[0].position is None
    assert segments[1].selector is SelectorKind.CODE


def test_unquoted_matcher_reads_up_to_closing_paren():
    matcher = parse_query("heading( API )")[0].text_matcher

    assert matcher == TextMatcher(MatchMode.EXACT, "API")


def test_unterminated_quote_runs_to_end():
    segments = parse_query('heading("API')

    assert len(segments) == 1
    assert segments[0].text_matcher.value == "API"


@pytest.mark.parametrize(
    ("selector", "position"),
    [
        ("table[0]", Index(0)),
        ("table[-1]", Index(-1)),
        ("table[+2]", Index(2)),
        ("heading[1:3]", Slice(1, 3)),
        ("heading[:2]", Slice(None, 2)),
        ("heading[2:]", Slice(2, None)),
        ("heading[-3:-1]", Slice(-3, -1)),
        ("heading[:]", Slice(None, None)),
    ],
)
def test_parses_positions(selector: str, position):
    assert parse_query(selector)[0].position == position


@pytest.mark.parametrize("selector", ["table[]", "table[abc]", "table[1:2:3]", "table[-]"])
def test_unrecognised_brackets_are_ignored(selector: str):
    segments = parse_query(selector)

    assert len(segments) == 1
    assert segments[0].position is None


def test_last_recognised_bracket_wins():
    assert parse_query("table[0][1]")[0].position == Index(1)
    assert parse_query("table[0][x]")[0].position == Index(0)
    assert parse_query("table[0][1:]")[0].position == Slice(1, None)


def test_matcher_and_position_together():
    segment = parse_query('h2(!"FAQ")[-1]')[0]

    assert segment.text_matcher == TextMatcher(MatchMode.EXACT, "FAQ", negated=True)
    assert segment.position == Index(-1)


def test_parses_compound_query():
    segments = parse_query('section("API") table[0]')

    assert [segment.name for segment in segments] == ["section", "table"]
    assert segments[0].text_matcher.value == "API"
    assert segments[1].position == Index(0)


def test_segments_split_on_any_whitespace():
    segments = parse_query("  section2\t\n paragraph[0]  ")

    assert [segment.selector for segment in segments] == [
        SelectorKind.SECTION2,
        SelectorKind.PARAGRAPH,
    ]


def test_characters_that_cannot_start_a_word_are_skipped():
    segments = parse_query(", > h2 ~ !code")

    assert [segment.name for segment in segments] == ["h2", "code"]


def test_unknown_words_are_kept_without_kind():
    segments = parse_query("widget h2 H2")

    assert [segment.name for segment in segments] == ["widget", "h2", "H2"]
    assert segments[0].selector is None
    assert segments[2].selector is None


@pytest.mark.parametrize("selector", ["", "   ", "!!!"])
def test_empty_selectors_parse_to_nothing(selector: str):
    assert parse_query(selector) == []


def test_invalid_regex_raises_pattern_error():
    with pytest.raises(PatternError) as exc_info:
        parse_query("heading(/(unbalanced/)")

    assert exc_info.value.pattern == "(unbalanced"
    assert "Invalid regular expression" in str(exc_info.value)
