from __future__ import annotations

import string

from hypothesis import assume, given
from hypothesis import strategies as st

from md_query import mdq
from md_query.constants import CLOSING_FENCE_MAX_INDENT
from md_query.lexer import _try_close_fence, _try_open_fence, build_token_index, lex_blocks
from md_query.models import ParserContext, ParserState

title_strategy = st.text(
    alphabet=string.ascii_letters + string.digits + " _-",
    min_size=1,
    max_size=32,
)
word_strategy = st.text(alphabet=string.ascii_letters, min_size=1, max_size=8)
headings_strategy = st.lists(
    st.tuples(st.integers(min_value=1, max_value=6), title_strategy), min_size=1, max_size=20
)


def _heading_document(data) -> str:
    return "\n\n".join(f"{'#' * level} {title}" for level, title in data) + "\n"


@given(st.text())
def test_lexed_tokens_reassemble_any_input(content: str):
    assert "".join(token.raw for token in lex_blocks(content)) == content


@given(st.text(max_size=300))
def test_token_index_covers_document_without_gaps(content: str):
    offset = 0
    for indexed in build_token_index(content):
        assert indexed.start == offset
        assert indexed.length > 0
        offset = indexed.end

    assert offset == len(content)


@given(headings_strategy, st.integers(min_value=1, max_value=6))
def test_depth_selector_counts_headings_of_that_depth(data, depth: int):
    doc = mdq(_heading_document(data))

    assert doc.query(f"h{depth}").count() == sum(1 for level, _ in data if level == depth)
    assert doc.query("heading").count() == len(data)


@given(headings_strategy, word_strategy)
def test_negated_matcher_complements_plain_matcher(data, value: str):
    doc = mdq(_heading_document(data))

    matched = doc.query(f'h2(~"{value}")').count()
    unmatched = doc.query(f'h2(!~"{value}")').count()

    assert matched + unmatched == doc.query("h2").count()


@given(headings_strategy)
def test_every_heading_starts_exactly_one_section(data):
    doc = mdq(_heading_document(data))

    sections = doc.query("section")
    assert sections.count() == len(data)
    assert sections.each()[0].text().startswith("#")


@given(st.text(max_size=300), st.sampled_from(["heading", "section", "paragraph", "item", "list"]))
def test_queries_are_deterministic(content: str, selector: str):
    first = mdq(content).query(selector)
    second = mdq(content).query(selector)

    assert first.text() == second.text()
    assert [(m.start, m.length) for m in first.matches] == [
        (m.start, m.length) for m in second.matches
    ]


@given(st.text(max_size=300), st.text(max_size=20))
def test_replace_without_matches_returns_source(content: str, replacement: str):
    assert mdq(content).query("widget").replace(replacement) == content


@given(st.text(max_size=300))
def test_replacing_matches_with_their_own_text_is_identity(content: str):
    result = mdq(content).query("paragraph").first()

    assert result.replace(result.text()) == content


@given(st.data())
def test_table_rows_map_to_header_cells(data):
    headers = data.draw(st.lists(word_strategy, min_size=1, max_size=5, unique=True))
    cell = st.text(alphabet=string.ascii_letters + string.digits, min_size=1, max_size=8)
    rows = data.draw(
        st.lists(st.lists(cell, min_size=len(headers), max_size=len(headers)), max_size=6)
    )

    lines = [
        "| " + " | ".join(headers) + " |",
        "|" + "|".join("---" for _ in headers) + "|",
    ]
    lines.extend("| " + " | ".join(row) + " |" for row in rows)
    markdown = "\n".join(lines) + "\n"

    assert mdq(markdown).query("table").to_json() == [dict(zip(headers, row)) for row in rows]


@given(
    st.integers(min_value=0, max_value=3),
    st.sampled_from(["`", "~"]),
    st.integers(min_value=3, max_value=10),
    st.integers(min_value=0, max_value=3),
)
def test_parser_context_resets_after_fence_cycle(
    indent_columns: int, fence_char: str, fence_length: int, additional_indent: int
):
    ctx = ParserContext()

    open_line = f"{' ' * indent_columns}{fence_char * fence_length}"
    close_line = f"{' ' * (indent_columns + additional_indent)}{fence_char * (fence_length + 1)}"
    assume(indent_columns + additional_indent <= CLOSING_FENCE_MAX_INDENT)

    assert _try_open_fence(ctx, open_line) is True
    assert ctx.state is ParserState.IN_FENCED_CODE

    assert _try_close_fence(ctx, close_line) is True
    assert ctx.state is ParserState.NORMAL
    assert ctx.fence_char is None
    assert ctx.fence_length == 0
    assert ctx.fence_indent_columns == 0


@given(st.text(alphabet=string.ascii_letters + " \n#>-*|`", max_size=200))
def test_fenced_code_never_yields_headings_inside(content: str):
    markdown = f"```\n{content.replace('`', '')}\n```\n"

    assert mdq(markdown).query("heading").count() == 0
