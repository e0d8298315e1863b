"""Block-level Markdown lexer and token index.

The lexer splits a document into block tokens whose ``raw`` spans concatenate
back to the exact input. It never raises: anything it does not recognise is
emitted as a paragraph.
"""

from __future__ import annotations

import logging
import re

from .constants import (
    ATX_CLOSING_SEQUENCE,
    ATX_HEADING_PATTERN,
    BLOCKQUOTE_PATTERN,
    CLOSING_FENCE_MAX_INDENT,
    CODE_FENCE_PATTERN,
    INDENTED_CODE_COLUMNS,
    LINE_PATTERN,
    LIST_MARKER_PATTERN,
    SETEXT_UNDERLINE_PATTERN,
    TABLE_DELIMITER_CELL_PATTERN,
    TASK_CHECKBOX_PATTERN,
    THEMATIC_BREAK_PATTERN,
)
from .models import IndexedRange, ParserContext, ParserState, Token, TokenKind

LOGGER = logging.getLogger(__name__)


def is_escaped(text: str, pos: int) -> bool:
    """Determine whether a character is escaped by preceding backslashes.

    Counts consecutive backslashes immediately before `pos`; an odd count marks
    the character as escaped.

    Args:
        text: Text containing the character.
        pos: Zero-based index of the character to inspect.

    Returns:
        bool: True when the character is escaped, otherwise False.

    Examples:
        is_escaped("\\\\|", 2)  # False, two backslashes
        is_escaped("\\|", 1)  # True, one backslash
    """
    if pos == 0:
        return False

    backslash_count = 0
    i = pos - 1
    while i >= 0 and text[i] == "\\":
        backslash_count += 1
        i -= 1

    return backslash_count % 2 == 1


def _line_content(line: str) -> str:
    """Return a line without its terminator."""
    return line.rstrip("\r\n")


def _is_blank(line: str) -> bool:
    return not _line_content(line).strip()


def _leading_whitespace_columns(line: str) -> int:
    """Compute the column width of leading whitespace.

    Tabs advance to the next multiple of four columns to match Markdown
    indentation rules.

    Args:
        line: Line whose leading whitespace should be measured.

    Returns:
        int: Number of columns occupied by the leading whitespace.

    Examples:
        _leading_whitespace_columns("    text")  # 4
        _leading_whitespace_columns("\\ttext")  # 4
    """
    columns = 0
    for character in line:
        if character == " ":
            columns += 1
            continue
        if character == "\t":
            columns += 4 - (columns % 4)
            continue
        break
    return columns


def _strip_columns(line: str, columns: int) -> str:
    """Remove up to `columns` columns of leading whitespace."""
    consumed = 0
    index = 0
    while index < len(line) and consumed < columns:
        character = line[index]
        if character == " ":
            consumed += 1
        elif character == "\t":
            consumed += 4 - (consumed % 4)
        else:
            break
        index += 1
    return line[index:]


def _try_open_fence(ctx: ParserContext, line: str) -> bool:
    """Detect the start of a fenced code block.

    Args:
        ctx: Parser context to update when a fence opens.
        line: Current line being scanned, without its terminator.

    Returns:
        bool: True when the line begins a fence and the context is updated.

    Examples:
        _try_open_fence(ParserContext(), "```python")  # True
    """
    if ctx.state is not ParserState.NORMAL:
        return False

    fence_match = CODE_FENCE_PATTERN.match(line)
    if not fence_match:
        return False

    indent_prefix = fence_match.group("indent") or ""
    indent_columns = _leading_whitespace_columns(indent_prefix)
    if indent_columns > CLOSING_FENCE_MAX_INDENT:
        return False

    fence_sequence = fence_match.group("fence")
    # Backtick fences cannot carry backticks in their info string
    if fence_sequence[0] == "`" and "`" in fence_match.group("info"):
        return False

    ctx.state = ParserState.IN_FENCED_CODE
    ctx.fence_char = fence_sequence[0]
    ctx.fence_length = len(fence_sequence)
    ctx.fence_indent_columns = indent_columns
    return True


def _try_close_fence(ctx: ParserContext, line: str) -> bool:
    """Attempt to close the active fenced code block.

    Args:
        ctx: Parser context describing the active fence.
        line: Current line being scanned.

    Returns:
        bool: True when the line closes the fence; otherwise False.

    Examples:
        ctx = ParserContext(state=ParserState.IN_FENCED_CODE, fence_char="`", fence_length=3)
        _try_close_fence(ctx, "```")
    """
    if ctx.state is not ParserState.IN_FENCED_CODE or ctx.fence_char is None:
        return False

    indent_columns = _leading_whitespace_columns(line)
    stripped_line = line.lstrip(" \t")
    if not stripped_line or stripped_line[0] != ctx.fence_char:
        return False

    fence_run_length = len(stripped_line) - len(stripped_line.lstrip(ctx.fence_char))
    if fence_run_length < ctx.fence_length:
        return False

    if stripped_line[fence_run_length:].strip():
        return False

    if indent_columns > CLOSING_FENCE_MAX_INDENT:
        return False

    ctx.state = ParserState.NORMAL
    ctx.fence_char = None
    ctx.fence_length = 0
    ctx.fence_indent_columns = 0
    return True


def split_table_row(line: str) -> list[str]:
    r"""Split a pipe-table row into trimmed cell texts.

    Leading and trailing pipes are optional; escaped pipes (``\|``) stay
    inside their cell and are unescaped.

    Examples:
        split_table_row("| a | b |")  # ["a", "b"]
        split_table_row("a \\| b | c")  # ["a | b", "c"]
    """
    text = line.strip()
    if text.startswith("|"):
        text = text[1:]
    if text.endswith("|") and not is_escaped(text, len(text) - 1):
        text = text[:-1]

    cells = []
    cell_start = 0
    for position, character in enumerate(text):
        if character == "|" and not is_escaped(text, position):
            cells.append(text[cell_start:position])
            cell_start = position + 1
    cells.append(text[cell_start:])

    return [cell.strip().replace("\\|", "|") for cell in cells]


def _column_alignment(cell: str) -> str | None:
    if cell.startswith(":") and cell.endswith(":"):
        return "center"
    if cell.endswith(":"):
        return "right"
    if cell.startswith(":"):
        return "left"
    return None


def _table_header(lines: list[str], i: int) -> tuple[list[str], list[str | None]] | None:
    """Recognise a table header row followed by its delimiter row.

    Returns:
        The header cells and column alignments, or None when lines `i` and
        `i + 1` do not open a table.
    """
    if i + 1 >= len(lines):
        return None

    header_line = _line_content(lines[i])
    delimiter_line = _line_content(lines[i + 1])
    if "|" not in header_line and "|" not in delimiter_line:
        return None
    if _leading_whitespace_columns(header_line) >= INDENTED_CODE_COLUMNS:
        return None

    delimiter_cells = split_table_row(delimiter_line)
    if not all(TABLE_DELIMITER_CELL_PATTERN.match(cell) for cell in delimiter_cells):
        return None

    header_cells = split_table_row(header_line)
    if len(header_cells) != len(delimiter_cells):
        return None

    return header_cells, [_column_alignment(cell) for cell in delimiter_cells]


def _starts_block(lines: list[str], j: int) -> bool:
    """Whether line `j` opens a block that ends a paragraph-like run."""
    content = _line_content(lines[j])
    if _leading_whitespace_columns(content) >= INDENTED_CODE_COLUMNS:
        return False

    if _try_open_fence(ParserContext(), content):
        return True
    if ATX_HEADING_PATTERN.match(content):
        return True
    if THEMATIC_BREAK_PATTERN.match(content):
        return True
    if BLOCKQUOTE_PATTERN.match(content):
        return True
    return False


def _opens_list(content: str) -> bool:
    """Whether a list item starting on `content` can cut short a running block.

    The item needs content and, for ordered lists, must start at 1.
    """
    marker_match = LIST_MARKER_PATTERN.match(content)
    if not marker_match or not content[marker_match.end() :].strip():
        return False
    number = marker_match.group("number")
    return number is None or int(number) == 1


def _interrupts_paragraph(lines: list[str], j: int) -> bool:
    """Whether line `j` ends a paragraph without a blank line in between."""
    if _starts_block(lines, j):
        return True

    content = _line_content(lines[j])
    if _leading_whitespace_columns(content) >= INDENTED_CODE_COLUMNS:
        return False

    if _opens_list(content):
        return True

    return _table_header(lines, j) is not None


def _scan_space(lines: list[str], i: int) -> tuple[int, Token]:
    j = i
    while j < len(lines) and _is_blank(lines[j]):
        j += 1
    return j, Token(TokenKind.SPACE, "".join(lines[i:j]))


def _scan_fenced_code(lines: list[str], i: int, ctx: ParserContext) -> tuple[int, Token]:
    info = CODE_FENCE_PATTERN.match(_line_content(lines[i])).group("info").strip()
    indent_columns = ctx.fence_indent_columns

    j = i + 1
    body_end = len(lines)
    while j < len(lines):
        if _try_close_fence(ctx, _line_content(lines[j])):
            body_end = j
            j += 1
            break
        j += 1

    body = [_strip_columns(_line_content(line), indent_columns) for line in lines[i + 1 : body_end]]
    return j, Token(
        TokenKind.CODE,
        "".join(lines[i:j]),
        text="\n".join(body),
        lang=info.split()[0] if info else None,
    )


def _scan_indented_code(lines: list[str], i: int) -> tuple[int, Token]:
    j = i
    last_content = i
    while j < len(lines):
        if _is_blank(lines[j]):
            j += 1
            continue
        if _leading_whitespace_columns(lines[j]) < INDENTED_CODE_COLUMNS:
            break
        last_content = j
        j += 1

    # Trailing blank lines are left for the following space token
    end = last_content + 1
    body = [_strip_columns(_line_content(line), INDENTED_CODE_COLUMNS) for line in lines[i:end]]
    return end, Token(TokenKind.CODE, "".join(lines[i:end]), text="\n".join(body))


def _atx_heading_text(match: re.Match[str]) -> str:
    text = match.group("text") or ""
    return ATX_CLOSING_SEQUENCE.sub("", text).strip()


def _scan_blockquote(lines: list[str], i: int) -> tuple[int, Token]:
    j = i + 1
    while j < len(lines):
        if _is_blank(lines[j]):
            break
        content = _line_content(lines[j])
        if BLOCKQUOTE_PATTERN.match(content):
            j += 1
            continue
        # Lazy continuation of the quoted paragraph
        if _interrupts_paragraph(lines, j):
            break
        j += 1

    text_lines = []
    for line in lines[i:j]:
        content = _line_content(line)
        marker_match = BLOCKQUOTE_PATTERN.match(content)
        text_lines.append(content[marker_match.end() :] if marker_match else content.strip())

    return j, Token(TokenKind.BLOCKQUOTE, "".join(lines[i:j]), text="\n".join(text_lines).strip())


def _list_signature(marker_match: re.Match[str]) -> str:
    """Bullet character, or the delimiter of an ordered marker."""
    return marker_match.group("delimiter") or marker_match.group("marker")


def _content_indent(content: str, marker_match: re.Match[str]) -> int:
    marker_end = len(marker_match.group("indent")) + len(marker_match.group("marker"))
    gap = marker_match.group("gap")
    if not content[marker_match.end() :].strip() or len(gap) > INDENTED_CODE_COLUMNS:
        return marker_end + 1
    return marker_end + len(gap)


def _build_list_item(lines: list[str], start: int, end: int) -> Token:
    first = _line_content(lines[start])
    marker_match = LIST_MARKER_PATTERN.match(first)
    content_indent = _content_indent(first, marker_match)

    text_lines = [first[marker_match.end() :]]
    for line in lines[start + 1 : end]:
        content = _line_content(line)
        if _leading_whitespace_columns(content) >= content_indent:
            text_lines.append(_strip_columns(content, content_indent))
        else:
            text_lines.append(content.strip())
    text = "\n".join(text_lines).strip()

    checked = None
    checkbox_match = TASK_CHECKBOX_PATTERN.match(text)
    if checkbox_match:
        checked = checkbox_match.group("mark") != " "
        text = text[checkbox_match.end() :]

    return Token(TokenKind.LIST_ITEM, "".join(lines[start:end]), text=text, checked=checked)


def _scan_list(lines: list[str], i: int) -> tuple[int, Token]:
    first = _line_content(lines[i])
    first_match = LIST_MARKER_PATTERN.match(first)
    signature = _list_signature(first_match)
    content_indent = _content_indent(first, first_match)

    item_bounds = []
    item_start = i
    j = i + 1
    while j < len(lines):
        if _is_blank(lines[j]):
            k = j
            while k < len(lines) and _is_blank(lines[k]):
                k += 1
            if k == len(lines):
                break
            next_content = _line_content(lines[k])
            next_match = LIST_MARKER_PATTERN.match(next_content)
            if _leading_whitespace_columns(next_content) >= content_indent or (
                next_match
                and _list_signature(next_match) == signature
                and not THEMATIC_BREAK_PATTERN.match(next_content)
            ):
                # Blank lines inside the list belong to the preceding item
                j = k
                continue
            break

        content = _line_content(lines[j])
        columns = _leading_whitespace_columns(content)
        if columns >= content_indent:
            j += 1
            continue

        if THEMATIC_BREAK_PATTERN.match(content):
            break

        marker_match = LIST_MARKER_PATTERN.match(content)
        if marker_match:
            if _list_signature(marker_match) != signature:
                break
            item_bounds.append((item_start, j))
            item_start = j
            content_indent = _content_indent(content, marker_match)
            j += 1
            continue

        if _interrupts_paragraph(lines, j):
            break
        j += 1

    item_bounds.append((item_start, j))
    items = tuple(_build_list_item(lines, start, end) for start, end in item_bounds)

    number = first_match.group("number")
    return j, Token(
        TokenKind.LIST,
        "".join(lines[i:j]),
        items=items,
        ordered=number is not None,
        start=int(number) if number is not None else None,
    )


def _scan_table(
    lines: list[str], i: int, header: list[str], align: list[str | None]
) -> tuple[int, Token]:
    rows = []
    j = i + 2
    while j < len(lines) and not _is_blank(lines[j]) and not _starts_block(lines, j):
        content = _line_content(lines[j])
        if _opens_list(content):
            break
        cells = split_table_row(content)
        rows.append(tuple(cells[: len(header)]))
        j += 1

    return j, Token(
        TokenKind.TABLE,
        "".join(lines[i:j]),
        header=tuple(header),
        rows=tuple(rows),
        align=tuple(align),
    )


def _scan_paragraph(lines: list[str], i: int) -> tuple[int, Token]:
    j = i + 1
    while j < len(lines):
        if _is_blank(lines[j]):
            break
        underline_match = SETEXT_UNDERLINE_PATTERN.match(_line_content(lines[j]))
        if underline_match:
            text = "\n".join(_line_content(line).strip() for line in lines[i:j])
            depth = 1 if underline_match.group("underline")[0] == "=" else 2
            return j + 1, Token(
                TokenKind.HEADING, "".join(lines[i : j + 1]), text=text, depth=depth
            )
        if _interrupts_paragraph(lines, j):
            break
        j += 1

    text = "\n".join(_line_content(line).strip() for line in lines[i:j])
    return j, Token(TokenKind.PARAGRAPH, "".join(lines[i:j]), text=text)


def _scan_block(lines: list[str], i: int) -> tuple[int, Token]:
    """Scan the block starting at line `i`.

    Returns:
        tuple[int, Token]: Index of the first line after the block and the
            block's token. The returned index is always greater than `i`.
    """
    line = lines[i]
    content = _line_content(line)

    if not content.strip():
        return _scan_space(lines, i)

    ctx = ParserContext()
    if _try_open_fence(ctx, content):
        return _scan_fenced_code(lines, i, ctx)

    if _leading_whitespace_columns(content) >= INDENTED_CODE_COLUMNS:
        return _scan_indented_code(lines, i)

    heading_match = ATX_HEADING_PATTERN.match(content)
    if heading_match:
        depth = len(heading_match.group("marks"))
        return i + 1, Token(
            TokenKind.HEADING, line, text=_atx_heading_text(heading_match), depth=depth
        )

    if THEMATIC_BREAK_PATTERN.match(content):
        return i + 1, Token(TokenKind.HR, line)

    if BLOCKQUOTE_PATTERN.match(content):
        return _scan_blockquote(lines, i)

    if LIST_MARKER_PATTERN.match(content):
        return _scan_list(lines, i)

    table_header = _table_header(lines, i)
    if table_header is not None:
        return _scan_table(lines, i, *table_header)

    return _scan_paragraph(lines, i)


def lex_blocks(source: str) -> list[Token]:
    """Split Markdown text into block tokens.

    Concatenating the ``raw`` of every returned token reproduces `source`
    exactly; blank lines are kept as ``space`` tokens.

    Args:
        source: Markdown document text.

    Returns:
        list[Token]: Block tokens in document order.

    Examples:
        [token.kind for token in lex_blocks("# Title\\n\\nBody\\n")]
        # [TokenKind.HEADING, TokenKind.SPACE, TokenKind.PARAGRAPH]
    """
    lines = LINE_PATTERN.findall(source)
    tokens = []
    i = 0
    while i < len(lines):
        i, token = _scan_block(lines, i)
        tokens.append(token)
    return tokens


def build_token_index(source: str) -> list[IndexedRange]:
    """Locate every block token of `source` by character offset.

    The ranges are contiguous, ascending and together cover the whole
    document.

    Args:
        source: Markdown document text.

    Returns:
        list[IndexedRange]: One range per block token.
    """
    ranges = []
    offset = 0
    for token in lex_blocks(source):
        ranges.append(IndexedRange(token, offset, len(token.raw)))
        offset += len(token.raw)

    LOGGER.debug("Indexed %d block tokens over %d characters", len(ranges), offset)
    return ranges
