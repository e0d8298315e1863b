"""Constants used across the md-query package."""

from __future__ import annotations

import re

# Markdown line breaks are \n, \r\n and \r only
LINE_PATTERN = re.compile(r"[^\r\n]*(?:\r\n|\r|\n)|[^\r\n]+\Z")

# Block patterns, matched against a line without its line terminator
CODE_FENCE_PATTERN = re.compile(r"^(?P<indent>\s{0,3})(?P<fence>`{3,}|~{3,})(?P<info>.*)$")
CLOSING_FENCE_MAX_INDENT = 3
INDENTED_CODE_COLUMNS = 4
ATX_HEADING_PATTERN = re.compile(r"^ {0,3}(?P<marks>#{1,6})(?:[ \t]+(?P<text>.*?))?[ \t]*$")
ATX_CLOSING_SEQUENCE = re.compile(r"(?:^|[ \t]+)#+[ \t]*$")
SETEXT_UNDERLINE_PATTERN = re.compile(r"^ {0,3}(?P<underline>=+|-+)[ \t]*$")
THEMATIC_BREAK_PATTERN = re.compile(r"^ {0,3}(?:(?:\*[ \t]*){3,}|(?:-[ \t]*){3,}|(?:_[ \t]*){3,})$")
BLOCKQUOTE_PATTERN = re.compile(r"^ {0,3}> ?")
LIST_MARKER_PATTERN = re.compile(
    r"^(?P<indent> {0,3})(?P<marker>[*+-]|(?P<number>\d{1,9})(?P<delimiter>[.)]))(?P<gap>[ \t]+|$)"
)
TASK_CHECKBOX_PATTERN = re.compile(r"^\[(?P<mark>[ xX])\][ \t]+")
TABLE_DELIMITER_CELL_PATTERN = re.compile(r"^:?-+:?$")

# Selector grammar
IDENTIFIER_CHARS = frozenset("abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789_")
QUOTE_CHARS = ("'", '"')
REGEX_FLAG_CHARS = frozenset("gimsuy")
INDEX_PATTERN = re.compile(r"^[+-]?\d+$")
SLICE_PATTERN = re.compile(r"^(?P<start>[+-]?\d+)?:(?P<stop>[+-]?\d+)?$")

# Table cells are joined with this separator when matched by text
TABLE_HEADER_SEPARATOR = ", "

# Files and limits
MARKDOWN_EXTENSIONS = (".md", ".markdown")
DEFAULT_MAX_FILE_SIZE = 10 * 1024 * 1024
DEFAULT_MAX_SELECTOR_LENGTH = 1_000
