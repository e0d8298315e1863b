"""
md-query: selector queries over Markdown documents.

This package can be used both as a CLI tool and as a library.

CLI Usage:
    md-query README.md 'section("API") table[0]' --format json

Library Usage:
    from pathlib import Path
    from md_query import mdq

    doc = mdq(Path("README.md").read_text())
    rows = doc.query('section("API") table[0]').to_json()
    intro = doc.query("h2").first().before().text()
    updated = doc.query('section("Changelog") list').replace("- Nothing yet\\n")
"""

from .exceptions import PatternError, QueryError
from .lexer import build_token_index, lex_blocks
from .models import (
    Index,
    IndexedRange,
    MatchedRange,
    MatchMode,
    QuerySegment,
    SelectorKind,
    Slice,
    TextMatcher,
    Token,
    TokenKind,
)
from .query import MarkdownQuery, mdq
from .resolver import resolve
from .selector import parse_query

__version__ = "0.1.0"

__all__ = [
    # Core functionality
    "mdq",
    "MarkdownQuery",
    "parse_query",
    "resolve",
    "lex_blocks",
    "build_token_index",
    # Data models
    "Token",
    "TokenKind",
    "IndexedRange",
    "MatchedRange",
    "QuerySegment",
    "SelectorKind",
    "TextMatcher",
    "MatchMode",
    "Index",
    "Slice",
    # Exceptions
    "QueryError",
    "PatternError",
    # Version
    "__version__",
]
