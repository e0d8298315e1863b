"""
Queries a Markdown file with an md-query selector.
Prints the matched source text, table rows as JSON, a match count, or the
document rewritten with the matches replaced.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

import click
from .config import LOG_LEVELS, OUTPUT_FORMATS, ConfigError, QueryConfig, build_config
from .exceptions import QueryError
from .filesystem import (
    ReadFileError,
    collect_file_stat,
    enforce_file_size,
    ensure_file_unchanged,
    get_max_file_size,
    normalize_filepath,
    read_document,
    write_document,
)
from .query import MarkdownQuery, mdq

__all__ = ["cli"]

LOGGER = logging.getLogger(__name__)


def _navigate(
    result: MarkdownQuery, first: bool, last: bool, before: bool, after: bool
) -> MarkdownQuery:
    if first:
        result = result.first()
    if last:
        result = result.last()
    if before:
        result = result.before()
    if after:
        result = result.after()
    return result


def _render(result: MarkdownQuery, config: QueryConfig, each: bool) -> str:
    if config.output_format == "json":
        if each:
            payload = [part.to_json() for part in result.each()]
        else:
            payload = result.to_json()
        return json.dumps(payload, indent=config.json_indent, ensure_ascii=False) + "\n"

    if each:
        return config.separator.join(part.text() for part in result.each())
    return result.text()


@click.command()
@click.version_option(package_name="md-query")
@click.option(
    "--format",
    "output_format",
    type=click.Choice([*OUTPUT_FORMATS, "raw"]),
    help="Output format (text or json)",
)
@click.option("--json-indent", type=int, help="Indentation for JSON output")
@click.option("--count", "show_count", is_flag=True, help="Print the number of matches")
@click.option("--first", is_flag=True, help="Keep only the first match")
@click.option("--last", is_flag=True, help="Keep only the last match")
@click.option("--before", is_flag=True, help="Select blocks before the first match")
@click.option("--after", is_flag=True, help="Select blocks after the last match")
@click.option("--each", is_flag=True, help="Print matches one by one")
@click.option("--replace", "replacement", help="Replace every match with this text")
@click.option("--in-place", is_flag=True, help="Write the replacement back to the file")
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    help="Logging level",
)
@click.argument("filepath", type=click.Path(exists=True, dir_okay=False))
@click.argument("selector")
def cli(
    filepath: str,
    selector: str,
    output_format: str | None = None,
    json_indent: int | None = None,
    show_count: bool = False,
    first: bool = False,
    last: bool = False,
    before: bool = False,
    after: bool = False,
    each: bool = False,
    replacement: str | None = None,
    in_place: bool = False,
    log_level: str | None = None,
):
    """
    Entry point for querying a Markdown file.

    Args:
        filepath: Path to the Markdown file to query.
        selector: md-query selector, e.g. ``'section("API") table[0]'``.
        output_format: Override for the configured output format.
        json_indent: Override for the configured JSON indentation.
        show_count: Print the match count instead of the matches.
        first: Narrow to the first match.
        last: Narrow to the last match.
        before: Select the blocks preceding the first match.
        after: Select the blocks following the last match.
        each: Print matches separately, joined by the configured separator.
        replacement: Replace every match with this text and print the document.
        in_place: With `replacement`, rewrite the file instead of printing.
        log_level: Override for the configured logging level.

    Returns:
        None.

    Raises:
        click.UsageError: If incompatible flags are combined.
        click.BadParameter: If the path, selector, or configuration is invalid.
        click.ClickException: If reading or writing the file fails.

    Examples:
        md-query README.md 'section("Install") code[0]'
        md-query docs/api.md 'table' --format json
        md-query notes.md 'section("Draft")' --replace '' --in-place
    """
    if first and last:
        raise click.UsageError("`--first` and `--last` are mutually exclusive.")
    if before and after:
        raise click.UsageError("`--before` and `--after` are mutually exclusive.")
    if in_place and replacement is None:
        raise click.UsageError("`--in-place` requires `--replace`.")
    if replacement is not None and (show_count or each):
        raise click.UsageError("`--replace` cannot be combined with `--count` or `--each`.")

    base_dir = Path.cwd().resolve()
    try:
        filepath = normalize_filepath(filepath, base_dir)
    except ValueError as error:
        raise click.BadParameter(str(error)) from error
    try:
        config = build_config(
            filepath.parent,
            output_format=output_format,
            json_indent=json_indent,
            log_level=log_level,
        )
    except ConfigError as error:
        raise click.BadParameter(str(error)) from error

    logging.basicConfig(level=getattr(logging, config.log_level, logging.WARNING))

    if len(selector) > config.max_selector_length:
        raise click.BadParameter(
            f"Selector exceeds the maximum allowed length of "
            f"{config.max_selector_length} characters."
        )

    try:
        max_file_size = get_max_file_size(default=config.max_file_size)
    except ValueError as error:
        raise click.ClickException(str(error)) from error

    try:
        initial_stat = collect_file_stat(filepath)
        enforce_file_size(initial_stat, max_file_size, filepath)
    except IOError as error:
        raise click.ClickException(str(error)) from error

    try:
        content = read_document(filepath)
    except ReadFileError as error:
        raise click.ClickException(str(error)) from error

    try:
        post_read_stat = collect_file_stat(filepath)
        ensure_file_unchanged(initial_stat, post_read_stat, filepath)
    except IOError as error:
        raise click.ClickException(str(error)) from error

    try:
        result = mdq(content).query(selector)
    except QueryError as error:
        raise click.BadParameter(str(error)) from error

    result = _navigate(result, first, last, before, after)
    LOGGER.info("Selector %r matched %d blocks in %s", selector, result.count(), filepath)

    if show_count:
        click.echo(result.count())
        return

    if replacement is None:
        click.echo(_render(result, config, each), nl=False)
        return

    rewritten = result.replace(replacement)
    if not in_place:
        click.echo(rewritten, nl=False)
        return

    if rewritten == content:
        LOGGER.info("No matches to replace; %s left untouched", filepath)
        return

    try:
        write_document(
            filepath,
            rewritten,
            post_read_stat,
            initial_stat,
            warn=lambda message: click.echo(message, err=True),
        )
    except IOError as error:
        raise click.ClickException(str(error)) from error


if __name__ == "__main__":
    cli()
