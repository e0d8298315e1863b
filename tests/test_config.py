from __future__ import annotations

import textwrap
import pytest
from pathlib import Path

from md_query.config import (
    ConfigError,
    QueryConfig,
    apply_overrides,
    build_config,
    load_config,
    validate_config,
)


def _write_pyproject(base: Path, body: str) -> Path:
    path = base / "pyproject.toml"
    path.write_text(textwrap.dedent(body).lstrip(), encoding="utf-8")
    return path


def _write_dotfile(base: Path, body: str) -> Path:
    path = base / ".md-query.toml"
    path.write_text(textwrap.dedent(body).lstrip(), encoding="utf-8")
    return path


def test_loads_config_from_pyproject(tmp_path: Path):
    _write_pyproject(
        tmp_path,
        """
        [tool.md-query]
        output_format = "json"
        json_indent = 4
        separator = "\\n---\\n"
        max_file_size = 1
        max_selector_length = 2
        log_level = "INFO"
        """,
    )

    config = load_config(tmp_path)

    assert config == QueryConfig(
        output_format="json",
        json_indent=4,
        separator="\n---\n",
        max_file_size=1,
        max_selector_length=2,
        log_level="INFO",
    )


def test_loads_config_from_dotfile(tmp_path: Path):
    _write_dotfile(
        tmp_path,
        """
        [md-query]
        output_format = "json"
        """,
    )

    config = load_config(tmp_path)

    assert config.output_format == "json"


def test_dotfile_accepts_tool_table(tmp_path: Path):
    _write_dotfile(
        tmp_path,
        """
        [tool.md-query]
        json_indent = 0
        """,
    )

    assert load_config(tmp_path).json_indent == 0


def test_pyproject_takes_precedence_over_dotfile(tmp_path: Path):
    _write_pyproject(
        tmp_path,
        """
        [tool.md-query]
        separator = "pyproject"
        """,
    )
    _write_dotfile(
        tmp_path,
        """
        [md-query]
        separator = "dotfile"
        """,
    )

    assert load_config(tmp_path).separator == "pyproject"


def test_pyproject_without_table_falls_through_to_dotfile(tmp_path: Path):
    _write_pyproject(
        tmp_path,
        """
        [project]
        name = "docs"
        """,
    )
    _write_dotfile(
        tmp_path,
        """
        [md-query]
        separator = "dotfile"
        """,
    )

    assert load_config(tmp_path).separator == "dotfile"


def test_load_config_walks_up_directories(tmp_path: Path):
    _write_pyproject(
        tmp_path,
        """
        [tool.md-query]
        output_format = "json"
        """,
    )
    nested = tmp_path / "a" / "b" / "c"
    nested.mkdir(parents=True)

    config = load_config(nested)

    assert config.output_format == "json"


def test_empty_config_table_stops_inheritance(tmp_path: Path):
    _write_pyproject(
        tmp_path,
        """
        [tool.md-query]
        output_format = "json"
        """,
    )
    child = tmp_path / "child"
    child.mkdir()
    _write_pyproject(
        child,
        """
        [tool.md-query]
        """,
    )

    config = load_config(child)

    assert config.output_format == QueryConfig().output_format


def test_load_config_returns_defaults_when_missing(tmp_path: Path):
    config = load_config(tmp_path)

    assert config == QueryConfig()


def test_load_config_skips_invalid_toml(tmp_path: Path):
    invalid_dir = tmp_path / "invalid"
    invalid_dir.mkdir()
    _write_pyproject(invalid_dir, "not = {valid")
    _write_pyproject(
        tmp_path,
        """
        [tool.md-query]
        separator = "||"
        """,
    )

    nested = invalid_dir / "child"
    nested.mkdir()
    config = load_config(nested)

    assert config.separator == "||"


def test_load_config_errors_on_unknown_key(tmp_path: Path):
    _write_pyproject(
        tmp_path,
        """
        [tool.md-query]
        output_format = "json"
        unexpected = true
        """,
    )

    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_load_config_errors_on_non_table(tmp_path: Path):
    _write_pyproject(
        tmp_path,
        """
        [tool]
        md-query = "json"
        """,
    )

    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_partial_config_merges_with_defaults(tmp_path: Path):
    _write_pyproject(
        tmp_path,
        """
        [tool.md-query]
        max_selector_length = 50
        """,
    )

    config = load_config(tmp_path)

    assert config.max_selector_length == 50
    # Defaults preserved
    defaults = QueryConfig()
    assert config.output_format == defaults.output_format
    assert config.max_file_size == defaults.max_file_size


def test_raw_format_and_lowercase_level_are_normalized(tmp_path: Path):
    _write_pyproject(
        tmp_path,
        """
        [tool.md-query]
        output_format = "raw"
        log_level = "debug"
        """,
    )

    config = load_config(tmp_path)

    assert config.output_format == "text"
    assert config.log_level == "DEBUG"


def test_apply_overrides_ignores_none():
    config = QueryConfig()

    assert apply_overrides(config, output_format=None) is config
    assert apply_overrides(config, output_format="json", json_indent=None) == QueryConfig(
        output_format="json"
    )


def test_build_config_applies_overrides_over_files(tmp_path: Path):
    _write_pyproject(
        tmp_path,
        """
        [tool.md-query]
        output_format = "json"
        json_indent = 8
        """,
    )

    config = build_config(tmp_path, output_format="raw", log_level="info")

    assert config.output_format == "text"
    assert config.json_indent == 8
    assert config.log_level == "INFO"


def test_build_config_rejects_invalid_file_values(tmp_path: Path):
    _write_pyproject(
        tmp_path,
        """
        [tool.md-query]
        output_format = "yaml"
        """,
    )

    with pytest.raises(ConfigError):
        build_config(tmp_path)


@pytest.mark.parametrize(
    "config",
    [
        QueryConfig(output_format="yaml"),
        QueryConfig(log_level="VERBOSE"),
        QueryConfig(separator=1),  # type: ignore[arg-type]
        QueryConfig(json_indent=-1),
        QueryConfig(max_file_size=0),
        QueryConfig(max_selector_length=-5),
    ],
)
def test_validate_config_rejects_invalid_values(config: QueryConfig):
    with pytest.raises(ConfigError):
        validate_config(config)


@pytest.mark.parametrize(
    "config",
    [
        QueryConfig(max_file_size="big"),  # type: ignore[arg-type]
        QueryConfig(max_selector_length="long"),  # type: ignore[arg-type]
        QueryConfig(json_indent=True),  # type: ignore[arg-type]
        QueryConfig(json_indent=2.5),  # type: ignore[arg-type]
    ],
)
def test_validate_config_rejects_non_integer_values(config: QueryConfig):
    with pytest.raises(ConfigError):
        validate_config(config)


def test_validate_config_accepts_defaults():
    validate_config(QueryConfig())
    validate_config(QueryConfig(output_format="raw", json_indent=0))
