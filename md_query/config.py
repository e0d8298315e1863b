"""Configuration loading and management."""

from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
import tomllib

from .constants import DEFAULT_MAX_FILE_SIZE, DEFAULT_MAX_SELECTOR_LENGTH

OUTPUT_FORMATS = ("text", "json")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class QueryConfig:
    """Configuration for the md-query command line.

    Attributes:
        output_format: How matches are printed (``"text"`` or ``"json"``; the
            alias ``"raw"`` means ``"text"``).
        json_indent: Indentation used when printing JSON.
        separator: Text printed between matches when splitting with ``--each``.
        max_file_size: Maximum file size in bytes that will be processed.
        max_selector_length: Maximum selector length in characters.
        log_level: Logging level name for the CLI.

    Examples:
        QueryConfig(output_format="json", json_indent=4)
    """

    # Output
    output_format: str = "text"
    json_indent: int = 2
    separator: str = "\n"

    # Limits
    max_file_size: int = DEFAULT_MAX_FILE_SIZE
    max_selector_length: int = DEFAULT_MAX_SELECTOR_LENGTH

    # Diagnostics
    log_level: str = "WARNING"


class ConfigError(ValueError):
    """Exception raised when configuration values are invalid.

    Examples:
        raise ConfigError("`output_format` must be one of: text, json")
    """


def load_config(search_path: Path) -> QueryConfig:
    """Load configuration from the nearest config file.

    Walks parent directories from `search_path` to the filesystem root, reading
    the ``[tool.md-query]`` table from `pyproject.toml` and the ``[md-query]``
    or ``[tool.md-query]`` table from `.md-query.toml` when present. Returns
    default values when no configuration is found. TOML files that cannot be
    read or decoded are skipped.

    Args:
        search_path: Directory used as the starting point for configuration lookup.

    Returns:
        QueryConfig: Loaded configuration with defaults applied when necessary.

    Raises:
        ConfigError: If the table is present but not a mapping or contains unsupported keys.

    Examples:
        load_config(Path("docs"))
    """
    current = search_path.resolve()

    while True:
        pyproject_config = _load_from_file(
            current / "pyproject.toml", table_paths=[("tool", "md-query")]
        )
        if pyproject_config is not None:
            return normalize_config(pyproject_config)

        dotfile_config = _load_from_file(
            current / ".md-query.toml",
            table_paths=[("md-query",), ("tool", "md-query")],
        )
        if dotfile_config is not None:
            return normalize_config(dotfile_config)

        parent = current.parent
        if parent == current:
            break
        current = parent

    return QueryConfig()


_MISSING = object()


def _load_from_file(config_file: Path, table_paths: list[tuple[str, ...]]) -> QueryConfig | None:
    if not config_file.exists():
        return None

    try:
        with open(config_file, "rb") as stream:
            data = tomllib.load(stream)
    except (OSError, tomllib.TOMLDecodeError):
        return None

    for table_path in table_paths:
        raw_config = _extract_table(data, table_path)
        if raw_config is _MISSING:
            continue
        return _build_config_from_raw(raw_config, config_file, table_path)

    return None


def _extract_table(data: object, table_path: tuple[str, ...]) -> object:
    current = data
    for key in table_path:
        if not isinstance(current, dict) or key not in current:
            return _MISSING
        current = current[key]
    return current


def _build_config_from_raw(
    raw_config: object, config_file: Path, table_path: tuple[str, ...]
) -> QueryConfig:
    table_display = ".".join(table_path)

    if raw_config is None:
        return QueryConfig()

    if not isinstance(raw_config, dict):
        raise ConfigError(f"Invalid `[{table_display}]` settings in {config_file}")

    if not raw_config:
        return QueryConfig()

    try:
        return QueryConfig(**raw_config)
    except TypeError as error:
        raise ConfigError(f"Invalid `[{table_display}]` settings in {config_file}") from error


def normalize_config(config: QueryConfig) -> QueryConfig:
    output_format = config.output_format
    if output_format == "raw":
        output_format = "text"

    log_level = config.log_level
    if isinstance(log_level, str):
        log_level = log_level.upper()

    return replace(config, output_format=output_format, log_level=log_level)


def validate_config(config: QueryConfig) -> None:
    """Validate a `QueryConfig` instance.

    Args:
        config: Configuration to validate.

    Returns:
        None.

    Raises:
        ConfigError: If the output format or log level is unsupported, the
            separator is not a string, or numeric limits are not positive.

    Examples:
        validate_config(QueryConfig(output_format="json"))
    """
    config = normalize_config(config)

    _ensure_integers(
        {
            "json_indent": config.json_indent,
            "max_file_size": config.max_file_size,
            "max_selector_length": config.max_selector_length,
        }
    )

    if config.output_format not in OUTPUT_FORMATS:
        raise ConfigError("`output_format` must be one of: text, json, raw")
    if config.log_level not in LOG_LEVELS:
        raise ConfigError(f"`log_level` must be one of: {', '.join(LOG_LEVELS)}")
    if not isinstance(config.separator, str):
        raise ConfigError("`separator` must be a string")
    if config.json_indent < 0:
        raise ConfigError("`json_indent` must be >= 0")

    _ensure_positive(
        {
            "max_file_size": config.max_file_size,
            "max_selector_length": config.max_selector_length,
        }
    )


def apply_overrides(config: QueryConfig, **overrides: object) -> QueryConfig:
    """Apply override values to a `QueryConfig`.

    Args:
        config: Base configuration to update.
        overrides: Override values keyed by configuration field name; values set to
            None are ignored.

    Returns:
        QueryConfig: New configuration with the provided overrides applied. The
        original configuration is returned when no changes are supplied.

    Raises:
        TypeError: If an override name is not defined on `QueryConfig`.

    Examples:
        updated = apply_overrides(config, output_format="json", json_indent=None)
    """
    changes = {key: value for key, value in overrides.items() if value is not None}
    if not changes:
        return config
    return replace(config, **changes)


def build_config(search_path: Path, **overrides: object) -> QueryConfig:
    """Load, override, and validate configuration.

    Args:
        search_path: Directory where configuration files are resolved.
        overrides: Override values keyed by configuration attributes; None values
            are ignored.

    Returns:
        QueryConfig: Validated configuration.

    Raises:
        ConfigError: If configuration loading or validation fails.

    Examples:
        config = build_config(Path.cwd(), output_format="json")
    """
    config = load_config(search_path)
    config = apply_overrides(config, **overrides)
    config = normalize_config(config)
    validate_config(config)
    return config


def _ensure_positive(values: dict[str, int]) -> None:
    for key, value in values.items():
        if value <= 0:
            raise ConfigError(f"`{key}` must be a positive integer")


def _ensure_integers(values: dict[str, object]) -> None:
    for key, value in values.items():
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConfigError(f"`{key}` must be an integer")
