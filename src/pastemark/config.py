"""
TOML-based config file loading for pastemark.

Searches for `.pastemark.toml`, `pastemark.toml`, or `pyproject.toml [tool.pastemark]`
walking up from the current directory. Config values are merged with CLI flags
using three-way precedence: explicit CLI flags > config file > built-in defaults.

Example `pastemark.toml`:

    [headings]
    max-heading-level = 2
    cascade-heading-levels = true

    [blank-lines]
    remove-empty-lines = true

    [[replacements]]
    pattern = "\\u00a0"
    replacement = " "
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, TypeVar, cast

from pastemark.settings import MAX_HEADING_LEVEL, RegexReplacement

if sys.version_info >= (3, 11):
    import tomllib  # pyright: ignore[reportUnreachable]
else:
    import tomli as tomllib  # type: ignore[no-redef]  # pyright: ignore[reportUnreachable]


@dataclass
class PastemarkConfig:
    """
    Parsed config from a TOML file. Fields are `None` when not set in the config,
    allowing the merge logic to distinguish "not configured" from "explicitly set
    to default value".
    """

    # Headings
    contextual_cascade: bool | None = None
    max_heading_level: int | None = None
    cascade_heading_levels: bool | None = None
    # Blank lines
    strip_line_breaks: bool | None = None
    collapse_blank_runs: bool | None = None
    remove_empty_lines: bool | None = None
    # Replacements
    replacements: list[RegexReplacement] | None = None


# Config file search order (first match wins within each directory level)
_CONFIG_FILENAMES = [".pastemark.toml", "pastemark.toml", "pyproject.toml"]

# Keys whose snake_case form is not just the kebab-case key with underscores
_KEY_ALIASES: dict[str, str] = {
    "single-spaced": "collapse_blank_runs",
}

# Sections whose keys are merged into the top level
_SECTIONS = {"headings", "blank-lines"}

_VALID_FIELDS = {f.name for f in fields(PastemarkConfig)}


def find_config_file(start_dir: Path) -> Path | None:
    """
    Walk up from `start_dir` looking for a config file. Returns the first
    found, or `None`. Search order per directory: `.pastemark.toml` >
    `pastemark.toml` > `pyproject.toml` (only if it has `[tool.pastemark]`).
    """
    current = start_dir.resolve()
    while True:
        for filename in _CONFIG_FILENAMES:
            candidate = current / filename
            if candidate.is_file():
                if filename == "pyproject.toml":
                    if _pyproject_has_pastemark_section(candidate):
                        return candidate
                else:
                    return candidate
        parent = current.parent
        if parent == current:
            break
        current = parent
    return None


def _pyproject_has_pastemark_section(path: Path) -> bool:
    try:
        data = tomllib.loads(path.read_text())
        return "pastemark" in data.get("tool", {})
    except (tomllib.TOMLDecodeError, OSError):
        return False


def load_config(config_path: Path) -> PastemarkConfig:
    """
    Load a `PastemarkConfig` from a TOML file. Supports both standalone
    `pastemark.toml` / `.pastemark.toml` and `pyproject.toml` (extracts
    `[tool.pastemark]`). A file that is not valid TOML produces a warning and an
    empty config.
    """
    try:
        data = tomllib.loads(config_path.read_text())
    except tomllib.TOMLDecodeError as e:
        print(f"Warning: ignoring invalid config file {config_path}: {e}", file=sys.stderr)
        return PastemarkConfig()

    if config_path.name == "pyproject.toml":
        data = data.get("tool", {}).get("pastemark", {})

    return _parse_config_data(data)


def _parse_replacements(value: Any) -> list[RegexReplacement]:
    if not isinstance(value, list):
        raise ValueError("`replacements` must be an array of tables")
    rules: list[RegexReplacement] = []
    for item in cast(list[Any], value):
        if not isinstance(item, dict) or "pattern" not in item:
            raise ValueError(f"Invalid replacement rule (needs `pattern`): {item!r}")
        entry = cast(dict[str, Any], item)
        pattern = str(entry["pattern"])
        replacement = str(entry.get("replacement", ""))
        rules.append(RegexReplacement(pattern=pattern, replacement=replacement))
    return rules


def _parse_heading_level(value: Any) -> int:
    if not isinstance(value, int) or isinstance(value, bool) or not 1 <= value <= MAX_HEADING_LEVEL:
        raise ValueError(
            f"`max-heading-level` must be an integer between 1 and {MAX_HEADING_LEVEL}: {value!r}"
        )
    return value


def _parse_config_data(data: dict[str, Any]) -> PastemarkConfig:
    """Parse a flat or sectioned TOML dict into PastemarkConfig."""
    # Flatten sections: [headings] and [blank-lines] merge into top level
    flat: dict[str, Any] = {}
    for key, value in data.items():
        if key in _SECTIONS and isinstance(value, dict):
            for sub_key, sub_value in cast(dict[str, Any], value).items():
                flat[sub_key] = sub_value
        else:
            flat[key] = value

    mapped: dict[str, Any] = {}
    for key, value in flat.items():
        snake_key = _KEY_ALIASES.get(key, key.replace("-", "_"))
        if snake_key not in _VALID_FIELDS:
            print(f"Warning: unrecognized config key: {key}", file=sys.stderr)
            continue
        if snake_key == "replacements":
            value = _parse_replacements(value)
        elif snake_key == "max_heading_level":
            value = _parse_heading_level(value)
        mapped[snake_key] = value

    return PastemarkConfig(**mapped)


_T = TypeVar("_T")


def merge_cli_with_config(
    cli_opts: _T,
    config: PastemarkConfig | None,
    explicit_flags: set[str],
) -> _T:
    """
    Merge CLI options with config file settings.

    Precedence: explicit CLI flags > config file > built-in defaults.
    Replacement rules are the exception: CLI rules are appended after the
    config file's rules, so both apply.
    """
    if config is None:
        return cli_opts

    for cfg_field in fields(PastemarkConfig):
        cfg_value = getattr(config, cfg_field.name)
        if cfg_value is None:
            continue  # Not set in config

        if cfg_field.name == "replacements":
            cli_rules = list(getattr(cli_opts, "replacements", []))
            setattr(cli_opts, "replacements", list(cfg_value) + cli_rules)
            continue

        # Skip if CLI explicitly set this flag
        if cfg_field.name in explicit_flags:
            continue

        if hasattr(cli_opts, cfg_field.name):
            setattr(cli_opts, cfg_field.name, cfg_value)

    return cli_opts
