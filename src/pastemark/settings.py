"""
Settings and result types for the paste transformation pipeline.

Settings are immutable for the duration of a call. Defaults are all no-ops: a
`TransformSettings()` with no arguments leaves headings and blank lines alone and
applies no replacement rules.
"""

from __future__ import annotations

from dataclasses import dataclass

MAX_HEADING_LEVEL = 6


@dataclass(frozen=True)
class RegexReplacement:
    """
    One substitution rule. `pattern` is a regular expression applied globally;
    `replacement` may contain escape sequences (`\\n`, `\\t`, ...) and group
    references like `$1` or `$<name>`.
    """

    pattern: str
    replacement: str


@dataclass(frozen=True)
class TransformSettings:
    """
    Configuration for `transform_markdown()`.

    `max_heading_level` values of 1 or less disable the max-level heading mode.
    `contextual_cascade` only takes effect when a non-zero context level is given,
    and then wins over `max_heading_level`.
    """

    regex_replacements: tuple[RegexReplacement, ...] = ()
    contextual_cascade: bool = False
    max_heading_level: int = 1
    cascade_heading_levels: bool = False
    strip_line_breaks: bool = False
    collapse_blank_runs: bool = False
    remove_empty_lines: bool = False

    @property
    def preserve_line_breaks(self) -> bool:
        return not self.strip_line_breaks


@dataclass(frozen=True)
class TransformResult:
    """Transformed text, and whether any stage altered it."""

    content: str
    changed: bool
