"""
Blank-line density reducers: collapsing runs of blank lines, and removing empty
lines except where Markdown needs them.
"""

from __future__ import annotations

import re

from pastemark.transforms.line_endings import join_lines, normalize_line_endings, split_lines

_BLANK_RUN_RE = re.compile(r"\n{3,}")

_PRESERVE_MARKER_RES = [
    re.compile(r'<p class="preserve-line-break"[^>]*>.*?</p>'),
    re.compile(r'<p data-preserve="true"[^>]*>.*?</p>'),
]
_HORIZONTAL_RULE_RE = re.compile(r"^\s*-{3,}\s*$")
_TABLE_ROW_RE = re.compile(r"^\s*\|.*\|")
_HEADING_LINE_RE = re.compile(r"^#{1,6}\s")


def collapse_blank_runs(markdown: str) -> tuple[str, bool]:
    """
    Reduce every run of 3 or more line breaks to exactly 2, leaving at most one
    blank line between blocks. Line endings are normalized first; normalization
    alone does not count as a change.
    """
    normalized = normalize_line_endings(markdown)
    collapsed = _BLANK_RUN_RE.sub("\n\n", normalized)
    return collapsed, collapsed != normalized


def has_preserve_marker(line: str) -> bool:
    return any(marker.search(line) for marker in _PRESERVE_MARKER_RES)


def _is_blank(line: str) -> bool:
    return line.strip() == ""


def keep_line(line: str, prev_line: str | None, next_line: str | None) -> bool:
    """
    Whether a line survives empty-line removal, given its neighbors in the
    original (unfiltered) text.

    Blank lines are kept only before a horizontal rule (so `---` is not read as
    a setext underline), before a table, and directly after a heading.
    """
    if not _is_blank(line):
        return True
    if next_line is not None and _HORIZONTAL_RULE_RE.match(next_line):
        return True
    if next_line is not None and _TABLE_ROW_RE.match(next_line):
        return True
    if prev_line is not None and _HEADING_LINE_RE.match(prev_line):
        return True
    return False


def remove_empty_lines(markdown: str, preserve_line_breaks: bool = True) -> tuple[str, bool]:
    """
    Drop empty and whitespace-only lines, except those `keep_line()` keeps.

    With `preserve_line_breaks`, a line carrying a preserve marker
    (`<p class="preserve-line-break">` or `<p data-preserve="true">`) is replaced
    by an empty line. Without it, marker lines pass through like any other text.
    """
    normalized = normalize_line_endings(markdown)
    lines = split_lines(normalized)

    filtered: list[str] = []
    for i, line in enumerate(lines):
        if preserve_line_breaks and has_preserve_marker(line):
            filtered.append("")
            continue

        prev_line = lines[i - 1] if i > 0 else None
        next_line = lines[i + 1] if i + 1 < len(lines) else None
        if keep_line(line, prev_line, next_line):
            filtered.append(line)

    result = join_lines(filtered)
    return result, result != normalized
