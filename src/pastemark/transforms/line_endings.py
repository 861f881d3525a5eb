"""
Line-ending normalization and line splitting shared by the blank-line stages.
"""

from __future__ import annotations

import re

LINE_BREAK = "\n"

_LINE_ENDING_RE = re.compile(r"\r\n?")


def normalize_line_endings(text: str) -> str:
    """Convert `\\r\\n` and lone `\\r` line endings to `\\n`."""
    return _LINE_ENDING_RE.sub(LINE_BREAK, text)


def split_lines(text: str) -> list[str]:
    """
    Split normalized text on line breaks. A trailing newline yields a trailing
    empty line, so `join_lines(split_lines(text)) == text`.
    """
    return text.split(LINE_BREAK)


def join_lines(lines: list[str]) -> str:
    return LINE_BREAK.join(lines)
