"""
Escaping of Markdown syntax, for pasting content as literal text.

Each construct is backslash-escaped by one pattern, applied in a fixed order.
Later steps see the output of earlier ones (for example, `* item` is already
`\\* item` by the time list bullets are escaped, so it is escaped only once).
Line-anchored escapes keep any indentation in front of the backslash.

HTML tags cannot be backslash-escaped, so a final pass wraps each tag in a code
span instead. Tags inside backtick spans are left as they are.
"""

from __future__ import annotations

import re

_ESCAPE_STEPS: list[tuple[re.Pattern[str], str]] = [
    # Headings
    (re.compile(r"^(#{1,6}\s)", re.MULTILINE), r"\\\1"),
    # Bold and italic
    (re.compile(r"(\*\*|__|\*|_)"), r"\\\1"),
    # Task lists (before bullets, which would otherwise claim the dash)
    (re.compile(r"^([ \t]*)(- \[[ xX]\])", re.MULTILINE), r"\1\\\2"),
    # Bullet lists
    (re.compile(r"^([ \t]*)([-+*]\s)", re.MULTILINE), r"\1\\\2"),
    # Numbered lists
    (re.compile(r"^([ \t]*)(\d+\.\s)", re.MULTILINE), r"\1\\\2"),
    # Links and images
    (re.compile(r"(!?\[)"), r"\\\1"),
    # Inline code and code fences
    (re.compile(r"(`{1,3})"), r"\\\1"),
    # Blockquotes
    (re.compile(r"^([ \t]*)(>\s)", re.MULTILINE), r"\1\\\2"),
    # Horizontal rules
    (re.compile(r"^([ \t]*)([-*_]{3,}[ \t]*)$", re.MULTILINE), r"\1\\\2"),
    # Tables
    (re.compile(r"(\|)"), r"\\\1"),
]

# Code spans come first in the alternation so they win over tags inside them.
_CODE_OR_TAG_RE = re.compile(r"(`.*?`)|(</?[a-z][^>]*>)", re.IGNORECASE)


def _wrap_tag(match: re.Match[str]) -> str:
    code, tag = match.group(1), match.group(2)
    if code:
        return code
    return f"`{tag}`"


def escape_markdown(markdown: str) -> tuple[str, bool]:
    """
    Escape all Markdown syntax so the text renders literally. Heading levels are
    not adjusted. Returns the escaped text and whether it differs from the input.
    """
    escaped = markdown
    for pattern, replacement in _ESCAPE_STEPS:
        escaped = pattern.sub(replacement, escaped)
    escaped = _CODE_OR_TAG_RE.sub(_wrap_tag, escaped)

    return escaped, escaped != markdown
