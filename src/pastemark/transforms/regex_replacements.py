"""
User-defined regex replacements, applied in order after all other transforms.

Rules are authored as plain strings in settings, so the replacement text is
decoded first: `\\n`, `\\r\\n`, `\\r`, `\\t`, `\\'`, `\\"` and `\\\\` become the
characters they name. After decoding, backslashes are literal. Group references
use `$` syntax:

    $1 .. $99   numbered group
    $<name>     named group
    $&          whole match
    $`  $'      text before / after the match
    $$          a literal `$`

Each rule runs on the output of the previous one. A rule whose pattern does not
compile is skipped and logged; the remaining rules still run.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass

from pastemark.settings import RegexReplacement

log = logging.getLogger(__name__)

# Order matters: `\\` must be decoded last, or `\\n` would decode twice.
REPLACEMENT_ESCAPES: list[tuple[str, str]] = [
    ("\\r\\n", "\r\n"),
    ("\\n", "\n"),
    ("\\r", "\r"),
    ("\\t", "\t"),
    ("\\'", "'"),
    ('\\"', '"'),
    ("\\\\", "\\"),
]

_TEMPLATE_TOKEN_RE = re.compile(r"\$(?:(\$)|(&)|(`)|(')|(\d{1,2})|<([^>]*)>)")

_NAMED_GROUP_RE = re.compile(r"\(\?<(?=[A-Za-z_])")


def decode_replacement(text: str) -> str:
    """Decode the escape sequences in a replacement string."""
    for escape, char in REPLACEMENT_ESCAPES:
        text = text.replace(escape, char)
    return text


def _translate_named_groups(pattern: str) -> str:
    """
    Rewrite `(?<name>` group openers to `(?P<name>`, skipping escaped
    characters and character classes.
    """
    parts: list[str] = []
    i = 0
    in_class = False
    while i < len(pattern):
        char = pattern[i]
        if char == "\\":
            parts.append(pattern[i : i + 2])
            i += 2
            continue
        if in_class:
            if char == "]":
                in_class = False
        elif char == "[":
            in_class = True
            # A `]` first in the class (after an optional `^`) is literal.
            end = i + 1
            if pattern.startswith("^", end):
                end += 1
            if pattern.startswith("]", end):
                end += 1
            parts.append(pattern[i:end])
            i = end
            continue
        elif _NAMED_GROUP_RE.match(pattern, i):
            parts.append("(?P<")
            i += 3
            continue
        parts.append(char)
        i += 1
    return "".join(parts)


def compile_rule_pattern(pattern: str) -> re.Pattern[str]:
    """
    Compile a rule pattern, accepting `(?<name>...)` as well as Python's
    `(?P<name>...)` for named groups. Raises `re.error` if the pattern is invalid,
    `OverflowError` if a repeat count or group number is too large, or
    `RecursionError` if it nests too deeply to parse.
    """
    return re.compile(_translate_named_groups(pattern))


def expand_replacement(template: str, match: re.Match[str]) -> str:
    """
    Expand `$` group references in `template` for one match. References to
    groups that do not exist are left as literal text; groups that did not
    participate in the match expand to an empty string.
    """
    if "$" not in template:
        return template

    group_count = match.re.groups
    group_names = match.re.groupindex

    def substitute(token: re.Match[str]) -> str:
        dollar, whole, before, after, digits, name = token.groups()
        if dollar is not None:
            return "$"
        if whole is not None:
            return match.group(0)
        if before is not None:
            return match.string[: match.start()]
        if after is not None:
            return match.string[match.end() :]
        if digits is not None:
            if len(digits) == 2 and 1 <= int(digits) <= group_count:
                return match.group(int(digits)) or ""
            if 1 <= int(digits[0]) <= group_count:
                return (match.group(int(digits[0])) or "") + digits[1:]
            return token.group(0)
        if group_names:
            return (match.group(name) or "") if name in group_names else ""
        return token.group(0)

    return _TEMPLATE_TOKEN_RE.sub(substitute, template)


@dataclass(frozen=True)
class ReplacementOutcome:
    """
    Result of applying one rule: either the (possibly unchanged) text, or the
    original text plus the reason the rule was skipped.
    """

    rule: RegexReplacement
    text: str
    changed: bool = False
    error: str | None = None

    @property
    def skipped(self) -> bool:
        return self.error is not None


def apply_replacement(text: str, rule: RegexReplacement) -> ReplacementOutcome:
    """Apply a single rule to every match in `text`."""
    try:
        regex = compile_rule_pattern(rule.pattern)
    except (re.error, OverflowError, RecursionError) as e:
        return ReplacementOutcome(rule=rule, text=text, error=str(e))

    replacement = decode_replacement(rule.replacement)
    new_text = regex.sub(lambda m: expand_replacement(replacement, m), text)
    return ReplacementOutcome(rule=rule, text=new_text, changed=new_text != text)


def apply_replacements(text: str, rules: Iterable[RegexReplacement]) -> tuple[str, bool]:
    """
    Apply rules in order, each to the output of the previous one. Returns the
    final text and whether any rule changed it.
    """
    changed = False
    for rule in rules:
        outcome = apply_replacement(text, rule)
        if outcome.skipped:
            log.error(
                "Error applying markdown regex replacement %r: %s", rule.pattern, outcome.error
            )
            continue
        text = outcome.text
        changed = changed or outcome.changed
    return text, changed
