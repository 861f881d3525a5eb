"""
Heading level normalization for pasted Markdown.

Rewrites the depth of ATX heading markers (`#` to `######`) so pasted content fits
the heading hierarchy of the document it is pasted into. Headings are found by a
line-oriented pattern, so headings inside fenced code blocks are rewritten too.

MODES
-----
Contextual cascade (`contextual_cascade` and a context level > 0):
- The first heading at or above the context level is pushed to context level + 1.
- Every later heading shifts by the same delta, capped at H6.
- Headings before the trigger that are already deeper than the context are kept.

Max-level clamp (`max_heading_level` > 1, no cascading):
- Headings shallower than the max level are pushed down to it.

Max-level cascade (`max_heading_level` > 1 with `cascade_heading_levels`):
- The first heading shallower than the max level is pushed to the max level.
- Every later heading shifts by the same delta, capped at H6.

The delta is committed once, at the trigger heading, and never recomputed.

CHANGE REPORTING
----------------
The reported change flag reflects the last heading processed, not an OR over all
headings. A paste whose final heading is unchanged reports no heading change even
if earlier headings moved.

EXAMPLE
-------
Context level 2, contextual cascade:

    # Title          ->  ### Title
    ## Section       ->  #### Section
    ###### Deep      ->  ###### Deep
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass

from pastemark.settings import MAX_HEADING_LEVEL, TransformSettings

log = logging.getLogger(__name__)

HEADING_MARKER_RE = re.compile(r"^(#{1,6})(\s)", re.MULTILINE)


@dataclass
class CascadeState:
    """
    Running state threaded through the headings of one document, in order.
    """

    delta: int = -1
    cascading: bool = False

    def start(self, current_level: int, new_level: int) -> int:
        """Commit the cascade delta at the trigger heading."""
        self.delta = new_level - current_level
        self.cascading = True
        log.debug("Cascade initiated: delta %d", self.delta)
        return new_level

    def shift(self, current_level: int) -> int:
        return min(current_level + self.delta, MAX_HEADING_LEVEL)


def contextual_level(state: CascadeState, current_level: int, context_level: int) -> int:
    """New level for a heading pasted under a heading at `context_level`."""
    if state.cascading:
        return state.shift(current_level)
    if current_level <= context_level:
        return state.start(current_level, min(context_level + 1, MAX_HEADING_LEVEL))
    return current_level


def max_level_cascade_level(state: CascadeState, current_level: int, max_level: int) -> int:
    """New level for a heading when cascading down to `max_level`."""
    if state.cascading:
        return state.shift(current_level)
    if current_level < max_level:
        return state.start(current_level, max_level)
    return current_level


def clamp_level(current_level: int, max_level: int) -> int:
    return max(current_level, max_level)


def rewrite_heading_levels(text: str, new_level_for: Callable[[int], int]) -> tuple[str, bool]:
    """
    Rewrite each heading marker in document order to the level returned by
    `new_level_for(current_level)`. The whitespace after the marker is kept.

    Returns the new text and whether the last heading's level changed.
    """
    parts: list[str] = []
    pos = 0
    changed = False
    for match in HEADING_MARKER_RE.finditer(text):
        current_level = len(match.group(1))
        new_level = new_level_for(current_level)
        log.debug("Heading level: current %d, new %d", current_level, new_level)

        changed = new_level != current_level
        parts.append(text[pos : match.start()])
        parts.append("#" * new_level + match.group(2))
        pos = match.end()

    parts.append(text[pos:])
    return "".join(parts), changed


def normalize_heading_levels(
    markdown: str, settings: TransformSettings, context_level: int = 0
) -> tuple[str, bool]:
    """
    Apply whichever heading mode the settings select. Returns the text unchanged
    (and `False`) when no mode applies.
    """
    state = CascadeState()

    if settings.contextual_cascade and context_level > 0:
        return rewrite_heading_levels(
            markdown, lambda level: contextual_level(state, level, context_level)
        )

    max_level = settings.max_heading_level
    if max_level > 1:
        if settings.cascade_heading_levels:
            return rewrite_heading_levels(
                markdown, lambda level: max_level_cascade_level(state, level, max_level)
            )
        return rewrite_heading_levels(markdown, lambda level: clamp_level(level, max_level))

    return markdown, False
