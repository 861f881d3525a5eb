"""
Top-level API: the transformation pipeline, plus reading and writing files.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from strif import atomic_output_file

from pastemark.settings import TransformResult, TransformSettings
from pastemark.transforms.blank_lines import collapse_blank_runs, remove_empty_lines
from pastemark.transforms.heading_levels import normalize_heading_levels
from pastemark.transforms.markdown_escaping import escape_markdown
from pastemark.transforms.regex_replacements import apply_replacements

log = logging.getLogger(__name__)

BACKUP_SUFFIX = ".orig"


def transform_markdown(
    markdown: str,
    settings: TransformSettings,
    context_level: int = 0,
    escape_markdown_syntax: bool = False,
) -> TransformResult:
    """
    Transform pasted Markdown according to `settings`.

    Stages, in order:
    1. Heading levels are normalized, or, with `escape_markdown_syntax`, all
       Markdown syntax is escaped instead.
    2. Runs of blank lines are collapsed (skipped if empty lines are removed).
    3. Empty lines are removed.
    4. Regex replacements are applied.

    `context_level` is the level of the heading the content is pasted under, or 0
    if none. It must not be negative.

    The returned `changed` flag is true if any stage changed the text, even if a
    later stage happened to restore the original.
    """
    changed = False

    if escape_markdown_syntax:
        markdown, stage_changed = escape_markdown(markdown)
    else:
        markdown, stage_changed = normalize_heading_levels(markdown, settings, context_level)
    changed = changed or stage_changed

    if settings.collapse_blank_runs and not settings.remove_empty_lines:
        markdown, stage_changed = collapse_blank_runs(markdown)
        changed = changed or stage_changed

    if settings.remove_empty_lines:
        markdown, stage_changed = remove_empty_lines(
            markdown, preserve_line_breaks=settings.preserve_line_breaks
        )
        changed = changed or stage_changed

    if settings.regex_replacements:
        markdown, stage_changed = apply_replacements(markdown, settings.regex_replacements)
        changed = changed or stage_changed

    log.info("Transform complete: changed=%s", changed)
    return TransformResult(content=markdown, changed=changed)


def transform_file(
    path: str | Path,
    output: str | Path,
    settings: TransformSettings,
    context_level: int = 0,
    escape_markdown_syntax: bool = False,
    inplace: bool = False,
    nobackup: bool = False,
    make_parents: bool = True,
) -> TransformResult:
    """
    Transform a single file, or stdin if `path` is `-`, writing to `output`
    (`-` for stdout) or back to the file itself with `inplace`.

    In-place writes are atomic. A backup of the original is kept with the
    `.orig` suffix unless `nobackup` is set.
    """
    if inplace and path == "-":
        raise ValueError("Cannot use `inplace` with stdin")

    if path == "-":
        text = sys.stdin.read()
    else:
        text = Path(path).read_text(encoding="utf-8")

    result = transform_markdown(text, settings, context_level, escape_markdown_syntax)

    if inplace:
        backup_suffix = None if nobackup else BACKUP_SUFFIX
        with atomic_output_file(path, backup_suffix=backup_suffix) as tmp_path:
            Path(tmp_path).write_text(result.content, encoding="utf-8")
    elif output == "-":
        sys.stdout.write(result.content)
    else:
        with atomic_output_file(output, make_parents=make_parents) as tmp_path:
            Path(tmp_path).write_text(result.content, encoding="utf-8")

    return result


def transform_files(
    files: list[str],
    output: str,
    settings: TransformSettings,
    context_level: int = 0,
    escape_markdown_syntax: bool = False,
    inplace: bool = False,
    nobackup: bool = False,
    make_parents: bool = True,
) -> list[TransformResult]:
    """
    Transform several files. With more than one file, `inplace` is required, as
    outputs would otherwise overwrite each other.
    """
    if len(files) > 1 and not inplace and output != "-":
        raise ValueError("Use `inplace` or stdout output when transforming multiple files")

    results: list[TransformResult] = []
    for path in files:
        result = transform_file(
            path,
            output,
            settings,
            context_level=context_level,
            escape_markdown_syntax=escape_markdown_syntax,
            inplace=inplace,
            nobackup=nobackup,
            make_parents=make_parents,
        )
        log.info("%s: %s", path, "changed" if result.changed else "unchanged")
        results.append(result)
    return results
