#!/usr/bin/env python3
"""
pastemark: Reshape pasted Markdown to fit a document's conventions

Common usage:
  pastemark --max-heading-level 2 --cascade pasted.md
  pastemark --contextual-cascade --context-level 2 - < pasted.md
  pastemark --remove-empty-lines --inplace notes.md
  pastemark --escape snippet.md

Settings can also come from `.pastemark.toml`, `pastemark.toml`, or
`[tool.pastemark]` in `pyproject.toml`. Explicit flags win over config values.
"""

from __future__ import annotations

import argparse
import importlib.metadata
import logging
import sys
from dataclasses import dataclass
from pathlib import Path

from pastemark.config import find_config_file, load_config, merge_cli_with_config
from pastemark.settings import RegexReplacement, TransformSettings
from pastemark.transform_api import transform_files


@dataclass
class Options:
    """Command-line options for the pastemark tool."""

    files: list[str]
    output: str
    inplace: bool
    nobackup: bool
    version: bool
    verbose: bool
    context_level: int
    escape: bool
    # Transform settings
    contextual_cascade: bool
    max_heading_level: int
    cascade_heading_levels: bool
    strip_line_breaks: bool
    collapse_blank_runs: bool
    remove_empty_lines: bool
    replacements: list[RegexReplacement]

    def to_settings(self) -> TransformSettings:
        return TransformSettings(
            regex_replacements=tuple(self.replacements),
            contextual_cascade=self.contextual_cascade,
            max_heading_level=self.max_heading_level,
            cascade_heading_levels=self.cascade_heading_levels,
            strip_line_breaks=self.strip_line_breaks,
            collapse_blank_runs=self.collapse_blank_runs,
            remove_empty_lines=self.remove_empty_lines,
        )


def _non_negative_int(value: str) -> int:
    level = int(value)
    if level < 0:
        raise argparse.ArgumentTypeError(f"must be 0 or greater: {value}")
    return level


def _heading_level(value: str) -> int:
    level = int(value)
    if not 1 <= level <= 6:
        raise argparse.ArgumentTypeError(f"must be between 1 and 6: {value}")
    return level


# argparse dest name -> Options field name, for flags a config file may also set
_TRACKED_FLAGS = {
    "contextual_cascade": "contextual_cascade",
    "max_heading_level": "max_heading_level",
    "cascade_heading_levels": "cascade_heading_levels",
    "strip_line_breaks": "strip_line_breaks",
    "collapse_blank_runs": "collapse_blank_runs",
    "remove_empty_lines": "remove_empty_lines",
}


def _parse_args(args: list[str] | None = None) -> tuple[Options, set[str]]:
    """
    Parse command-line arguments.

    Returns a tuple of (options, explicit_flags) where `explicit_flags` tracks
    which flags the user explicitly passed (for config merge precedence).
    """
    module_doc = __doc__ or ""
    doc_parts = module_doc.split("\n\n")
    description = doc_parts[0]
    epilog = "\n\n".join(doc_parts[1:])

    parser = argparse.ArgumentParser(
        description=description,
        epilog=epilog,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "files",
        nargs="*",
        type=str,
        default=[],
        help="Input files (use '-' for stdin)",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=str,
        default="-",
        help="Output file (use '-' for stdout)",
    )
    parser.add_argument(
        "-i", "--inplace", action="store_true", help="Edit the file in place (ignores --output)"
    )
    parser.add_argument(
        "--nobackup",
        action="store_true",
        help="Do not make a backup of the original file when using --inplace",
    )
    parser.add_argument(
        "--context-level",
        type=_non_negative_int,
        default=0,
        metavar="N",
        help="Level of the heading the content is pasted under, or 0 for none "
        "(default: %(default)s)",
    )
    parser.add_argument(
        "--escape",
        action="store_true",
        help="Escape all Markdown syntax instead of adjusting headings",
    )
    parser.add_argument(
        "--contextual-cascade",
        action="store_true",
        help="Nest headings below the context heading, cascading later headings "
        "(requires --context-level)",
    )
    parser.add_argument(
        "--max-heading-level",
        type=_heading_level,
        default=1,
        metavar="N",
        help="Push headings shallower than this level down to it; 1 disables "
        "(default: %(default)s)",
    )
    parser.add_argument(
        "--cascade",
        action="store_true",
        dest="cascade_heading_levels",
        help="With --max-heading-level, shift all later headings by the same amount",
    )
    parser.add_argument(
        "--strip-line-breaks",
        action="store_true",
        help="Drop preserve-line-break markers instead of turning them into blank lines",
    )
    parser.add_argument(
        "--single-spaced",
        action="store_true",
        dest="collapse_blank_runs",
        help="Collapse runs of blank lines to a single blank line",
    )
    parser.add_argument(
        "--remove-empty-lines",
        action="store_true",
        help="Remove empty lines, except around headings, rules, and tables",
    )
    parser.add_argument(
        "--replace",
        nargs=2,
        action="append",
        default=[],
        metavar=("PATTERN", "REPLACEMENT"),
        help="Regex replacement applied after other transforms. Can be repeated",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Log transform decisions to stderr"
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Show version information and exit",
    )
    opts = parser.parse_args(args)

    # Re-parse with sentinel defaults to detect which flags were actually supplied.
    _SENTINEL = object()
    sentinel_parser = argparse.ArgumentParser(add_help=False)
    sentinel_parser.add_argument("--contextual-cascade", action="store_true", default=_SENTINEL)
    sentinel_parser.add_argument("--max-heading-level", default=_SENTINEL)
    sentinel_parser.add_argument(
        "--cascade", dest="cascade_heading_levels", action="store_true", default=_SENTINEL
    )
    sentinel_parser.add_argument("--strip-line-breaks", action="store_true", default=_SENTINEL)
    sentinel_parser.add_argument(
        "--single-spaced", dest="collapse_blank_runs", action="store_true", default=_SENTINEL
    )
    sentinel_parser.add_argument("--remove-empty-lines", action="store_true", default=_SENTINEL)
    sentinel_opts, _ = sentinel_parser.parse_known_args(args if args is not None else sys.argv[1:])

    explicit_flags: set[str] = set()
    for dest_name, field_name in _TRACKED_FLAGS.items():
        if getattr(sentinel_opts, dest_name, _SENTINEL) is not _SENTINEL:
            explicit_flags.add(field_name)

    return (
        Options(
            files=opts.files,
            output=opts.output,
            inplace=opts.inplace,
            nobackup=opts.nobackup,
            version=opts.version,
            verbose=opts.verbose,
            context_level=opts.context_level,
            escape=opts.escape,
            contextual_cascade=opts.contextual_cascade,
            max_heading_level=opts.max_heading_level,
            cascade_heading_levels=opts.cascade_heading_levels,
            strip_line_breaks=opts.strip_line_breaks,
            collapse_blank_runs=opts.collapse_blank_runs,
            remove_empty_lines=opts.remove_empty_lines,
            replacements=[
                RegexReplacement(pattern=pattern, replacement=replacement)
                for pattern, replacement in opts.replace
            ],
        ),
        explicit_flags,
    )


def main(args: list[str] | None = None) -> int:
    """
    Main entry point for the pastemark CLI.

    Args:
        args: Command-line arguments (uses sys.argv if None)

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    options, explicit_flags = _parse_args(args)

    if options.version:
        try:
            version = importlib.metadata.version("pastemark")
            print(f"v{version}")
        except importlib.metadata.PackageNotFoundError:
            print("unknown (package not installed)")
        return 0

    logging.basicConfig(
        level=logging.DEBUG if options.verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    if not options.files:
        print(
            "Error: No input specified. Provide files, or '-' for stdin."
            " Use --help for more options.",
            file=sys.stderr,
        )
        return 1

    try:
        config_path = find_config_file(Path.cwd())
        if config_path:
            config = load_config(config_path)
            merge_cli_with_config(options, config, explicit_flags)

        transform_files(
            files=options.files,
            output=options.output,
            settings=options.to_settings(),
            context_level=options.context_level,
            escape_markdown_syntax=options.escape,
            inplace=options.inplace,
            nobackup=options.nobackup,
            make_parents=True,
        )
    except ValueError as e:
        # Bad config values, or --inplace with stdin.
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    return 0


if __name__ == "__main__":
    sys.exit(main())
