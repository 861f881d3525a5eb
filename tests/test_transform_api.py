"""Tests for the transformation pipeline and file API."""

from __future__ import annotations

import io
from pathlib import Path
from textwrap import dedent

import pytest

from pastemark import RegexReplacement, TransformSettings, transform_markdown
from pastemark.transform_api import transform_file, transform_files


def test_default_settings_are_a_no_op() -> None:
    text = "# Title\n\n\n\ntext\n"
    result = transform_markdown(text, TransformSettings())
    assert result.content == text
    assert result.changed is False


def test_full_pipeline() -> None:
    settings = TransformSettings(
        max_heading_level=2,
        cascade_heading_levels=True,
        remove_empty_lines=True,
        regex_replacements=(RegexReplacement("First", "1st"),),
    )
    input_doc = dedent(
        """
        # Title

        First paragraph.


        ## Section

        Second paragraph.

        ---
        """
    ).strip()
    expected = dedent(
        """
        ## Title

        1st paragraph.
        ### Section

        Second paragraph.

        ---
        """
    ).strip()

    result = transform_markdown(input_doc, settings)
    assert result.content == expected
    assert result.changed is True


def test_collapse_runs_before_replacements() -> None:
    settings = TransformSettings(
        collapse_blank_runs=True,
        regex_replacements=(RegexReplacement("\\n\\n", "\\n---\\n"),),
    )
    result = transform_markdown("a\n\n\n\nb", settings)
    assert result.content == "a\n---\nb"


def test_collapse_skipped_when_removing_empty_lines() -> None:
    settings = TransformSettings(collapse_blank_runs=True, remove_empty_lines=True)
    result = transform_markdown("a\n\n\n\nb", settings)
    assert result.content == "a\nb"
    assert result.changed is True


def test_preserve_line_breaks_follows_strip_setting() -> None:
    text = 'a\n<p class="preserve-line-break"></p>\nb'
    kept = transform_markdown(text, TransformSettings(remove_empty_lines=True))
    assert kept.content == "a\n\nb"

    stripped = transform_markdown(
        text, TransformSettings(remove_empty_lines=True, strip_line_breaks=True)
    )
    assert stripped.content == text


def test_escape_mode_skips_heading_levels() -> None:
    settings = TransformSettings(max_heading_level=3)
    result = transform_markdown("# Title", settings, escape_markdown_syntax=True)
    assert result.content == "\\# Title"
    assert result.changed is True


def test_escape_mode_then_replacements() -> None:
    settings = TransformSettings(regex_replacements=(RegexReplacement(r"\\", "/"),))
    result = transform_markdown("*x*", settings, escape_markdown_syntax=True)
    assert result.content == "/*x/*"


def test_contextual_cascade_uses_context_level() -> None:
    settings = TransformSettings(contextual_cascade=True)
    assert transform_markdown("# A", settings, context_level=3).content == "#### A"
    assert transform_markdown("# A", settings).content == "# A"


def test_changed_stays_true_when_later_stage_restores_text() -> None:
    settings = TransformSettings(
        max_heading_level=2,
        regex_replacements=(RegexReplacement("(?m)^## ", "# "),),
    )
    result = transform_markdown("# A", settings)
    assert result.content == "# A"
    assert result.changed is True


def test_bad_rule_does_not_abort() -> None:
    settings = TransformSettings(
        remove_empty_lines=True,
        regex_replacements=(RegexReplacement("[", "x"), RegexReplacement("b", "c")),
    )
    result = transform_markdown("a\n\nb", settings)
    assert result.content == "a\nc"
    assert result.changed is True


def test_input_not_mutated() -> None:
    rules = [RegexReplacement("a", "b")]
    settings = TransformSettings(regex_replacements=tuple(rules))
    transform_markdown("aaa", settings)
    assert rules == [RegexReplacement("a", "b")]


def test_transform_file_to_output(tmp_path: Path) -> None:
    src = tmp_path / "in.md"
    src.write_text("# Title\n")
    dest = tmp_path / "out" / "result.md"

    result = transform_file(src, dest, TransformSettings(max_heading_level=2))

    assert result.changed is True
    assert dest.read_text() == "## Title\n"
    assert src.read_text() == "# Title\n"


def test_transform_file_inplace(tmp_path: Path) -> None:
    src = tmp_path / "doc.md"
    src.write_text("a\n\n\n\nb\n")

    transform_file(
        src, "-", TransformSettings(collapse_blank_runs=True), inplace=True, nobackup=True
    )

    assert src.read_text() == "a\n\nb\n"
    assert sorted(p.name for p in tmp_path.iterdir()) == ["doc.md"]


def test_transform_file_stdout(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    src = tmp_path / "doc.md"
    src.write_text("## Title\n")
    transform_file(src, "-", TransformSettings(max_heading_level=3))
    assert capsys.readouterr().out == "### Title\n"


def test_transform_file_stdin(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setattr("sys.stdin", io.StringIO("# From stdin\n"))
    transform_file("-", "-", TransformSettings(), escape_markdown_syntax=True)
    assert capsys.readouterr().out == "\\# From stdin\n"


def test_inplace_with_stdin_is_an_error() -> None:
    with pytest.raises(ValueError, match="stdin"):
        transform_file("-", "-", TransformSettings(), inplace=True)


def test_multiple_files_need_inplace_or_stdout(tmp_path: Path) -> None:
    a = tmp_path / "a.md"
    b = tmp_path / "b.md"
    a.write_text("a")
    b.write_text("b")
    with pytest.raises(ValueError):
        transform_files([str(a), str(b)], str(tmp_path / "out.md"), TransformSettings())


def test_transform_files_inplace(tmp_path: Path) -> None:
    a = tmp_path / "a.md"
    b = tmp_path / "b.md"
    a.write_text("# A\n")
    b.write_text("text\n")

    results = transform_files(
        [str(a), str(b)], "-", TransformSettings(max_heading_level=2), inplace=True, nobackup=True
    )

    assert [r.changed for r in results] == [True, False]
    assert a.read_text() == "## A\n"
    assert b.read_text() == "text\n"


def test_oversized_repeat_rule_does_not_abort() -> None:
    settings = TransformSettings(
        regex_replacements=(RegexReplacement("a{4294967296}", "x"), RegexReplacement("b", "c")),
    )
    result = transform_markdown("ab", settings)
    assert result.content == "ac"
    assert result.changed is True
