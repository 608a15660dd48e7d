"""Tests for the command-line interface (hayaku.cli)."""

from __future__ import annotations

import io
from pathlib import Path
from unittest.mock import patch

import pytest
from rich.console import Console

from hayaku.cli import UsageError, main, parse_assignments


@pytest.fixture
def output(monkeypatch) -> io.StringIO:
    """Route all CLI output to a wide in-memory console."""
    buffer = io.StringIO()
    wide = Console(file=buffer, width=400)
    monkeypatch.setattr("hayaku.utils.console", wide)
    monkeypatch.setattr("hayaku.cli.console", wide)
    return buffer


def _write_template(root: Path) -> Path:
    root.mkdir(parents=True)
    (root / "hayaku.toml").write_text(
        '[template]\nname = "svc"\n\n'
        '[env.author]\nprompt = "Author"\n\n'
        '[env.license]\ntype = "choices"\nchoices = ["MIT", "BSD"]\ndefault = "MIT"\n',
        encoding="utf-8",
    )
    (root / "README.md.jinja").write_text(
        "# {{ PROJECT_NAME }}\n{{ AUTHOR }} / {{ LICENSE }}\n", encoding="utf-8"
    )
    (root / "[PROJECT_NAME].txt").write_text("x", encoding="utf-8")
    return root


# ---------------------------------------------------------------------------
# parse_assignments
# ---------------------------------------------------------------------------


class TestParseAssignments:
    @pytest.mark.unit
    def test_pairs(self):
        assert parse_assignments(["a=1", "b=x=y", "c="]) == {"a": "1", "b": "x=y", "c": ""}

    @pytest.mark.unit
    @pytest.mark.parametrize("item", ["novalue", "=value", " =x"])
    def test_invalid(self, item):
        with pytest.raises(UsageError):
            parse_assignments([item])


# ---------------------------------------------------------------------------
# create
# ---------------------------------------------------------------------------


@pytest.mark.integration
class TestCreate:
    def test_non_interactive(self, hayaku_home, tmp_path, output):
        template = _write_template(tmp_path / "tpl")
        dest = tmp_path / "my-app"
        code = main(
            [
                "create",
                "--template-dir", str(template),
                "-p", str(dest),
                "--set", "author=Ada",
                "--set", "license=BSD",
                "--no-input",
            ]
        )
        assert code == 0
        assert (dest / "README.md").read_text() == "# my-app\nAda / BSD\n"
        assert (dest / "my-app.txt").exists()
        assert "Project created successfully" in output.getvalue()

    def test_global_settings_used(self, hayaku_home, tmp_path):
        (hayaku_home / "hayaku.settings.toml").write_text(
            '[global_env]\nauthor = "Grace"\n', encoding="utf-8"
        )
        template = _write_template(tmp_path / "tpl")
        dest = tmp_path / "app"
        code = main(["create", "--template-dir", str(template), "-p", str(dest), "--no-input"])
        assert code == 0
        assert "Grace / MIT" in (dest / "README.md").read_text()

    def test_missing_variable_fails(self, hayaku_home, tmp_path, output):
        template = _write_template(tmp_path / "tpl")
        dest = tmp_path / "app"
        code = main(["create", "--template-dir", str(template), "-p", str(dest), "--no-input"])
        assert code == 1
        assert "author" in output.getvalue()
        assert not dest.exists()

    def test_invalid_choice_fails(self, hayaku_home, tmp_path):
        template = _write_template(tmp_path / "tpl")
        code = main(
            [
                "create", "--template-dir", str(template), "-p", str(tmp_path / "app"),
                "--set", "author=Ada", "--set", "license=GPL", "--no-input",
            ]
        )
        assert code == 1

    def test_non_empty_destination_refused(self, hayaku_home, tmp_path, output):
        template = _write_template(tmp_path / "tpl")
        dest = tmp_path / "app"
        dest.mkdir()
        (dest / "existing.txt").write_text("keep")
        code = main(
            ["create", "--template-dir", str(template), "-p", str(dest), "--set", "author=A", "--no-input"]
        )
        assert code == 1
        assert "not empty" in output.getvalue()
        assert not (dest / "README.md").exists()

    def test_force_writes_into_existing(self, hayaku_home, tmp_path):
        template = _write_template(tmp_path / "tpl")
        dest = tmp_path / "app"
        dest.mkdir()
        (dest / "existing.txt").write_text("keep")
        code = main(
            [
                "create", "--template-dir", str(template), "-p", str(dest),
                "--set", "author=A", "--no-input", "--force",
            ]
        )
        assert code == 0
        assert (dest / "README.md").exists()
        assert (dest / "existing.txt").read_text() == "keep"

    def test_unknown_template(self, hayaku_home, tmp_path, output):
        code = main(["create", "-t", "nope", "-p", str(tmp_path / "x"), "--no-input"])
        assert code == 1
        assert "nope" in output.getvalue()

    def test_local_template_by_name(self, hayaku_home, tmp_path):
        _write_template(hayaku_home / "templates" / "svc")
        dest = tmp_path / "app"
        code = main(["create", "-t", "svc", "-p", str(dest), "--set", "author=A", "--no-input"])
        assert code == 0
        assert (dest / "README.md").exists()

    def test_no_template_with_no_input(self, hayaku_home, tmp_path):
        code = main(["create", "-p", str(tmp_path / "x"), "--no-input"])
        assert code == 1

    def test_no_destination_with_no_input(self, hayaku_home, tmp_path):
        template = _write_template(tmp_path / "tpl")
        code = main(["create", "--template-dir", str(template), "--no-input"])
        assert code == 1

    def test_partial_failure_reported(self, hayaku_home, tmp_path, output):
        template = tmp_path / "tpl"
        template.mkdir()
        (template / "a.txt").write_text("fine")
        (template / "b.txt").write_text("{{ UNDEFINED }}")
        dest = tmp_path / "app"
        code = main(["create", "--template-dir", str(template), "-p", str(dest), "--no-input"])
        out = output.getvalue()
        assert code == 1
        assert "1 file(s) were written" in out
        assert "b.txt" in out
        assert (dest / "a.txt").exists()

    def test_interactive_prompts(self, hayaku_home, tmp_path):
        template = _write_template(tmp_path / "tpl")
        dest = tmp_path / "app"
        with patch("hayaku.cli.RichPrompter.ask", side_effect=["Ada", "BSD"]) as ask:
            code = main(["create", "--template-dir", str(template), "-p", str(dest)])
        assert code == 0
        assert ask.call_count == 2
        assert "Ada / BSD" in (dest / "README.md").read_text()

    def test_interactive_overwrite_declined(self, hayaku_home, tmp_path):
        template = _write_template(tmp_path / "tpl")
        dest = tmp_path / "app"
        dest.mkdir()
        (dest / "existing.txt").write_text("keep")
        with patch("hayaku.cli.RichPrompter.confirm_overwrite", return_value=False):
            code = main(["create", "--template-dir", str(template), "-p", str(dest)])
        assert code == 1
        assert not (dest / "README.md").exists()


# ---------------------------------------------------------------------------
# list
# ---------------------------------------------------------------------------


@pytest.mark.integration
class TestList:
    def test_lists_built_in_and_local(self, hayaku_home, output):
        _write_template(hayaku_home / "templates" / "svc")
        code = main(["list"])
        out = output.getvalue()
        assert code == 0
        assert "basic" in out
        assert "svc" in out

    def test_requires_subcommand(self, hayaku_home):
        with pytest.raises(SystemExit):
            main([])
