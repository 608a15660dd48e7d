"""Shared pytest fixtures for the Hayaku test suite.

Provides reusable fixtures for:
- Building template directories on disk
- Sample variable schemas and global settings
- An isolated hayaku directory for CLI tests
"""

from __future__ import annotations

import textwrap
from collections.abc import Callable
from pathlib import Path

import pytest

from hayaku.models import (
    GlobalSettings,
    Template,
    TemplateConfig,
    TemplateOrigin,
    VariableKind,
    VariableSpec,
)


# ---------------------------------------------------------------------------
# Template trees
# ---------------------------------------------------------------------------


def write_tree(root: Path, files: dict[str, str | bytes]) -> Path:
    """Write ``{relative_path: content}`` under *root*; bytes are written raw."""
    root.mkdir(parents=True, exist_ok=True)
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content, encoding="utf-8")
    return root


@pytest.fixture
def make_template(tmp_path: Path) -> Callable[..., Template]:
    """Factory building a Template from a dict of files."""

    def _make(
        files: dict[str, str | bytes],
        variables: list[VariableSpec] | None = None,
        name: str = "sample",
    ) -> Template:
        root = write_tree(tmp_path / "templates" / name, files)
        return Template(
            root=root,
            config=TemplateConfig(name=name, variables=variables or []),
            origin=TemplateOrigin.LOCAL,
        )

    return _make


@pytest.fixture
def sample_metadata() -> str:
    """A hayaku.toml exercising every variable kind."""
    return textwrap.dedent(
        """\
        [template]
        name = "service"
        display_name = "Web service"
        description = "A small web service"
        author = "Ada"

        [env.crate_type]
        type = "choices"
        prompt = "Crate type"
        choices = ["lib", "bin"]
        default = "bin"

        [env.use_docker]
        type = "bool"
        prompt = "Add a Dockerfile?"
        default = true

        [env.author]
        prompt = "Author"
        """
    )


# ---------------------------------------------------------------------------
# Variables & settings
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_variables() -> list[VariableSpec]:
    return [
        VariableSpec(name="author", prompt="Author"),
        VariableSpec(name="license", kind=VariableKind.CHOICES, choices=["MIT", "BSD"], default="MIT"),
        VariableSpec(name="use_ci", kind=VariableKind.BOOL, default="false"),
    ]


@pytest.fixture
def empty_settings() -> GlobalSettings:
    return GlobalSettings()


# ---------------------------------------------------------------------------
# Isolated hayaku directory
# ---------------------------------------------------------------------------


@pytest.fixture
def hayaku_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point HAYAKU_DIRECTORY at an empty temp directory."""
    home = tmp_path / "hayaku-home"
    (home / "templates").mkdir(parents=True)
    monkeypatch.setenv("HAYAKU_DIRECTORY", str(home))
    monkeypatch.delenv("HAYAKU_SETTINGS", raising=False)
    return home
