"""Jinja2 content rendering for template files.

Provides the ContentRenderer class, a thin adapter that renders a template
file's bytes with the RenderContext as its variable environment.  Undefined
variables are errors unless guarded with the ``default`` filter, so a typo in
a template never silently produces an empty string.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Mapping, Protocol

from jinja2 import (
    Environment,
    StrictUndefined,
    TemplateError,
    TemplateSyntaxError,
    UndefinedError,
)

from hayaku.errors import RenderError


# ---------------------------------------------------------------------------
# Renderer contract
# ---------------------------------------------------------------------------


class Renderer(Protocol):
    """Anything that can turn template bytes plus a context into output bytes."""

    def render(
        self,
        template_bytes: bytes,
        ctx: Mapping[str, str],
        *,
        source: str | Path | None = None,
    ) -> bytes:
        ...


# ---------------------------------------------------------------------------
# ContentRenderer
# ---------------------------------------------------------------------------


class ContentRenderer:
    """Renders file contents through a Jinja2 environment.

    The environment exposes every RenderContext key (UPPERCASE), the
    lower-case ``project_name`` alias, and any *extra_globals* such as
    ``template_name``.
    """

    def __init__(self, extra_globals: Mapping[str, Any] | None = None) -> None:
        self.env = Environment(
            autoescape=False,
            undefined=StrictUndefined,
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters["slugify"] = _slugify_filter
        self.env.filters["pascal_case"] = _pascal_case_filter
        self.env.filters["snake_case"] = _snake_case_filter
        self.env.filters["camel_case"] = _camel_case_filter
        if extra_globals:
            self.env.globals.update(extra_globals)
        self._crlf_env: Environment | None = None

    def render(
        self,
        template_bytes: bytes,
        ctx: Mapping[str, str],
        *,
        source: str | Path | None = None,
    ) -> bytes:
        """Render *template_bytes* with *ctx* and return UTF-8 bytes.

        Args:
            template_bytes: Raw UTF-8 template content.
            ctx: The RenderContext (or any string mapping) for this run.
            source: Path of the template file, used in error messages.

        Raises:
            RenderError: On invalid UTF-8, template syntax errors, or
                references to undefined variables.
        """
        label = str(source) if source is not None else "<template>"
        try:
            text = template_bytes.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise RenderError(
                f"Template file {label} is not valid UTF-8: {exc.reason}",
                path=source,
            ) from exc

        return self.render_string(text, ctx, source=source).encode("utf-8")

    def render_string(
        self,
        template_string: str,
        ctx: Mapping[str, str],
        *,
        source: str | Path | None = None,
    ) -> str:
        """Render an inline template string with the provided context."""
        label = str(source) if source is not None else "<template>"
        environment = _template_env(ctx)
        try:
            template = self._environment_for(template_string).from_string(template_string)
            return template.render(**environment)
        except TemplateSyntaxError as exc:
            raise RenderError(
                f"Syntax error in template {label} at line {exc.lineno}: {exc.message}",
                path=source,
                line=exc.lineno,
            ) from exc
        except UndefinedError as exc:
            raise RenderError(
                f"Failed to render template {label}: {exc.message}",
                path=source,
            ) from exc
        except TemplateError as exc:
            raise RenderError(
                f"Failed to render template {label}: {exc}",
                path=source,
            ) from exc

    def _environment_for(self, template_string: str) -> Environment:
        """Pick the environment whose newline sequence matches the source.

        Jinja2 rewrites every line ending to ``newline_sequence``, so CRLF
        files are rendered through an overlay that writes ``\\r\\n`` back.
        """
        if "\r\n" not in template_string:
            return self.env
        if self._crlf_env is None:
            self._crlf_env = self.env.overlay(newline_sequence="\r\n")
        return self._crlf_env


# ---------------------------------------------------------------------------
# Jinja2 custom filters
# ---------------------------------------------------------------------------

def _slugify_filter(value: str) -> str:
    """Convert a string to a URL/filename-safe slug."""
    slug = re.sub(r"[^a-z0-9]+", "-", value.lower().strip())
    return slug.strip("-")


def _pascal_case_filter(value: str) -> str:
    """Convert ``some-thing`` or ``some_thing`` to ``SomeThing``."""
    parts = re.split(r"[-_\s]+", value)
    return "".join(word.capitalize() for word in parts if word)


def _snake_case_filter(value: str) -> str:
    """Convert ``SomeThing`` or ``some-thing`` to ``some_thing``."""
    s1 = re.sub(r"(.)([A-Z][a-z]+)", r"\1_\2", value)
    s2 = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", s1)
    return re.sub(r"[-\s]+", "_", s2).lower()


def _camel_case_filter(value: str) -> str:
    """Convert ``some-thing`` or ``some_thing`` to ``someThing``."""
    pascal = _pascal_case_filter(value)
    if pascal:
        return pascal[0].lower() + pascal[1:]
    return ""


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _template_env(ctx: Mapping[str, str]) -> dict[str, Any]:
    as_template_env = getattr(ctx, "as_template_env", None)
    if as_template_env is not None:
        return as_template_env()
    return dict(ctx)
