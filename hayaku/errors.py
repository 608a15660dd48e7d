"""Exception hierarchy for Hayaku.

Every error raised by the generation engine derives from ``HayakuError`` so
that the CLI can report it uniformly.  Errors raised while walking a template
tree carry the partial ``GenerationReport`` built up to the point of failure.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from hayaku.models import GenerationReport


class HayakuError(Exception):
    """Base class for all Hayaku errors."""

    def __init__(self, message: str, *, report: GenerationReport | None = None) -> None:
        self.report = report
        super().__init__(message)


class ConfigError(HayakuError):
    """Raised when a template metadata file or the settings file is invalid."""

    def __init__(self, message: str, path: str | Path | None = None) -> None:
        self.path = Path(path) if path is not None else None
        super().__init__(message)


class ResolutionError(HayakuError):
    """Raised when a template variable cannot be determined or is invalid."""

    def __init__(self, message: str, variable: str, value: Any = None) -> None:
        self.variable = variable
        self.value = value
        super().__init__(message)


class RenderError(HayakuError):
    """Raised when the templating engine fails on a file's content."""

    def __init__(
        self,
        message: str,
        path: str | Path | None = None,
        line: int | None = None,
    ) -> None:
        self.path = Path(path) if path is not None else None
        self.line = line
        super().__init__(message)


class PathError(HayakuError):
    """Raised when a substituted destination path is unusable.

    That is, it would leave the destination, or it collides with a file
    already written by the same run.
    """

    def __init__(self, message: str, path: str) -> None:
        self.path = path
        super().__init__(message)


class GenerationIOError(HayakuError, OSError):
    """Raised when the filesystem refuses a write during generation."""

    def __init__(
        self,
        message: str,
        path: str | Path | None = None,
        *,
        report: GenerationReport | None = None,
    ) -> None:
        HayakuError.__init__(self, message, report=report)
        self.path = Path(path) if path is not None else None

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


class DestinationConflictError(GenerationIOError):
    """Raised when the destination already exists and is not empty."""


class TemplateNotFoundError(HayakuError):
    """Raised when a template name is unknown to the catalog."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Template '{name}' not found")
