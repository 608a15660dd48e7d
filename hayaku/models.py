"""Pydantic v2 models for templates, variables and generation runs.

Defines the declarative variable schema a template exposes, the user's global
settings, discovered templates, and the records produced while generating a
project.  Configuration records are frozen once built; only the
``GenerationReport`` is mutated while a tree walk is in progress.
"""

from __future__ import annotations

import re
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
    model_validator,
)


PROJECT_NAME_KEY = "PROJECT_NAME"

TRUE_LITERAL = "true"
FALSE_LITERAL = "false"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def canonical_key(raw: str) -> str:
    """Return the canonical UPPERCASE form of a variable name.

    ASCII letters are upper-cased, digits kept, everything else becomes ``_``.

    Examples::

        canonical_key("crate_type")  -> "CRATE_TYPE"
        canonical_key("with-hyphen") -> "WITH_HYPHEN"
    """
    return re.sub(r"[^A-Za-z0-9]", "_", raw).upper()


def stringify(value: Any) -> str:
    """Convert a scalar from a config file or answer into its string form.

    Booleans become ``"true"`` / ``"false"`` so they validate as bool literals.
    """
    if isinstance(value, bool):
        return TRUE_LITERAL if value else FALSE_LITERAL
    return str(value)


def parse_bool_literal(value: str) -> bool | None:
    """Parse ``"true"`` / ``"false"`` (case-insensitive); ``None`` otherwise."""
    lowered = value.strip().lower()
    if lowered == TRUE_LITERAL:
        return True
    if lowered == FALSE_LITERAL:
        return False
    return None


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class VariableKind(str, Enum):
    """The closed set of variable kinds a template may declare."""
    STRING = "string"
    BOOL = "bool"
    CHOICES = "choices"


class TemplateOrigin(str, Enum):
    """Where a template was discovered."""
    LOCAL = "local"
    BUILTIN = "builtin"


# ---------------------------------------------------------------------------
# Variable schema
# ---------------------------------------------------------------------------


class VariableSpec(BaseModel):
    """A single variable declared in a template's ``[env.<name>]`` section."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Variable name as declared")
    kind: VariableKind = Field(default=VariableKind.STRING, description="Variable kind")
    prompt: str = Field(
        default="", validate_default=True, description="Prompt text shown to the user"
    )
    default: Optional[str] = Field(default=None, description="Schema default, if any")
    choices: list[str] = Field(
        default_factory=list, description="Allowed values (choices kind only)"
    )

    @field_validator("prompt")
    @classmethod
    def _prompt_falls_back_to_name(cls, value: str, info: ValidationInfo) -> str:
        return value or info.data.get("name", "")

    @field_validator("default", mode="before")
    @classmethod
    def _normalise_default(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None:
            return None
        text = stringify(value)
        if info.data.get("kind") is VariableKind.BOOL:
            parsed = parse_bool_literal(text)
            if parsed is None:
                raise ValueError(
                    f"default '{text}' of bool variable '{info.data.get('name')}' must be true or false"
                )
            return stringify(parsed)
        return text

    @field_validator("choices", mode="before")
    @classmethod
    def _stringify_choices(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, (list, tuple)):
            return [stringify(v) for v in value]
        return value

    @model_validator(mode="after")
    def _check_kind_invariants(self) -> VariableSpec:
        if self.kind is VariableKind.CHOICES:
            if not self.choices:
                raise ValueError(f"variable '{self.name}' of type choices needs a non-empty 'choices' list")
            if self.default is not None and self.default not in self.choices:
                raise ValueError(
                    f"default '{self.default}' of variable '{self.name}' is not one of {self.choices}"
                )
        elif self.choices:
            raise ValueError(f"'choices' is only allowed for choices variables (variable '{self.name}')")
        return self

    @property
    def key(self) -> str:
        """Canonical UPPERCASE key under which the value is rendered."""
        return canonical_key(self.name)


# ---------------------------------------------------------------------------
# Settings & templates
# ---------------------------------------------------------------------------


class GlobalSettings(BaseModel):
    """User-wide settings loaded once per process from ``hayaku.settings.toml``."""

    model_config = ConfigDict(frozen=True)

    global_env: dict[str, str] = Field(
        default_factory=dict, description="Variable name -> default value for every template"
    )

    @field_validator("global_env", mode="before")
    @classmethod
    def _stringify_values(cls, value: Any) -> Any:
        if value is None:
            return {}
        if isinstance(value, Mapping):
            return {str(k): stringify(v) for k, v in value.items()}
        return value

    @property
    def env(self) -> Mapping[str, str]:
        """Read-only view over ``global_env``."""
        return MappingProxyType(self.global_env)


class TemplateConfig(BaseModel):
    """Metadata parsed from a template directory's ``hayaku.toml``."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Template identifier")
    display_name: Optional[str] = Field(default=None, description="Human-readable name")
    description: Optional[str] = Field(default=None, description="One-line description")
    author: Optional[str] = Field(default=None, description="Template author")
    variables: list[VariableSpec] = Field(
        default_factory=list, description="Declared variables in declaration order"
    )

    @model_validator(mode="after")
    def _check_unique_keys(self) -> TemplateConfig:
        seen: set[str] = set()
        for spec in self.variables:
            if spec.key in seen:
                raise ValueError(f"variable '{spec.name}' is declared more than once")
            seen.add(spec.key)
        return self


class Template(BaseModel):
    """One selectable template source."""

    model_config = ConfigDict(frozen=True)

    root: Path = Field(..., description="Template root directory")
    config: TemplateConfig
    origin: TemplateOrigin = Field(default=TemplateOrigin.LOCAL)

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def title(self) -> str:
        """Display name, falling back to the template name."""
        return self.config.display_name or self.config.name


class GenerationRequest(BaseModel):
    """A single ``create`` invocation: which template, where, and with what answers."""

    template: Template
    destination: Path
    answers: dict[str, Any] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Render context & report
# ---------------------------------------------------------------------------


class RenderContext(Mapping[str, str]):
    """Immutable mapping of UPPERCASE variable name to string value.

    Built once per generation by the resolver and consumed by both the path
    substitution and content rendering passes.
    """

    __slots__ = ("_entries",)

    def __init__(self, entries: Mapping[str, str]) -> None:
        if PROJECT_NAME_KEY not in entries:
            raise ValueError(f"render context must contain {PROJECT_NAME_KEY}")
        self._entries = MappingProxyType({str(k): str(v) for k, v in entries.items()})

    def __getitem__(self, key: str) -> str:
        return self._entries[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"RenderContext({dict(self._entries)!r})"

    @property
    def project_name(self) -> str:
        return self._entries[PROJECT_NAME_KEY]

    def as_template_env(self) -> dict[str, Any]:
        """Return a fresh dict suitable as a templating engine environment."""
        env: dict[str, Any] = dict(self._entries)
        env["project_name"] = self._entries[PROJECT_NAME_KEY]
        return env


@dataclass
class GenerationReport:
    """What a tree walk produced, complete or partial."""

    destination: Path
    context: RenderContext
    files_written: int = 0
    directories_created: int = 0
    files_rendered: int = 0
    files_copied: int = 0
    written: list[str] = field(default_factory=list)

    def as_summary(self) -> dict[str, str]:
        """Return a label -> value mapping for console summary tables."""
        return {
            "Destination": str(self.destination),
            "Files written": str(self.files_written),
            "Rendered": str(self.files_rendered),
            "Copied": str(self.files_copied),
            "Directories created": str(self.directories_created),
        }
