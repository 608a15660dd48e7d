"""Hayaku configuration: directory layout and metadata loading.

Locates the user's hayaku directory, and parses the two TOML documents the
tool reads: a template's ``hayaku.toml`` and the user's
``hayaku.settings.toml``.  Parsed data is validated into the pydantic models
of ``hayaku.models`` so the generation engine only ever sees typed records.
"""

from __future__ import annotations

import os
import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from hayaku.errors import ConfigError
from hayaku.models import GlobalSettings, TemplateConfig, VariableSpec


METADATA_FILENAME = "hayaku.toml"
SETTINGS_FILENAME = "hayaku.settings.toml"
TEMPLATES_DIRNAME = "templates"

_BUILT_IN_DIR = Path(__file__).parent / "built_in"


class HayakuPaths(BaseModel):
    """Filesystem locations used by the CLI.

    Instances are typically created once via ``from_env`` and then passed to
    the catalog and settings loader.
    """

    hayaku_dir: Path = Field(default_factory=lambda: Path.home() / ".hayaku")
    settings_override: Path | None = Field(
        default=None, description="Explicit settings file, bypassing hayaku_dir"
    )
    built_in_dir: Path = Field(default=_BUILT_IN_DIR)

    # ------------------------------------------------------------------
    # Derived paths (read-only properties)
    # ------------------------------------------------------------------

    @property
    def templates_dir(self) -> Path:
        """Directory holding the user's local templates."""
        return self.hayaku_dir / TEMPLATES_DIRNAME

    @property
    def settings_path(self) -> Path:
        """Path to the user's global settings file."""
        return self.settings_override or self.hayaku_dir / SETTINGS_FILENAME

    @classmethod
    def from_env(cls) -> HayakuPaths:
        """Build ``HayakuPaths`` from environment variables.

        Recognised variables (all optional):
            HAYAKU_DIRECTORY, HAYAKU_SETTINGS.
        """
        kwargs: dict[str, Any] = {}
        if os.environ.get("HAYAKU_DIRECTORY"):
            kwargs["hayaku_dir"] = Path(os.environ["HAYAKU_DIRECTORY"]).expanduser()
        if os.environ.get("HAYAKU_SETTINGS"):
            kwargs["settings_override"] = Path(os.environ["HAYAKU_SETTINGS"]).expanduser()
        return cls(**kwargs)


# ---------------------------------------------------------------------------
# Template metadata
# ---------------------------------------------------------------------------


def parse_template_config(
    data: Mapping[str, Any],
    fallback_name: str,
    source: str | Path | None = None,
) -> TemplateConfig:
    """Build a TemplateConfig from an already-parsed metadata document.

    Args:
        data: The parsed document with optional ``template`` and ``env``
            tables.
        fallback_name: Name used when ``template.name`` is absent, normally
            the template directory's name.
        source: File the data came from, for error messages.

    Raises:
        ConfigError: If a section has the wrong shape or a variable is invalid.
    """
    label = str(source) if source is not None else "template metadata"

    template_section = data.get("template", {})
    env_section = data.get("env", {})
    if not isinstance(template_section, Mapping):
        raise ConfigError(f"[template] in {label} must be a table", path=source)
    if not isinstance(env_section, Mapping):
        raise ConfigError(f"[env] in {label} must be a table", path=source)

    variables: list[VariableSpec] = []
    for name, table in env_section.items():
        if not isinstance(table, Mapping):
            raise ConfigError(f"[env.{name}] in {label} must be a table", path=source)
        try:
            variables.append(
                VariableSpec(
                    name=name,
                    kind=table.get("type", "string"),
                    prompt=table.get("prompt", ""),
                    default=table.get("default"),
                    choices=table.get("choices", []),
                )
            )
        except ValidationError as exc:
            raise ConfigError(
                f"Invalid variable [env.{name}] in {label}:\n{_format_errors(exc)}",
                path=source,
            ) from exc

    try:
        return TemplateConfig(
            name=template_section.get("name") or fallback_name,
            display_name=template_section.get("display_name"),
            description=template_section.get("description"),
            author=template_section.get("author"),
            variables=variables,
        )
    except ValidationError as exc:
        raise ConfigError(
            f"Invalid template metadata in {label}:\n{_format_errors(exc)}",
            path=source,
        ) from exc


def load_template_config(template_dir: str | Path) -> TemplateConfig:
    """Load ``hayaku.toml`` from *template_dir*.

    A directory without a metadata file is still a valid template; its name
    is the directory's name and it declares no variables.

    Raises:
        ConfigError: If *template_dir* is not a directory or the metadata file
            cannot be read or parsed.
    """
    root = Path(template_dir)
    if not root.is_dir():
        raise ConfigError(f"Path {root} is not a directory", path=root)

    config_path = root / METADATA_FILENAME
    fallback_name = root.resolve().name
    if not config_path.exists():
        return TemplateConfig(name=fallback_name)

    data = _read_toml(config_path)
    return parse_template_config(data, fallback_name, source=config_path)


# ---------------------------------------------------------------------------
# Global settings
# ---------------------------------------------------------------------------


def load_global_settings(path: str | Path) -> GlobalSettings:
    """Load the user's global settings; a missing file yields empty settings.

    Raises:
        ConfigError: If the file exists but cannot be parsed or validated.
    """
    settings_path = Path(path)
    if not settings_path.exists():
        return GlobalSettings()

    data = _read_toml(settings_path)
    try:
        return GlobalSettings.model_validate({"global_env": data.get("global_env", {})})
    except ValidationError as exc:
        raise ConfigError(
            f"Invalid settings file {settings_path}:\n{_format_errors(exc)}",
            path=settings_path,
        ) from exc


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _read_toml(path: Path) -> dict[str, Any]:
    try:
        with path.open("rb") as fh:
            return tomllib.load(fh)
    except OSError as exc:
        raise ConfigError(f"Failed to read config file {path}: {exc}", path=path) from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Failed to parse config file {path}:\n{exc}", path=path) from exc
    except UnicodeDecodeError as exc:
        raise ConfigError(
            f"Failed to parse config file {path}: not valid UTF-8 ({exc.reason})",
            path=path,
        ) from exc


def _format_errors(exc: ValidationError) -> str:
    """Render pydantic validation errors as short indented lines."""
    lines = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"]) or "value"
        lines.append(f"  {location}: {error['msg']}")
    return "\n".join(lines)
