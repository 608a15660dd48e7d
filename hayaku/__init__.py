"""Hayaku -- scaffold new projects from template directories.

Copies a template tree into a new project directory, substituting
``[NAME]`` tokens in paths and rendering file contents with Jinja2.  Variable
values come from the template's ``hayaku.toml`` schema, the user's global
settings, and explicit answers.

Quick usage::

    from pathlib import Path

    from hayaku import GenerationRequest, generate_project, load_template_config
    from hayaku.models import Template

    template = Template(root=Path("my-template"), config=load_template_config("my-template"))
    request = GenerationRequest(template=template, destination=Path("/tmp/demo"))
    report = generate_project(request)
"""

from hayaku.catalog import TemplateCatalog
from hayaku.config import HayakuPaths, load_global_settings, load_template_config
from hayaku.errors import (
    ConfigError,
    DestinationConflictError,
    GenerationIOError,
    HayakuError,
    PathError,
    RenderError,
    ResolutionError,
    TemplateNotFoundError,
)
from hayaku.models import (
    GenerationReport,
    GenerationRequest,
    GlobalSettings,
    RenderContext,
    Template,
    TemplateConfig,
    VariableKind,
    VariableSpec,
)
from hayaku.paths import substitute_path
from hayaku.renderer import ContentRenderer
from hayaku.resolver import build_context, resolve
from hayaku.walker import TreeWalker, generate_project

__all__ = [
    "ConfigError",
    "ContentRenderer",
    "DestinationConflictError",
    "GenerationIOError",
    "GenerationReport",
    "GenerationRequest",
    "GlobalSettings",
    "HayakuError",
    "HayakuPaths",
    "PathError",
    "RenderContext",
    "RenderError",
    "ResolutionError",
    "Template",
    "TemplateCatalog",
    "TemplateConfig",
    "TemplateNotFoundError",
    "TreeWalker",
    "VariableKind",
    "VariableSpec",
    "build_context",
    "generate_project",
    "load_global_settings",
    "load_template_config",
    "resolve",
    "substitute_path",
]
