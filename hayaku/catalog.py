"""Discovery of available templates.

Every immediate subdirectory of a templates directory is a template.  Local
templates live under the user's hayaku directory; built-in templates ship
with the package.  A local template overrides a built-in one with the same
name.
"""

from __future__ import annotations

from pathlib import Path

from hayaku.config import HayakuPaths, load_template_config
from hayaku.errors import TemplateNotFoundError
from hayaku.models import Template, TemplateOrigin


def load_templates_from_dir(directory: str | Path, origin: TemplateOrigin) -> dict[str, Template]:
    """Return ``{name: Template}`` for each subdirectory of *directory*.

    A missing directory yields an empty mapping.
    """
    root = Path(directory)
    templates: dict[str, Template] = {}
    if not root.is_dir():
        return templates

    for entry in sorted(root.iterdir()):
        if not entry.is_dir() or entry.name.startswith("."):
            continue
        config = load_template_config(entry)
        templates[config.name] = Template(root=entry, config=config, origin=origin)
    return templates


class TemplateCatalog:
    """Local and built-in templates, looked up by name."""

    def __init__(
        self,
        local: dict[str, Template] | None = None,
        built_in: dict[str, Template] | None = None,
    ) -> None:
        self.local = local or {}
        self.built_in = built_in or {}

    @classmethod
    def discover(cls, paths: HayakuPaths) -> TemplateCatalog:
        """Scan the local and built-in template directories of *paths*."""
        return cls(
            local=load_templates_from_dir(paths.templates_dir, TemplateOrigin.LOCAL),
            built_in=load_templates_from_dir(paths.built_in_dir, TemplateOrigin.BUILTIN),
        )

    def __len__(self) -> int:
        return len(self.all())

    def get(self, name: str) -> Template:
        """Return the template called *name*, preferring local templates.

        Raises:
            TemplateNotFoundError: If no template has that name.
        """
        template = self.local.get(name) or self.built_in.get(name)
        if template is None:
            raise TemplateNotFoundError(name)
        return template

    def all(self) -> list[Template]:
        """All selectable templates: built-ins first, then locals, each by title.

        Built-ins shadowed by a local template of the same name are omitted.
        """
        built_in = [t for name, t in self.built_in.items() if name not in self.local]
        return sorted(built_in, key=lambda t: t.title) + sorted(
            self.local.values(), key=lambda t: t.title
        )
