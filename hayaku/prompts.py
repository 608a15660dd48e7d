"""Interactive prompts built on ``rich.prompt``.

``RichPrompter`` is the interactive collaborator handed to the resolver: it
asks for one variable at a time, choosing the prompt style from the
variable's kind.
"""

from __future__ import annotations

from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.prompt import Confirm, Prompt

from hayaku import utils
from hayaku.models import Template, VariableKind, VariableSpec, parse_bool_literal


class RichPrompter:
    """Asks for variable values on a Rich console."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or utils.console

    def ask(self, spec: VariableSpec, default: Optional[str] = None) -> str:
        if spec.kind is VariableKind.BOOL:
            initial = parse_bool_literal(default) if default is not None else None
            answer = Confirm.ask(spec.prompt, default=bool(initial), console=self.console)
            return "true" if answer else "false"

        if spec.kind is VariableKind.CHOICES:
            return Prompt.ask(
                spec.prompt,
                choices=spec.choices,
                default=default if default in spec.choices else spec.choices[0],
                console=self.console,
            )

        while True:
            if default is not None:
                value = Prompt.ask(spec.prompt, default=default, console=self.console)
            else:
                value = Prompt.ask(spec.prompt, console=self.console)
            if value.strip():
                return value
            self.console.print("[prompt.invalid]Value is required")

    def select_template(self, templates: list[Template]) -> Template:
        """Ask the user to pick one of *templates* by name."""
        for template in templates:
            description = f" - {escape(template.config.description)}" if template.config.description else ""
            self.console.print(
                f"  [bold]{escape(template.name)}[/bold] [dim]({template.origin.value}){description}[/dim]"
            )
        names = [template.name for template in templates]
        choice = Prompt.ask("Select a template", choices=names, console=self.console)
        return templates[names.index(choice)]

    def ask_destination(self) -> str:
        """Ask for the directory of the new project."""
        while True:
            value = Prompt.ask("Directory for the new project", console=self.console)
            if value.strip():
                return value.strip()
            self.console.print("[prompt.invalid]Value is required")

    def confirm_overwrite(self, destination: str) -> bool:
        """Ask whether generating into an existing directory is fine."""
        return Confirm.ask(
            f"Directory {escape(destination)} already exists. Write into it anyway?",
            default=False,
            console=self.console,
        )
