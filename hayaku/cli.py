"""Hayaku command-line interface.

Usage::

    hayaku create -t python-package -p ./my-project
    hayaku create --template-dir ./my-template -p ./demo --set license=MIT --no-input
    hayaku list
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any

from rich.markup import escape
from rich.table import Table

from hayaku.catalog import TemplateCatalog
from hayaku.config import HayakuPaths, load_global_settings, load_template_config
from hayaku.errors import HayakuError
from hayaku.models import GenerationRequest, Template, TemplateOrigin
from hayaku.prompts import RichPrompter
from hayaku.utils import (
    console,
    print_error,
    print_info,
    print_success,
    print_summary_table,
    print_warning,
)
from hayaku.walker import generate_project


class UsageError(HayakuError):
    """Raised for invalid command-line input."""


# ---------------------------------------------------------------------------
# Argument helpers
# ---------------------------------------------------------------------------


def parse_assignments(assignments: list[str]) -> dict[str, str]:
    """Turn ``["name=value", ...]`` into a dict.

    Raises:
        UsageError: If an item has no ``=`` or an empty name.
    """
    answers: dict[str, str] = {}
    for item in assignments:
        name, sep, value = item.partition("=")
        if not sep or not name.strip():
            raise UsageError(f"Invalid --set value '{item}', expected NAME=VALUE")
        answers[name.strip()] = value
    return answers


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hayaku",
        description="Hayaku -- create new projects from template directories",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  hayaku create -t python-package -p ./my-project\n"
            "  hayaku create --template-dir ./tpl -p ./demo --set author=Ada --no-input\n"
            "  hayaku list\n"
        ),
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    create = subparsers.add_parser("create", help="Create a new project")
    source = create.add_mutually_exclusive_group()
    source.add_argument(
        "--template", "-t",
        default=None,
        help="Name of a local or built-in template",
    )
    source.add_argument(
        "--template-dir",
        default=None,
        help="A directory containing a hayaku template",
    )
    create.add_argument(
        "--project-path", "-p",
        default=None,
        help="The path where the new project should be created",
    )
    create.add_argument(
        "--set", "-s",
        dest="assignments",
        action="append",
        default=[],
        metavar="NAME=VALUE",
        help="Answer a template variable (repeatable)",
    )
    create.add_argument(
        "--no-input",
        action="store_true",
        help="Never prompt; fail on variables without a value",
    )
    create.add_argument(
        "--force", "-f",
        action="store_true",
        help="Write into an existing non-empty destination directory",
    )

    subparsers.add_parser("list", help="List available templates")
    return parser


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def _select_template(
    args: argparse.Namespace, paths: HayakuPaths, prompter: RichPrompter | None
) -> Template:
    if args.template_dir:
        root = Path(args.template_dir)
        return Template(root=root, config=load_template_config(root), origin=TemplateOrigin.LOCAL)

    catalog = TemplateCatalog.discover(paths)
    if args.template:
        return catalog.get(args.template)

    templates = catalog.all()
    if not templates:
        raise UsageError(
            f"No templates found. Add one under {paths.templates_dir} or pass --template-dir."
        )
    if prompter is None:
        raise UsageError("No template given; pass --template or --template-dir with --no-input")
    return prompter.select_template(templates)


def run_create(args: argparse.Namespace, paths: HayakuPaths) -> int:
    prompter = None if args.no_input else RichPrompter()
    settings = load_global_settings(paths.settings_path)
    template = _select_template(args, paths, prompter)

    project_path = args.project_path
    if not project_path:
        if prompter is None:
            raise UsageError("No destination given; pass --project-path with --no-input")
        project_path = prompter.ask_destination()
    destination = Path(project_path)

    force = args.force
    if (
        not force
        and prompter is not None
        and destination.is_dir()
        and any(destination.iterdir())
    ):
        if not prompter.confirm_overwrite(str(destination)):
            raise UsageError("Aborted by user")
        force = True

    answers: dict[str, Any] = parse_assignments(args.assignments)
    request = GenerationRequest(template=template, destination=destination, answers=answers)

    try:
        report = generate_project(
            request,
            settings,
            prompter=prompter,
            confirm_defaults=prompter is not None,
            force=force,
            console=console,
        )
    except HayakuError as exc:
        if exc.report is not None and exc.report.files_written:
            print_warning(
                f"{exc.report.files_written} file(s) were written to {destination} "
                "before the failure and were left in place."
            )
        raise

    print_summary_table(report.as_summary(), title=f"Created from {template.title}")
    print_success(f"Project created successfully! Now run:\n  cd {project_path}")
    return 0


def run_list(paths: HayakuPaths) -> int:
    catalog = TemplateCatalog.discover(paths)
    templates = catalog.all()
    if not templates:
        print_info(f"No templates found in {paths.templates_dir}")
        return 0

    table = Table(title="Available templates", show_header=True, header_style="bold cyan")
    table.add_column("Name", no_wrap=True)
    table.add_column("Origin", style="dim")
    table.add_column("Description")
    for template in templates:
        table.add_row(
            escape(template.name),
            template.origin.value,
            escape(template.config.description or ""),
        )
    console.print(table)
    return 0


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for ``hayaku`` and ``python -m hayaku``."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    paths = HayakuPaths.from_env()

    try:
        if args.command == "create":
            return run_create(args, paths)
        return run_list(paths)
    except HayakuError as exc:
        print_error(f"Error: {exc}")
        return 1
    except KeyboardInterrupt:
        print_error("Aborted.")
        return 130


if __name__ == "__main__":
    sys.exit(main())
