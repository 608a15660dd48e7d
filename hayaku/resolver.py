"""Variable resolution: from schema, settings and answers to a RenderContext.

Each declared variable takes the first value found in this order:

1. an explicit answer (``--set`` flags or prompt input),
2. the user's global settings (``[global_env]``),
3. the template's own ``default``,
4. the prompter, when one is supplied; otherwise resolution fails.

``PROJECT_NAME`` is always injected from the destination's final path
segment unless an answer or a global value names it explicitly.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any, Optional, Protocol

from hayaku.errors import ResolutionError
from hayaku.models import (
    PROJECT_NAME_KEY,
    GlobalSettings,
    RenderContext,
    Template,
    VariableKind,
    VariableSpec,
    canonical_key,
    parse_bool_literal,
    stringify,
)


# ---------------------------------------------------------------------------
# Prompt collaborator
# ---------------------------------------------------------------------------


class Prompter(Protocol):
    """Interactive source of values for variables the resolver cannot settle."""

    def ask(self, spec: VariableSpec, default: Optional[str] = None) -> str:
        """Ask the user for a value of *spec*, pre-filled with *default*."""
        ...


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def project_name_from_path(destination: str | Path) -> str:
    """Return the project name implied by a destination path.

    ``/tmp/foo/my-app`` gives ``my-app``.  Relative paths such as ``.`` are
    resolved against the working directory first.

    Raises:
        ResolutionError: If no final path segment can be determined.
    """
    path = Path(destination)
    name = path.name
    if name in ("", ".", ".."):
        name = path.resolve().name
    if not name:
        raise ResolutionError(
            f"Unable to determine project name from destination {destination}",
            variable=PROJECT_NAME_KEY,
            value=str(destination),
        )
    return name


def resolve(
    settings: GlobalSettings,
    variables: Sequence[VariableSpec],
    answers: Mapping[str, Any],
    *,
    destination: str | Path,
    prompter: Prompter | None = None,
    confirm_defaults: bool = False,
) -> RenderContext:
    """Merge global settings, a variable schema and answers into a RenderContext.

    Args:
        settings: User-wide settings; values shadow schema defaults.
        variables: The template's declared variables, in declaration order.
        answers: Explicit values keyed by declared name or canonical key.
        destination: Path of the project being generated; its final segment
            becomes ``PROJECT_NAME``.
        prompter: Optional interactive collaborator, asked for every variable
            that has no answer, global value or default.
        confirm_defaults: When ``True`` (and a prompter is given) the
            prompter is also asked for variables that resolved from settings
            or defaults, pre-filled with that value.

    Returns:
        An immutable context with UPPERCASE keys and string values.

    Raises:
        ResolutionError: If a variable is unresolved in non-interactive mode,
            or its value fails the kind's validation.
    """
    entries: dict[str, str] = {}

    # Undeclared globals and answers are still visible to templates.
    for name, value in settings.global_env.items():
        entries[canonical_key(name)] = stringify(value)
    for name, value in answers.items():
        entries[canonical_key(name)] = stringify(value)

    for spec in variables:
        if spec.key == PROJECT_NAME_KEY:
            continue
        entries[spec.key] = _resolve_variable(
            spec, settings, answers, prompter, confirm_defaults
        )

    explicit_name = _lookup(answers, PROJECT_NAME_KEY)
    if explicit_name is None:
        explicit_name = _lookup(settings.global_env, PROJECT_NAME_KEY)
    if explicit_name is not None and stringify(explicit_name):
        entries[PROJECT_NAME_KEY] = stringify(explicit_name)
    else:
        entries[PROJECT_NAME_KEY] = project_name_from_path(destination)

    return RenderContext(entries)


def build_context(
    template: Template,
    destination: str | Path,
    settings: GlobalSettings | None = None,
    answers: Mapping[str, Any] | None = None,
    *,
    prompter: Prompter | None = None,
    confirm_defaults: bool = False,
) -> RenderContext:
    """Resolve the RenderContext for generating *template* into *destination*."""
    return resolve(
        settings or GlobalSettings(),
        template.config.variables,
        answers or {},
        destination=destination,
        prompter=prompter,
        confirm_defaults=confirm_defaults,
    )


def validate_value(spec: VariableSpec, value: Any) -> str:
    """Check *value* against the kind of *spec* and return its string form.

    Bool values are normalised to ``"true"`` / ``"false"``.

    Raises:
        ResolutionError: If the value is not valid for the variable's kind.
    """
    text = stringify(value)
    if spec.kind is VariableKind.BOOL:
        parsed = parse_bool_literal(text)
        if parsed is None:
            raise ResolutionError(
                f"Variable '{spec.name}' expects true or false, got '{text}'",
                variable=spec.name,
                value=text,
            )
        return stringify(parsed)
    if spec.kind is VariableKind.CHOICES and text not in spec.choices:
        raise ResolutionError(
            f"Variable '{spec.name}' must be one of {', '.join(spec.choices)}; got '{text}'",
            variable=spec.name,
            value=text,
        )
    return text


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _lookup(mapping: Mapping[str, Any], name: str) -> Any:
    """Find *name* in *mapping* by exact name, then by canonical key."""
    if name in mapping:
        return mapping[name]
    wanted = canonical_key(name)
    for key, value in mapping.items():
        if canonical_key(key) == wanted:
            return value
    return None


def _resolve_variable(
    spec: VariableSpec,
    settings: GlobalSettings,
    answers: Mapping[str, Any],
    prompter: Prompter | None,
    confirm_defaults: bool,
) -> str:
    answer = _lookup(answers, spec.name)
    if answer is not None:
        return validate_value(spec, answer)

    effective = _lookup(settings.global_env, spec.name)
    if effective is None:
        effective = spec.default

    if effective is not None and not (prompter is not None and confirm_defaults):
        return validate_value(spec, effective)

    if prompter is None:
        raise ResolutionError(
            f"No value for required variable '{spec.name}' "
            "(no answer, no global setting and no default)",
            variable=spec.name,
        )

    prefill = stringify(effective) if effective is not None else None
    return validate_value(spec, prompter.ask(spec, prefill))
