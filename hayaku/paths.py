"""Bracket-token substitution for template file and directory names.

A template may name an entry ``src/[PROJECT_NAME]/main.py``; each ``[NAME]``
token whose ``NAME`` exists in the RenderContext is replaced by its value.
Unknown tokens are kept verbatim so a partially configured template still
produces an inspectable tree.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from pathlib import PurePath, PurePosixPath

from hayaku.errors import PathError


_TOKEN_PATTERN = re.compile(r"\[(\w+)\]")

# Suffixes marking a file as an explicit template; stripped on output.
TEMPLATE_SUFFIXES: tuple[str, ...] = (".jinja", ".j2", ".tera")


def substitute_path(relative_path: str | PurePath, ctx: Mapping[str, str]) -> str:
    """Replace every resolvable ``[NAME]`` token in *relative_path*.

    Lookup is case-sensitive.  Substituted values are not re-scanned, so a
    value containing ``[OTHER]`` is written literally.

    Examples::

        substitute_path("init_[PROJECT_NAME].rs", {"PROJECT_NAME": "demo"})
            -> "init_demo.rs"
        substitute_path("[MISSING]/a.txt", {"PROJECT_NAME": "demo"})
            -> "[MISSING]/a.txt"
    """
    text = relative_path.as_posix() if isinstance(relative_path, PurePath) else relative_path

    def _replace(match: re.Match[str]) -> str:
        return ctx.get(match.group(1), match.group(0))

    return _TOKEN_PATTERN.sub(_replace, text)


def find_tokens(relative_path: str) -> list[str]:
    """Return the names of all bracket tokens in *relative_path*, in order."""
    return _TOKEN_PATTERN.findall(relative_path)


def has_template_suffix(relative_path: str) -> bool:
    """Return ``True`` if the file name ends with a template suffix."""
    return relative_path.lower().endswith(TEMPLATE_SUFFIXES)


def strip_template_suffix(relative_path: str) -> str:
    """Drop a trailing ``.jinja`` / ``.j2`` / ``.tera`` suffix, if present."""
    lowered = relative_path.lower()
    for suffix in TEMPLATE_SUFFIXES:
        if lowered.endswith(suffix) and len(relative_path) > len(suffix):
            return relative_path[: -len(suffix)]
    return relative_path


def ensure_within_destination(relative_path: str) -> PurePosixPath:
    """Validate a substituted relative path and return it as a PurePosixPath.

    Raises:
        PathError: If the path is absolute, empty, or climbs out of the
            destination via ``..`` segments.
    """
    candidate = PurePosixPath(relative_path)
    if candidate.is_absolute() or not candidate.parts:
        raise PathError(
            f"Substituted path '{relative_path}' is not a relative path",
            path=relative_path,
        )
    depth = 0
    for part in candidate.parts:
        if part == "..":
            depth -= 1
        elif part != ".":
            depth += 1
        if depth < 0:
            raise PathError(
                f"Substituted path '{relative_path}' escapes the destination directory",
                path=relative_path,
            )
    return candidate
