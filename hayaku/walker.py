"""Template tree walking: turn a template directory into a new project.

The TreeWalker copies a template root into a destination directory in a
single depth-first pass.  Each entry's destination path goes through bracket
token substitution; text files go through the content renderer and anything
else is copied byte for byte.  Entries matched by the template's
``.gitignore`` files are left out.

Failures are fail-fast and not rolled back: the first failing entry stops
the walk, files already written stay on disk, and the raised error carries
the partial ``GenerationReport``.
"""

from __future__ import annotations

import shutil
from collections.abc import Iterator
from pathlib import Path

import pathspec
from rich.console import Console
from rich.markup import escape

from hayaku.config import METADATA_FILENAME
from hayaku.errors import (
    DestinationConflictError,
    GenerationIOError,
    HayakuError,
    PathError,
)
from hayaku.models import (
    GenerationReport,
    GenerationRequest,
    GlobalSettings,
    RenderContext,
)
from hayaku.paths import (
    ensure_within_destination,
    find_tokens,
    has_template_suffix,
    strip_template_suffix,
    substitute_path,
)
from hayaku.renderer import ContentRenderer, Renderer
from hayaku.resolver import Prompter, build_context


# Entry names never copied into a generated project, at any depth.
RESERVED_NAMES: frozenset[str] = frozenset(
    {".git", ".hg", ".svn", "__pycache__", ".DS_Store"}
)

# Per-directory ignore file, read with gitignore pattern semantics.
IGNORE_FILENAME = ".gitignore"

# Bytes inspected for NUL before reading a whole file as text.
_SNIFF_SIZE = 8192


class TreeWalker:
    """Walks a template root and writes the rendered project.

    Attributes:
        renderer: Content renderer; defaults to a ContentRenderer exposing
            ``template_name`` for the request's template.
        force: Allow generating into a non-empty existing directory.
            Existing files are overwritten, nothing is deleted.
        console: When set, each written path is echoed to it.
        exclude: Entry names skipped at every depth.
        use_ignore_files: Skip entries matched by the template's
            ``.gitignore`` files.
    """

    def __init__(
        self,
        renderer: Renderer | None = None,
        *,
        force: bool = False,
        console: Console | None = None,
        exclude: frozenset[str] = RESERVED_NAMES,
        use_ignore_files: bool = True,
    ) -> None:
        self.renderer = renderer
        self.force = force
        self.console = console
        self.exclude = exclude
        self.use_ignore_files = use_ignore_files

    # -- Public API --------------------------------------------------------

    def generate(self, request: GenerationRequest, ctx: RenderContext) -> GenerationReport:
        """Generate *request*'s template into its destination.

        Args:
            request: Template, destination and answers for this run.
            ctx: The resolved RenderContext.

        Returns:
            A report of everything written.

        Raises:
            DestinationConflictError: If the destination is a file, or a
                non-empty directory while ``force`` is off.
            GenerationIOError: On any filesystem failure during the walk.
            RenderError: If a file's content fails to render.
            PathError: If a substituted path escapes the destination.
        """
        template_root = Path(request.template.root)
        destination = Path(request.destination)
        self._check_destination(destination)

        renderer = self.renderer or ContentRenderer(
            extra_globals={"template_name": request.template.config.name}
        )
        report = GenerationReport(destination=destination, context=ctx)

        current = template_root
        try:
            self._ensure_directory(destination, report)
            for source in self._iter_entries(template_root):
                current = source
                self._process_entry(source, template_root, destination, ctx, renderer, report)
        except HayakuError as exc:
            if exc.report is None:
                exc.report = report
            raise
        except OSError as exc:
            raise GenerationIOError(
                f"Failed to generate {current}: {exc.strerror or exc}",
                path=current,
                report=report,
            ) from exc

        return report

    # -- Traversal ---------------------------------------------------------

    def _iter_entries(self, template_root: Path) -> Iterator[Path]:
        """Yield template entries depth-first in sorted order.

        Entries matched by a ``.gitignore`` in their directory or any
        ancestor directory (up to the template root) are skipped, and
        ignored directories are not descended into.
        """
        stack: list[tuple[Path, tuple[tuple[Path, pathspec.PathSpec], ...]]] = [
            (template_root, ())
        ]
        while stack:
            directory, ignores = stack.pop()
            if self.use_ignore_files:
                spec = _load_ignore_file(directory / IGNORE_FILENAME)
                if spec is not None:
                    ignores = ignores + ((directory, spec),)
            children = sorted(directory.iterdir(), key=lambda p: p.name)
            subdirs: list[Path] = []
            for child in children:
                if child.name in self.exclude:
                    continue
                if directory == template_root and child.name == METADATA_FILENAME:
                    continue
                is_dir = child.is_dir()
                if _is_ignored(child, is_dir, ignores):
                    continue
                yield child
                if is_dir:
                    subdirs.append(child)
            stack.extend((subdir, ignores) for subdir in reversed(subdirs))

    def _process_entry(
        self,
        source: Path,
        template_root: Path,
        destination: Path,
        ctx: RenderContext,
        renderer: Renderer,
        report: GenerationReport,
    ) -> None:
        relative = source.relative_to(template_root).as_posix()
        substituted = substitute_path(relative, ctx)
        if self.console is not None:
            # Only the entry's own name; parents were reported already.
            for token in find_tokens(source.name):
                if token in ctx:
                    continue
                self.console.print(
                    f"[yellow]Unresolved path token {escape(f'[{token}]')} "
                    f"in {escape(relative)}[/yellow]"
                )

        if source.is_dir():
            target = destination / ensure_within_destination(substituted)
            self._ensure_directory(target, report)
            return

        is_template = has_template_suffix(substituted)
        if is_template:
            substituted = strip_template_suffix(substituted)
        target = destination / ensure_within_destination(substituted)
        written_as = target.relative_to(destination).as_posix()
        if written_as in report.written:
            raise PathError(
                f"{relative} maps to {written_as}, which this template already wrote",
                path=written_as,
            )
        self._ensure_directory(target.parent, report)

        if is_template or _looks_like_text(source):
            data = source.read_bytes()
            if is_template or _is_utf8(data):
                target.write_bytes(renderer.render(data, ctx, source=source))
                report.files_rendered += 1
            else:
                target.write_bytes(data)
                report.files_copied += 1
        else:
            shutil.copyfile(source, target)
            report.files_copied += 1
        shutil.copymode(source, target)

        report.files_written += 1
        report.written.append(written_as)
        if self.console is not None:
            self.console.print(f"[dim]=> {escape(report.written[-1])}[/dim]")

    # -- Filesystem helpers ------------------------------------------------

    def _check_destination(self, destination: Path) -> None:
        if not destination.exists():
            return
        if not destination.is_dir():
            raise DestinationConflictError(
                f"Destination {destination} exists and is not a directory",
                path=destination,
            )
        if not self.force and any(destination.iterdir()):
            raise DestinationConflictError(
                f"Destination {destination} already exists and is not empty",
                path=destination,
            )

    @staticmethod
    def _ensure_directory(path: Path, report: GenerationReport) -> None:
        """Create *path* and missing parents, counting what was created."""
        if path.is_dir():
            return
        missing = 0
        for candidate in (path, *path.parents):
            if candidate.exists():
                break
            missing += 1
        path.mkdir(parents=True, exist_ok=True)
        report.directories_created += missing


# ---------------------------------------------------------------------------
# One-call convenience
# ---------------------------------------------------------------------------


def generate_project(
    request: GenerationRequest,
    settings: GlobalSettings | None = None,
    *,
    prompter: Prompter | None = None,
    confirm_defaults: bool = False,
    force: bool = False,
    console: Console | None = None,
) -> GenerationReport:
    """Resolve the RenderContext for *request* and walk its template."""
    ctx = build_context(
        request.template,
        request.destination,
        settings,
        request.answers,
        prompter=prompter,
        confirm_defaults=confirm_defaults,
    )
    walker = TreeWalker(force=force, console=console)
    return walker.generate(request, ctx)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _looks_like_text(path: Path) -> bool:
    """Return ``False`` if the head of *path* contains a NUL byte."""
    with path.open("rb") as fh:
        head = fh.read(_SNIFF_SIZE)
    return b"\x00" not in head


def _is_utf8(data: bytes) -> bool:
    if b"\x00" in data:
        return False
    try:
        data.decode("utf-8")
    except UnicodeDecodeError:
        return False
    return True


def _load_ignore_file(path: Path) -> pathspec.PathSpec | None:
    """Parse a ``.gitignore`` file; ``None`` if there is none."""
    if not path.is_file():
        return None
    lines = path.read_text(encoding="utf-8", errors="replace").splitlines()
    return pathspec.GitIgnoreSpec.from_lines(lines)


def _is_ignored(
    entry: Path,
    is_dir: bool,
    ignores: tuple[tuple[Path, pathspec.PathSpec], ...],
) -> bool:
    """Check *entry* against each ignore file, relative to the file's directory."""
    for base, spec in ignores:
        relative = entry.relative_to(base).as_posix()
        if is_dir:
            relative += "/"
        if spec.match_file(relative):
            return True
    return False
