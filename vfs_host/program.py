"""Program builder: entry discovery, option setup and graph loading.

``build_program`` loads every entry file (and everything it references) into
a ``VirtualFileStore`` and exposes the store through a ``VfsHost``. If a
compiler frontend is supplied, the program is created through it and its
diagnostics are reported by origin:

- files under the project root: warning
- default library files: debug
- any other dependency: info
"""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from dataclasses import field
from pathlib import Path
from typing import Any
from typing import Literal
from typing import Protocol

from .config import CONFIG_FILE_NAME
from .config import DEFAULT_ENTRY_GLOB
from .config import DEFAULT_LIB_DIR
from .config import default_compiler_options
from .config import load_project_config
from .events import DiagnosticReported
from .events import EventBus
from .events import LoggingObserver
from .fetcher import ContentFetcher
from .host import VfsHost
from .loader import ModuleLoader
from .paths import path_to_file_url
from .resolver import ImportMap
from .resolver import SpecifierResolver
from .store import VirtualFileStore

logger = logging.getLogger(__name__)

PACKAGE_MANIFEST_PATH = "/package.json"
PACKAGE_MANIFEST = '{ "type": "module" }'

DiagnosticOrigin = Literal["project", "library", "dependency"]


@dataclass
class Diagnostic:
    """One compiler diagnostic (position is zero-based)."""

    message: str
    file_name: str | None = None
    line: int | None = None
    character: int | None = None

    def format(self) -> str:
        if self.file_name is not None and self.line is not None:
            return f"{self.file_name}:{self.line}:{self.character or 0}: {self.message}"
        return self.message


class CompilerFrontend(Protocol):
    """The external compiler frontend, as far as this package uses it."""

    def create_program(self, root_names: list[str], options: dict[str, Any], host: VfsHost) -> Any: ...

    def get_diagnostics(self, program: Any) -> Iterable[Diagnostic]: ...


@dataclass
class Program:
    """Result of a build: root files, final options and the populated host."""

    root_names: list[str]
    options: dict[str, Any]
    host: VfsHost
    frontend_program: Any = None
    diagnostics: list[Diagnostic] = field(default_factory=list)

    @property
    def store(self) -> VirtualFileStore:
        return self.host.store


def expand_braces(pattern: str) -> list[str]:
    """``"*.{ts,js}"`` -> ``["*.ts", "*.js"]`` (nested groups supported)."""
    match = re.search(r"\{([^{}]*)\}", pattern)
    if match is None:
        return [pattern]
    head, tail = pattern[: match.start()], pattern[match.end() :]
    return [expanded for alt in match.group(1).split(",") for expanded in expand_braces(head + alt + tail)]


def find_entry_files(root_dir: Path, entry_glob: str) -> list[str]:
    """File URLs of every file under ``root_dir`` matching ``entry_glob``, sorted."""
    paths: set[Path] = set()
    for pattern in expand_braces(entry_glob):
        paths.update(p for p in root_dir.glob(pattern) if p.is_file())
    return [path_to_file_url(p) for p in sorted(paths)]


def classify_diagnostic(diagnostic: Diagnostic, host: VfsHost) -> DiagnosticOrigin:
    file_name = diagnostic.file_name or ""
    if file_name.startswith(host.get_current_directory()):
        return "project"
    if file_name.startswith(host.get_default_lib_location()):
        return "library"
    return "dependency"


def report_diagnostics(diagnostics: Iterable[Diagnostic], host: VfsHost, events: EventBus) -> None:
    for diagnostic in diagnostics:
        events.publish(DiagnosticReported(origin=classify_diagnostic(diagnostic, host), message=diagnostic.format()))


def default_event_bus() -> EventBus:
    """Event bus wired to the package logger."""
    events = EventBus()
    events.subscribe(LoggingObserver())
    return events


async def build_program(
    root_dir: str | Path | None = None,
    entry_glob: str = DEFAULT_ENTRY_GLOB,
    import_map: ImportMap | None = None,
    compiler_options: dict[str, Any] | None = None,
    frontend: CompilerFrontend | None = None,
    events: EventBus | None = None,
    fetcher: ContentFetcher | None = None,
    default_lib_dir: str = DEFAULT_LIB_DIR,
    fallback_lib_dir: str | None = None,
) -> Program:
    """Create a program for a Deno-style project.

    Loads compiler options, entry file paths and import map from
    ``deno.json`` if it exists.

    Args:
        root_dir: Project root (default: current working directory)
        entry_glob: Glob pattern for entry files, brace alternatives allowed
        import_map: Additional import map entries
        compiler_options: Overrides for the built-in compiler option defaults
        frontend: Compiler frontend to create the program and collect diagnostics
        events: Event bus (default: one that logs every event)
        fetcher: Content fetcher (default: new one, closed when the build ends)
        default_lib_dir: URL of the default library root
        fallback_lib_dir: URL of the bundled library fallback directory

    Returns:
        Program with the populated host

    Raises:
        ModuleLoadFailure: An entry file (or the JSX runtime) couldn't be loaded
        ResolutionFailure: ``jsxImportSource`` has no mapping
    """
    root = Path(root_dir or Path.cwd()).resolve()
    root_url = path_to_file_url(root) + "/"
    events = events or default_event_bus()
    import_map = import_map or ImportMap()
    options = default_compiler_options(compiler_options)

    entry_files = find_entry_files(root, entry_glob)

    config = load_project_config(root, events)
    if config is not None:
        if config.compiler_options is not None:
            options = {**options, **config.compiler_options}
        import_map = import_map.merged(config.import_map(root_url + CONFIG_FILE_NAME))
        for entry in config.export_paths():
            entry_url = path_to_file_url(root / entry)
            if entry_url not in entry_files:
                entry_files.append(entry_url)

    store = VirtualFileStore()
    host = VfsHost(store, root_url, default_lib_dir, events)
    own_fetcher = fetcher is None
    fetcher = fetcher or ContentFetcher()
    loader = ModuleLoader(store, fetcher, SpecifierResolver(import_map), events, default_lib_dir, fallback_lib_dir)

    store.add(PACKAGE_MANIFEST_PATH, PACKAGE_MANIFEST)

    try:
        await asyncio.gather(*(loader.load_library(name) for name in options.get("lib") or []))

        if (jsx_import_source := options.get("jsxImportSource")) is not None:
            runtime_url = loader.resolver.resolve(root_url, f"{jsx_import_source}/jsx-runtime")
            options["jsxImportSource"] = await loader.load_file(runtime_url)

        root_names = list(await asyncio.gather(*(loader.load_file(url) for url in entry_files)))
    finally:
        if own_fetcher:
            await fetcher.aclose()

    logger.info(f"Loaded {len(store)} files for {len(root_names)} entry points")
    program = Program(root_names=root_names, options=options, host=host)

    if frontend is not None:
        program.frontend_program = frontend.create_program(root_names, options, host)
        program.diagnostics = list(frontend.get_diagnostics(program.frontend_program))
        report_diagnostics(program.diagnostics, host, events)

    return program
