"""Translate engine events into log records."""

import logging

from vfs_host.events.schemas import ConfigIgnored
from vfs_host.events.schemas import DiagnosticReported
from vfs_host.events.schemas import FileLoaded
from vfs_host.events.schemas import FileNotFound
from vfs_host.events.schemas import FileProbeMissed
from vfs_host.events.schemas import FileRead
from vfs_host.events.schemas import LibraryMissing
from vfs_host.events.schemas import ParseErrorsFound
from vfs_host.events.schemas import SpecifierFailed
from vfs_host.events.schemas import VfsEvent

DIAGNOSTIC_LEVELS = {
    "project": (logging.WARNING, "TS Error in project"),
    "library": (logging.DEBUG, "TS Error in default lib"),
    "dependency": (logging.INFO, "TS Error in dependency"),
}


class LoggingObserver:
    """Event handler that writes every event to a logger.

    Library traffic is logged only when it is a problem; the default
    library is large and loads on every build.
    """

    def __init__(self, logger: logging.Logger | None = None):
        self.logger = logger or logging.getLogger("vfs_host")

    def __call__(self, event: VfsEvent) -> None:
        log = self.logger

        if isinstance(event, FileLoaded):
            if not event.is_library:
                log.debug(f"Loaded {event.url} ({event.size} bytes)")
        elif isinstance(event, FileRead):
            if event.is_library:
                return
            if event.found_path == event.path:
                log.debug(f"Read {event.path}")
            else:
                log.info(f"Read {event.path} as {event.found_path}")
        elif isinstance(event, FileNotFound):
            log.warning(f"File not found: {event.path}")
        elif isinstance(event, FileProbeMissed):
            log.debug(f"Checked exists: {event.path} - False")
        elif isinstance(event, SpecifierFailed):
            log.error(f"Transforming specifier {event.specifier!r} in {event.source_url} failed: {event.error}")
        elif isinstance(event, LibraryMissing):
            log.warning(f"Loading lib file {event.name!r} failed: {event.error}")
        elif isinstance(event, ConfigIgnored):
            log.error(f"Failed to load {event.path}: {event.error}")
        elif isinstance(event, ParseErrorsFound):
            log.debug(f"Syntax errors recovered while parsing {event.path}")
        elif isinstance(event, DiagnosticReported):
            level, prefix = DIAGNOSTIC_LEVELS[event.origin]
            log.log(level, f"{prefix}: {event.message}")
