"""Engine event system: structured events, bus, and log observer."""

from vfs_host.events.bus import EventBus
from vfs_host.events.observer import LoggingObserver
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

__all__ = [
    "EventBus",
    "LoggingObserver",
    "VfsEvent",
    "ConfigIgnored",
    "DiagnosticReported",
    "FileLoaded",
    "FileNotFound",
    "FileProbeMissed",
    "FileRead",
    "LibraryMissing",
    "ParseErrorsFound",
    "SpecifierFailed",
]
