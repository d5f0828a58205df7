"""Resolve import-mapped, remote and registry module graphs into a read-only
virtual filesystem that a TypeScript compiler frontend can consume."""

from .errors import BareSpecifierUnresolved
from .errors import ConfigLoadFailure
from .errors import FetchFailure
from .errors import LibraryLoadFailure
from .errors import ModuleLoadFailure
from .errors import ProtocolUnsupported
from .errors import ResolutionFailure
from .errors import VfsHostError
from .host import VfsHost
from .program import CompilerFrontend
from .program import Diagnostic
from .program import Program
from .program import build_program
from .resolver import ImportMap
from .resolver import SpecifierResolver
from .store import VirtualFileStore

__all__ = [
    "BareSpecifierUnresolved",
    "CompilerFrontend",
    "ConfigLoadFailure",
    "Diagnostic",
    "FetchFailure",
    "ImportMap",
    "LibraryLoadFailure",
    "ModuleLoadFailure",
    "Program",
    "ProtocolUnsupported",
    "ResolutionFailure",
    "SpecifierResolver",
    "VfsHost",
    "VfsHostError",
    "VirtualFileStore",
    "build_program",
]
