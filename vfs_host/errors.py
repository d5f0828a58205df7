"""Error taxonomy for module resolution and loading.

Only a failure while loading the top-level entry set (or an unreadable root)
aborts a build. Every other error here is caught where a single specifier is
being rewritten, reported, and the specifier is left untouched.
"""

from .utils.error_format import format_error_message


class VfsHostError(Exception):
    """Base class for all resolution and loading errors."""


class ProtocolUnsupported(VfsHostError):
    """A URL uses a scheme that can't be fetched or mapped to a virtual path."""

    def __init__(self, url: str):
        self.url = url
        scheme = url.split(":", 1)[0] if ":" in url else url
        super().__init__(f"Fetching {scheme}: URL is not supported ({url})")


class ResolutionFailure(VfsHostError):
    """A specifier could not be turned into a URL."""

    def __init__(self, specifier: str, source_url: str, message: str | None = None):
        self.specifier = specifier
        self.source_url = source_url
        super().__init__(message or f"Can't resolve {specifier!r} from {source_url}")


class BareSpecifierUnresolved(ResolutionFailure):
    """Bare specifier with no matching import map entry."""

    def __init__(self, specifier: str, source_url: str):
        super().__init__(specifier, source_url, f"Bare specifier {specifier!r} encountered in {source_url}")


class FetchFailure(VfsHostError):
    """Network error, non-success status, or unreadable local file."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Failed to fetch {url}: {reason}")


class ConfigLoadFailure(VfsHostError):
    """Project configuration file could not be read or validated."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to load {path}: {reason}")


class LibraryLoadFailure(VfsHostError):
    """A default library could not be loaded from any source."""

    def __init__(self, name: str, reason: str):
        self.name = name
        self.reason = reason
        super().__init__(f"Loading lib file {name!r} failed: {reason}")


class ModuleLoadFailure(VfsHostError):
    """Loading a module (fetch + transform) failed."""

    def __init__(self, url: str, cause: BaseException):
        self.url = url
        self.cause = cause
        super().__init__(f"Loading file {url} failed: {format_error_message(cause)}")
