"""Structured events published by the resolution/transform core."""

from typing import Literal

from pydantic import BaseModel
from pydantic import Field


class FileLoaded(BaseModel):
    """A module was fetched, transformed and stored."""

    type: Literal["file_loaded"] = "file_loaded"
    url: str = Field(description="Resolved URL the text came from")
    path: str = Field(description="Virtual path it was stored under")
    size: int = Field(description="Length of the transformed text")
    is_library: bool = False


class FileRead(BaseModel):
    """The compiler frontend read a stored file."""

    type: Literal["file_read"] = "file_read"
    path: str = Field(description="Requested path")
    found_path: str = Field(description="Stored path that answered the request")
    is_library: bool = False


class FileNotFound(BaseModel):
    """The compiler frontend read a path that isn't stored."""

    type: Literal["file_not_found"] = "file_not_found"
    path: str


class FileProbeMissed(BaseModel):
    """An existence check came back negative."""

    type: Literal["file_probe_missed"] = "file_probe_missed"
    path: str


class SpecifierFailed(BaseModel):
    """A specifier could not be resolved or loaded and was left unchanged."""

    type: Literal["specifier_failed"] = "specifier_failed"
    specifier: str
    source_url: str
    error: str


class LibraryMissing(BaseModel):
    """A default library could not be loaded from any source."""

    type: Literal["library_missing"] = "library_missing"
    name: str
    error: str


class ConfigIgnored(BaseModel):
    """The project configuration file was unreadable and defaults apply."""

    type: Literal["config_ignored"] = "config_ignored"
    path: str
    error: str


class ParseErrorsFound(BaseModel):
    """The parser recovered from syntax errors in a file."""

    type: Literal["parse_errors_found"] = "parse_errors_found"
    path: str


class DiagnosticReported(BaseModel):
    """A compiler diagnostic, classified by the origin of its file."""

    type: Literal["diagnostic_reported"] = "diagnostic_reported"
    origin: Literal["project", "library", "dependency"]
    message: str


VfsEvent = (
    FileLoaded
    | FileRead
    | FileNotFound
    | FileProbeMissed
    | SpecifierFailed
    | LibraryMissing
    | ConfigIgnored
    | ParseErrorsFound
    | DiagnosticReported
)
