"""Read-only compiler host over a ``VirtualFileStore``.

The host holds no files of its own: every method is a lookup against the
store plus the path conventions of the compiler frontend.

Read normalization, in order:
1. a trailing ``/jsx-runtime`` segment (JSX runtime probe) is dropped
2. paths under the default library location are folded to
   ``lib.<name>.d.ts`` form

When normalization changes the path and the normalized file exists, the host
answers with a two-line redirect stub so the frontend follows the reference
to the stored file itself.
"""

from __future__ import annotations

import posixpath
import re
from typing import Any

from .events import EventBus
from .events import FileNotFound
from .events import FileProbeMissed
from .events import FileRead
from .parser import SourceFile
from .parser import create_source_file
from .paths import join_url
from .paths import url_to_directory_path
from .paths import url_to_virtual_path
from .store import VirtualFileStore

JSX_RUNTIME_SEGMENT = "/jsx-runtime"

# Negative probes the frontend makes for every module
QUIET_PROBE_RE = re.compile(r"/node_modules/|/package\.json$")

REDIRECT_STUB = '/// <reference no-default-lib="true" />\n/// <reference path="{path}" />\n'


class VfsHost:
    """Compiler host contract implemented over a virtual file store."""

    def __init__(
        self,
        store: VirtualFileStore,
        root_url: str,
        default_lib_dir: str,
        events: EventBus | None = None,
    ):
        """
        Args:
            store: Loaded files
            root_url: URL of the project root directory
            default_lib_dir: URL of the default library root
            events: Event bus for read/probe events
        """
        self.store = store
        self.root_url = root_url
        self.default_lib_dir = default_lib_dir
        self.events = events or EventBus()

    def is_library_path(self, file_name: str) -> bool:
        return file_name.startswith(self.get_default_lib_location())

    def normalize_path(self, file_name: str) -> str:
        """Stored key a requested path should be looked up under."""
        found_name = file_name

        if found_name.endswith(JSX_RUNTIME_SEGMENT):
            found_name = found_name[: -len(JSX_RUNTIME_SEGMENT)]

        if self.is_library_path(found_name):
            directory, base = posixpath.split(found_name)
            name, ext = posixpath.splitext(base)
            name = name.lower()
            if not name.startswith("lib."):
                name = f"lib.{name}"
            if not name.endswith(".d"):
                name += ".d"
            found_name = f"{directory}/{name}.ts"

        return found_name

    # Compiler host contract

    def get_source_file(self, file_name: str, parse_options: Any = None) -> SourceFile | None:
        source_text = self.read_file(file_name)
        if source_text is None:
            return None
        return create_source_file(file_name, source_text)

    def get_default_lib_file_name(self) -> str:
        return url_to_virtual_path(join_url(self.default_lib_dir, "lib.d.ts"))

    def get_default_lib_location(self) -> str:
        return url_to_directory_path(self.default_lib_dir)

    def get_current_directory(self) -> str:
        return url_to_directory_path(self.root_url)

    def get_canonical_file_name(self, file_name: str) -> str:
        return file_name

    def use_case_sensitive_file_names(self) -> bool:
        return True

    def get_new_line(self) -> str:
        return "\n"

    def file_exists(self, file_name: str) -> bool:
        exists = self.read_file(file_name, check_only=True) is not None
        if not exists and not QUIET_PROBE_RE.search(file_name):
            self.events.publish(FileProbeMissed(path=file_name))
        return exists

    def read_file(self, file_name: str, check_only: bool = False) -> str | None:
        found_name = self.normalize_path(file_name)

        source_text = self.store.get(found_name)
        if source_text is None:
            if not check_only:
                self.events.publish(FileNotFound(path=found_name))
            return None

        if not check_only:
            self.events.publish(
                FileRead(path=file_name, found_path=found_name, is_library=self.is_library_path(found_name))
            )

        if found_name == file_name:
            return source_text
        return REDIRECT_STUB.format(path=found_name)

    def write_file(self, *args: Any, **kwargs: Any) -> None:
        raise NotImplementedError("writeFile not implemented")
