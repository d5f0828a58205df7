"""Dependency discovery and specifier rewriting for one source file.

For each file the transformer:
1. rewrites the ``@jsxImportSource`` pragma value to the virtual path of
   ``<value>/jsx-runtime``
2. rewrites ``/// <reference path="..." />`` targets to virtual paths
3. loads ``/// <reference lib="..." />`` libraries
4. rewrites the specifier of every static import/export and every
   ``import("...")`` call with a string literal argument

Every referenced module is loaded (recursively, through the load routine)
before its specifier is rewritten. A specifier that fails to resolve or load
is reported and left as it was; the rest of the file still transforms.
"""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Awaitable
from collections.abc import Callable

from tree_sitter import Node

from .editor import TextEditor
from .errors import VfsHostError
from .events import EventBus
from .events import ParseErrorsFound
from .events import SpecifierFailed
from .parser import NodeKind
from .parser import parse_bytes
from .parser import string_content_span
from .paths import to_importable_path
from .resolver import SpecifierResolver
from .utils.error_format import format_error_message

logger = logging.getLogger(__name__)

JSX_IMPORT_SOURCE_RE = re.compile(rb"@jsxImportSource\s+(\S+)")
PATH_REFERENCE_RE = re.compile(rb'^\s*///\s*<reference\s+path="([^"]+)"\s*/>', re.MULTILINE)
LIB_REFERENCE_RE = re.compile(rb'^\s*///\s*<reference\s+lib="([^"]+)"\s*/>', re.MULTILINE)

JSX_RUNTIME_SUFFIX = "/jsx-runtime"

LoadModule = Callable[[str], Awaitable[str]]
LoadLibrary = Callable[[str], Awaitable[None]]
Span = tuple[int, int]


def _statement_source(node: Node) -> Node | None:
    return node.child_by_field_name("source")


def _dynamic_import_argument(node: Node) -> Node | None:
    function = node.child_by_field_name("function")
    if function is None or function.type != NodeKind.IMPORT:
        return None
    arguments = node.child_by_field_name("arguments")
    if arguments is None or not arguments.named_children:
        return None
    return arguments.named_children[0]


# Node kind -> the child holding the module specifier, if the node has one
SPECIFIER_EXTRACTORS: dict[str, Callable[[Node], Node | None]] = {
    NodeKind.IMPORT_STATEMENT: _statement_source,
    NodeKind.EXPORT_STATEMENT: _statement_source,
    NodeKind.CALL_EXPRESSION: _dynamic_import_argument,
}


def find_module_specifiers(root: Node) -> list[Span]:
    """Byte spans of every string-literal module specifier under ``root``, in source order."""
    spans: list[Span] = []
    stack = [root]
    while stack:
        node = stack.pop()
        extractor = SPECIFIER_EXTRACTORS.get(node.type)
        if extractor is not None:
            literal = extractor(node)
            span = string_content_span(literal) if literal is not None else None
            if span is not None and span[0] < span[1]:
                spans.append(span)
        stack.extend(reversed(node.children))
    return spans


class SourceTransformer:
    """Loads the dependencies of a file and points its specifiers at virtual paths."""

    def __init__(
        self,
        resolver: SpecifierResolver,
        load_module: LoadModule,
        load_library: LoadLibrary,
        events: EventBus,
    ):
        self.resolver = resolver
        self.load_module = load_module
        self.load_library = load_library
        self.events = events

    async def transform(self, source_url: str, file_name: str, text: str) -> str:
        """Load every dependency of ``text`` and return it with rewritten specifiers.

        Args:
            source_url: URL the text was fetched from (base for relative specifiers)
            file_name: Virtual path of the file (selects the grammar)
            text: Original text

        Returns:
            Rewritten text
        """
        source = text.encode("utf-8")
        editor = TextEditor(source)
        tree = parse_bytes(file_name, source)
        if tree.root_node.has_error:
            self.events.publish(ParseErrorsFound(path=file_name))

        directives = []
        if match := JSX_IMPORT_SOURCE_RE.search(source):
            specifier = match.group(1).decode("utf-8") + JSX_RUNTIME_SUFFIX
            directives.append(self._rewrite(editor, source_url, match.span(1), specifier, importable=False))
        for match in PATH_REFERENCE_RE.finditer(source):
            specifier = match.group(1).decode("utf-8")
            directives.append(self._rewrite(editor, source_url, match.span(1), specifier, importable=False))
        for match in LIB_REFERENCE_RE.finditer(source):
            directives.append(self.load_library(match.group(1).decode("utf-8")))
        await asyncio.gather(*directives)

        await asyncio.gather(
            *(
                self._rewrite(editor, source_url, span, source[span[0] : span[1]].decode("utf-8"))
                for span in find_module_specifiers(tree.root_node)
            )
        )

        return str(editor)

    async def _rewrite(
        self,
        editor: TextEditor,
        source_url: str,
        span: Span,
        specifier: str,
        *,
        importable: bool = True,
    ) -> None:
        """Resolve and load ``specifier``, then record the rewrite of ``span``.

        Failures are reported and leave the span untouched.
        """
        try:
            url = self.resolver.resolve(source_url, specifier)
            path = await self.load_module(url)
        except VfsHostError as e:
            self.events.publish(
                SpecifierFailed(
                    specifier=specifier,
                    source_url=source_url,
                    error=format_error_message(e, include_type=False),
                )
            )
            return

        editor.overwrite(span[0], span[1], to_importable_path(path) if importable else path)
