"""Syntax trees for TypeScript/JavaScript sources via tree-sitter.

Only a small surface is used: node kinds, field lookups and byte offsets.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from functools import cache

import tree_sitter_typescript
from tree_sitter import Language
from tree_sitter import Node
from tree_sitter import Parser
from tree_sitter import Tree

TSX_EXTENSIONS = (".tsx", ".jsx", ".js", ".mjs", ".cjs")


class NodeKind(StrEnum):
    """tree-sitter node kinds the transformer reacts to."""

    IMPORT_STATEMENT = "import_statement"
    EXPORT_STATEMENT = "export_statement"
    CALL_EXPRESSION = "call_expression"
    IMPORT = "import"
    STRING = "string"


@cache
def _language(tsx: bool) -> Language:
    if tsx:
        return Language(tree_sitter_typescript.language_tsx())
    return Language(tree_sitter_typescript.language_typescript())


def language_for(file_name: str) -> Language:
    """TSX grammar for JSX-capable extensions, TypeScript otherwise."""
    return _language(file_name.lower().endswith(TSX_EXTENSIONS))


@dataclass
class SourceFile:
    """Parsed file handed to the compiler frontend."""

    file_name: str
    text: str
    tree: Tree

    @property
    def root(self) -> Node:
        return self.tree.root_node

    @property
    def has_errors(self) -> bool:
        return self.tree.root_node.has_error


def parse_bytes(file_name: str, source: bytes) -> Tree:
    return Parser(language_for(file_name)).parse(source)


def create_source_file(file_name: str, text: str) -> SourceFile:
    return SourceFile(file_name=file_name, text=text, tree=parse_bytes(file_name, text.encode("utf-8")))


def string_content_span(node: Node) -> tuple[int, int] | None:
    """Byte range of a string literal's content, quotes excluded."""
    if node.type != NodeKind.STRING or node.end_byte - node.start_byte < 2:
        return None
    return node.start_byte + 1, node.end_byte - 1
