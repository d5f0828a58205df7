"""Import map based specifier resolution.

Resolution order:
1. Top-level ``imports``: exact match, or a ``/``-terminated prefix of the
   specifier. Longest matching prefix wins.
2. ``scopes``: only the scope with the longest prefix of the importing URL
   is considered. A match inside it overrides any top-level match.
3. Mapped: ``target + specifier[len(prefix):]``.
4. Unmapped bare specifier: ``BareSpecifierUnresolved``.
5. Anything else: standard URL resolution against the importing URL.

Pure string computation; no I/O.
"""

from __future__ import annotations

from urllib.parse import urljoin

from pydantic import BaseModel
from pydantic import Field

from .errors import BareSpecifierUnresolved
from .errors import ResolutionFailure
from .paths import is_bare_specifier

SEPARATOR = "/"


class ImportMap(BaseModel):
    """Import map with optional scoped overrides.

    Targets are absolute URLs.
    """

    imports: dict[str, str] = Field(default_factory=dict)
    scopes: dict[str, dict[str, str]] = Field(default_factory=dict)

    def merged(self, other: ImportMap) -> ImportMap:
        """Return a copy with ``other``'s entries layered on top (other wins).

        Scopes are merged per scope.
        """
        scopes = {scope: dict(mappings) for scope, mappings in self.scopes.items()}
        for scope, mappings in other.scopes.items():
            scopes[scope] = {**scopes.get(scope, {}), **mappings}
        return ImportMap(imports={**self.imports, **other.imports}, scopes=scopes)


def match_prefix(mappings: dict[str, str], specifier: str) -> tuple[str, str] | None:
    """Find the longest entry of ``mappings`` that matches ``specifier``.

    Returns:
        (prefix, target) or None
    """
    best: tuple[str, str] | None = None
    for prefix, target in mappings.items():
        if specifier == prefix or (prefix.endswith(SEPARATOR) and specifier.startswith(prefix)):
            if best is None or len(prefix) > len(best[0]):
                best = (prefix, target)
    return best


class SpecifierResolver:
    """Resolves module specifiers against an import map or plain URL rules."""

    def __init__(self, import_map: ImportMap | None = None):
        self.import_map = import_map or ImportMap()

    def resolve(self, source_url: str, specifier: str) -> str:
        """Resolve ``specifier`` as imported from ``source_url``.

        Returns:
            Absolute URL

        Raises:
            BareSpecifierUnresolved: Bare specifier without a mapping
            ResolutionFailure: Specifier or importing URL is not a valid URL
        """
        match = match_prefix(self.import_map.imports, specifier)

        scope = self._matching_scope(source_url)
        if scope is not None:
            scoped = match_prefix(self.import_map.scopes[scope], specifier)
            if scoped is not None:
                match = scoped

        if match is not None:
            prefix, target = match
            return target + specifier[len(prefix) :]

        try:
            bare = is_bare_specifier(specifier)
            resolved = urljoin(source_url, specifier)
        except ValueError as e:
            raise ResolutionFailure(specifier, source_url, f"Invalid URL {specifier!r} in {source_url}: {e}") from e

        if bare:
            raise BareSpecifierUnresolved(specifier, source_url)
        return resolved

    def _matching_scope(self, source_url: str) -> str | None:
        """Longest scope prefix of ``source_url``, if any."""
        best: str | None = None
        for scope in self.import_map.scopes:
            if source_url.startswith(scope) and (best is None or len(scope) > len(best)):
                best = scope
        return best

    def __repr__(self) -> str:
        return f"SpecifierResolver({len(self.import_map.imports)} imports, {len(self.import_map.scopes)} scopes)"
