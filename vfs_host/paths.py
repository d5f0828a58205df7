"""URL and virtual path helpers.

A virtual path is the key of one loaded module in the store. It is derived
from the requested URL alone, so it is known before any I/O happens:

- ``file:///home/me/app/main.ts``  -> ``/home/me/app/main.ts``
- ``https://esm.sh/react@18``      -> ``/https/esm.sh/react@18.ts``
- ``npm:react@18``                 -> ``/https/esm.sh/react@18.ts``
- ``jsr:@std/path``                -> ``/https/esm.sh/jsr/@std/path.ts``
"""

from __future__ import annotations

import re
from pathlib import Path
from urllib.parse import unquote
from urllib.parse import urljoin
from urllib.parse import urlsplit

from .errors import ProtocolUnsupported

# Public CDN origins serving the package-registry pseudo-protocols
REGISTRY_ORIGINS: dict[str, str] = {
    "npm": "https://esm.sh/",
    "jsr": "https://esm.sh/jsr/",
}

SCRIPT_EXTENSION_RE = re.compile(r"\.[cm]?[tj]sx?$")
DECLARATION_SUFFIX = ".d.ts"
GUESSED_SUFFIX = ".ts"
RUNTIME_SUFFIX = ".js"

_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*:")


def url_scheme(url: str) -> str:
    """Lower-cased scheme of ``url``, or ``""`` if it has none."""
    return urlsplit(url).scheme.lower()


def is_absolute_url(specifier: str) -> bool:
    """Whether ``specifier`` parses as an absolute URL (has a scheme)."""
    return bool(_SCHEME_RE.match(specifier)) and bool(url_scheme(specifier))


def is_bare_specifier(specifier: str) -> bool:
    """Bare specifiers are neither absolute URLs nor relative/absolute paths."""
    if is_absolute_url(specifier):
        return False
    return not specifier.startswith(".") and not specifier.startswith("/")


def registry_to_network_url(url: str) -> str:
    """Rewrite ``npm:``/``jsr:`` URLs to their CDN https URL; others unchanged."""
    scheme = url_scheme(url)
    origin = REGISTRY_ORIGINS.get(scheme)
    if origin is None:
        return url
    return origin + url[len(scheme) + 1 :].lstrip("/")


def has_script_extension(path: str) -> bool:
    return bool(SCRIPT_EXTENSION_RE.search(path))


def url_to_virtual_path(url: str) -> str:
    """Map a resolved URL to its virtual path.

    Raises:
        ProtocolUnsupported: URL is neither local, https, nor a registry URL
    """
    network_url = registry_to_network_url(url)
    parts = urlsplit(network_url)
    scheme = parts.scheme.lower()

    if scheme == "file":
        return unquote(parts.path)

    if scheme == "https":
        path = f"/https/{parts.netloc}{parts.path}"
        if not has_script_extension(path) and not path.endswith("/"):
            path += GUESSED_SUFFIX
        return path

    raise ProtocolUnsupported(url)


def url_to_directory_path(url: str) -> str:
    """Virtual path of a directory URL (no suffix guessing, no trailing slash)."""
    parts = urlsplit(registry_to_network_url(url))
    scheme = parts.scheme.lower()
    if scheme == "file":
        path = unquote(parts.path)
    elif scheme == "https":
        path = f"/https/{parts.netloc}{parts.path}"
    else:
        raise ProtocolUnsupported(url)
    return path.rstrip("/") or "/"


def to_importable_path(path: str) -> str:
    """Declarations are imported as the runtime module they describe."""
    if path.endswith(DECLARATION_SUFFIX):
        return path[: -len(DECLARATION_SUFFIX)] + RUNTIME_SUFFIX
    return path


def join_url(url: str, *paths: str) -> str:
    """Join path segments onto a URL, treating ``url`` as a directory."""
    for path in paths:
        if not url.endswith("/"):
            url += "/"
        url = urljoin(url, path)
    return url


def path_to_file_url(path: str | Path) -> str:
    return Path(path).resolve().as_uri()


def file_url_to_path(url: str) -> Path:
    return Path(unquote(urlsplit(url).path))
