"""Project configuration (``deno.json``) and built-in defaults."""

from __future__ import annotations

import copy
import json
import logging
from pathlib import Path
from typing import Any
from urllib.parse import urljoin

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import ValidationError

from .errors import ConfigLoadFailure
from .events import ConfigIgnored
from .events import EventBus
from .resolver import ImportMap
from .utils.error_format import format_error_message

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "deno.json"

DEFAULT_ENTRY_GLOB = "**/*.{mts,ts,tsx,mjs,js,jsx}"

DEFAULT_LIB_DIR = "https://raw.githubusercontent.com/denoland/deno/main/cli/tsc/dts"

# TypeScript compiler options (JSON names) matching Deno's runtime environment
DEFAULT_COMPILER_OPTIONS: dict[str, Any] = {
    "allowImportingTsExtensions": True,
    "allowJs": True,
    "allowSyntheticDefaultImports": True,
    "checkJs": True,
    "jsx": "react-jsx",
    "lib": [
        "es2023",
        "dom",
        "deno.ns.d.ts",
        "deno.net.d.ts",
        "deno.fetch.d.ts",
        "deno.unstable.d.ts",
    ],
    "module": "NodeNext",
    "moduleDetection": "auto",
    "moduleResolution": "NodeNext",
    "noEmit": True,
    "strict": True,
    "target": "ESNext",
    "useUnknownInCatchVariables": False,
}


def default_compiler_options(overrides: dict[str, Any] | None = None) -> dict[str, Any]:
    """Built-in defaults with ``overrides`` merged on top (shallow)."""
    return {**copy.deepcopy(DEFAULT_COMPILER_OPTIONS), **(overrides or {})}


class ProjectConfig(BaseModel):
    """Recognized fields of ``deno.json``; everything else is ignored."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    compiler_options: dict[str, Any] | None = Field(default=None, alias="compilerOptions")
    imports: dict[str, str] | None = None
    scopes: dict[str, dict[str, str]] | None = None
    exports: str | dict[str, str] | None = None

    def import_map(self, config_url: str) -> ImportMap:
        """Import map with targets resolved against the configuration file's URL."""
        imports = {specifier: urljoin(config_url, url) for specifier, url in (self.imports or {}).items()}
        scopes = {
            scope: {specifier: urljoin(config_url, url) for specifier, url in mappings.items()}
            for scope, mappings in (self.scopes or {}).items()
        }
        return ImportMap(imports=imports, scopes=scopes)

    def export_paths(self) -> list[str]:
        """Entry points named by ``exports``, relative to the project root."""
        if self.exports is None:
            return []
        if isinstance(self.exports, str):
            return [self.exports]
        return list(self.exports.values())


def read_project_config(config_path: Path) -> ProjectConfig:
    """Read and validate a configuration file.

    Raises:
        ConfigLoadFailure: File unreadable, not JSON, or wrong shape
    """
    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
        return ProjectConfig.model_validate(data)
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        raise ConfigLoadFailure(str(config_path), format_error_message(e)) from e


def load_project_config(root_dir: Path, events: EventBus) -> ProjectConfig | None:
    """Load ``deno.json`` from the project root if it exists.

    A broken file is reported and ignored; defaults apply.

    Returns:
        The configuration, or None if absent or broken
    """
    config_path = root_dir / CONFIG_FILE_NAME
    if not config_path.exists():
        return None

    try:
        config = read_project_config(config_path)
    except ConfigLoadFailure as e:
        events.publish(ConfigIgnored(path=e.path, error=e.reason))
        return None

    logger.debug(f"Loaded project configuration from {config_path}")
    return config
