"""Helpers for loading the user configuration file (~/.mobilyze/config.json)."""

from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Final

from mobilyze.models.tools import Toolchain
from mobilyze.utils.platform import current_platform

CONFIG_DIR = Path.home() / ".mobilyze"
CONFIG_FILE = CONFIG_DIR / "config.json"

APKTOOL_VERSION: Final[str] = "2.9.3"
DEFAULT_TOOLS_DIR: Final[Path] = Path("tools")
DEFAULT_CLONE_DEPTH: Final[int] = 1

TOOLS_DIR_ENV_VAR: Final[str] = "MOBILYZE_TOOLS_DIR"
TOOLS_DIR_CONFIG_KEY: Final[str] = "tools_dir"
APKTOOL_VERSION_CONFIG_KEY: Final[str] = "apktool_version"
CLONE_DEPTH_CONFIG_KEY: Final[str] = "clone_depth"


@lru_cache(maxsize=1)
def load_config() -> dict[str, Any]:
    """Load configuration data from disk (cached)."""

    if not CONFIG_FILE.exists():
        return {}

    try:
        raw = CONFIG_FILE.read_text()
    except OSError:
        return {}

    try:
        data = json.loads(raw)
    except ValueError:
        return {}

    if isinstance(data, dict):
        return data

    return {}


def get_config_value(key: str, default: Any | None = None) -> Any | None:
    """Fetch a configuration value by key."""

    return load_config().get(key, default)


def reload_config() -> None:
    """Force the cached configuration to be reloaded on next access."""

    load_config.cache_clear()


def resolve_tools_dir(override: Path | None = None) -> Path:
    """Resolve the tools directory: option > env var > config file > ./tools."""

    if override is not None:
        return override

    if value := os.environ.get(TOOLS_DIR_ENV_VAR):
        return Path(value).expanduser()

    cfg_value = get_config_value(TOOLS_DIR_CONFIG_KEY)
    if isinstance(cfg_value, str) and cfg_value:
        return Path(cfg_value).expanduser()

    return DEFAULT_TOOLS_DIR


def build_toolchain(tools_dir: Path | None = None) -> Toolchain:
    """Build the run-wide Toolchain context.

    The host platform is detected here, once per run.
    """

    version = get_config_value(APKTOOL_VERSION_CONFIG_KEY)
    if not isinstance(version, str) or not version:
        version = APKTOOL_VERSION

    depth = get_config_value(CLONE_DEPTH_CONFIG_KEY)
    if not isinstance(depth, int) or isinstance(depth, bool) or depth < 0:
        depth = DEFAULT_CLONE_DEPTH

    return Toolchain(
        platform=current_platform(),
        tools_dir=resolve_tools_dir(tools_dir),
        apktool_version=version,
        clone_depth=depth,
    )
