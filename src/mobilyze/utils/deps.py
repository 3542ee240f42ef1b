"""External tool dependency checker."""

from __future__ import annotations

import shutil

from mobilyze.exceptions import ToolNotFoundError

# Install hints for required tools
TOOL_INSTALL_HINTS: dict[str, str] = {
    "git": "https://git-scm.com/downloads",
    "brew": "https://brew.sh/",
    "unzip": "Install the unzip package from your system package manager",
    "java": "Install a JDK (17+) and ensure `java` is on PATH",
    "apktool": "https://apktool.ibotpeaches.com/ (or rerun to let mobilyze fetch it)",
    "jadx": "https://github.com/skylot/jadx (or rerun to let mobilyze build it)",
    "class-dump": "brew install class-dump (macOS only)",
}


def check_tool(tool: str) -> bool:
    """Check if a tool is available on PATH."""

    return shutil.which(tool) is not None


def require(*tools: str) -> None:
    """Require that all specified tools are available.

    Args:
        *tools: Names of tools that must be available.

    Raises:
        ToolNotFoundError: If any tool is not found.
    """
    for tool in tools:
        if not check_tool(tool):
            raise ToolNotFoundError(tool, TOOL_INSTALL_HINTS.get(tool))

