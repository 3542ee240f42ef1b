"""Host platform detection."""

import sys
from enum import StrEnum


class Platform(StrEnum):
    """Host operating system family."""

    WIN = "win"
    MAC = "mac"
    LINUX = "linux"
    BSD = "bsd"
    ERROR = "error"


# Checked in order; "darwin" must not be caught by the windows tokens.
PLATFORM_TOKENS: list[tuple[Platform, tuple[str, ...]]] = [
    (
        Platform.WIN,
        ("mswin", "msys", "mingw", "cygwin", "bccwin", "wince", "emc", "win32",
         "windows"),
    ),
    (Platform.MAC, ("darwin", "mac os")),
    (Platform.LINUX, ("linux",)),
    (Platform.BSD, ("solaris", "bsd")),
]


def detect_platform(host: str) -> Platform:
    """Classify a host identifier string (e.g., 'darwin23', 'x86_64-linux-gnu').

    Args:
        host: Host identifier, matched case-insensitively by substring.

    Returns:
        The detected Platform, or Platform.ERROR if nothing matched.
    """
    host = host.lower()
    for platform, tokens in PLATFORM_TOKENS:
        if any(token in host for token in tokens):
            return platform
    return Platform.ERROR


def current_platform() -> Platform:
    """Detect the platform of the running interpreter."""
    return detect_platform(sys.platform)
