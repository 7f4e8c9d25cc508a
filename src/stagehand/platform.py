"""Host operating system limits."""

from __future__ import annotations

import sys

MACOS_MAX_COMMAND_LENGTH = 262144
WINDOWS_MAX_COMMAND_LENGTH = 8191
DEFAULT_MAX_COMMAND_LENGTH = 131072


def max_command_length(platform: str | None = None) -> int:
    """Maximum length of a command line on the given (or current) platform."""
    platform = platform if platform is not None else sys.platform
    if platform.startswith("darwin"):
        return MACOS_MAX_COMMAND_LENGTH
    if platform.startswith(("win32", "cygwin")):
        return WINDOWS_MAX_COMMAND_LENGTH
    return DEFAULT_MAX_COMMAND_LENGTH
