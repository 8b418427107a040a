"""Shared utilities package for the account rotator"""

from .storage import CredentialStorage, write_json_atomically
from .browser_locator import find_chrome
from .debug_console import (
    DebugCapturingConsole,
    configure_logging,
    setup_debug_logger,
)

__all__ = [
    "CredentialStorage",
    "write_json_atomically",
    "find_chrome",
    "DebugCapturingConsole",
    "configure_logging",
    "setup_debug_logger",
]
