"""Concrete platform strategies and shared parsing helpers."""

from .base import DiagnosticMessages, PlatformStrategy
from .unix import DarwinStrategy, LinuxStrategy
from .windows import WindowsStrategy

__all__ = [
    "DarwinStrategy",
    "DiagnosticMessages",
    "LinuxStrategy",
    "PlatformStrategy",
    "WindowsStrategy",
]
