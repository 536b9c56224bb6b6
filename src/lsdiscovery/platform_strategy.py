"""Selection of the platform strategy for the running operating system.

Usage:
    from lsdiscovery.platform_strategy import select_platform_strategy

    strategy = select_platform_strategy()
    command = strategy.list_processes_command(strategy.target_process_name())
"""

from __future__ import annotations

import logging
import platform
from functools import lru_cache
from typing import Optional

from .errors import UnsupportedPlatformError
from .platform_strategy_helpers import (
    DarwinStrategy,
    DiagnosticMessages,
    LinuxStrategy,
    PlatformStrategy,
    WindowsStrategy,
)
from .platform_strategy_helpers.unix import LINUX_ARM_PROCESS_NAME, MACOS_ARM_PROCESS_NAME

logger = logging.getLogger(__name__)

_ARM_MACHINES = frozenset({"arm64", "aarch64", "armv8", "armv8l"})


def _is_arm(machine: str) -> bool:
    return machine.lower() in _ARM_MACHINES


def build_platform_strategy(system: str, machine: str = "", process_name: Optional[str] = None) -> PlatformStrategy:
    """
    Build the strategy for an operating-system family.

    Args:
        system: Value in the form returned by ``platform.system()``
        machine: Value in the form returned by ``platform.machine()``
        process_name: Overrides the default language server process name

    Raises:
        UnsupportedPlatformError: If no strategy exists for ``system``
    """
    normalized = system.strip().lower()
    if normalized == "windows":
        return WindowsStrategy(process_name) if process_name else WindowsStrategy()
    if normalized == "darwin":
        default_name = MACOS_ARM_PROCESS_NAME if _is_arm(machine) else DarwinStrategy().target_process_name()
        return DarwinStrategy(process_name or default_name)
    if normalized == "linux":
        default_name = LINUX_ARM_PROCESS_NAME if _is_arm(machine) else LinuxStrategy().target_process_name()
        return LinuxStrategy(process_name or default_name)
    raise UnsupportedPlatformError(system)


@lru_cache(maxsize=None)
def select_platform_strategy(process_name: Optional[str] = None) -> PlatformStrategy:
    """Return the strategy for the running OS; selected once per process and name override."""
    system = platform.system()
    machine = platform.machine()
    strategy = build_platform_strategy(system, machine, process_name)
    logger.debug("Selected %s strategy %r for %s/%s", strategy.family, strategy, system, machine)
    return strategy


__all__ = [
    "DiagnosticMessages",
    "PlatformStrategy",
    "build_platform_strategy",
    "select_platform_strategy",
]
