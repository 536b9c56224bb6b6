"""List the TCP ports a process is listening on."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, List, Optional

from .command_runner import CommandRunner, run_command
from .config.settings import DEFAULT_PORT_LIST_TIMEOUT_SECONDS
from .errors import CommandExecutionFailed
from .models import ListeningPorts, is_valid_port
from .platform_strategy import PlatformStrategy
from .platform_strategy_helpers.base import unique_ports

logger = logging.getLogger(__name__)


class PortEnumerator:
    """Runs the platform's listening-port command for a PID.

    Never raises for command or parse errors: failures are logged and an
    empty tuple is returned. When enabled, psutil is consulted whenever the
    command yields nothing.
    """

    def __init__(
        self,
        strategy: PlatformStrategy,
        *,
        timeout_seconds: float = DEFAULT_PORT_LIST_TIMEOUT_SECONDS,
        psutil_fallback: bool = True,
        command_runner: CommandRunner = run_command,
    ):
        self.strategy = strategy
        self.timeout_seconds = timeout_seconds
        self.psutil_fallback = psutil_fallback
        self._run = command_runner

    async def list_ports(self, pid: int) -> ListeningPorts:
        logger.info("Fetching listening ports for PID %s", pid)
        ports = await self._ports_from_command(pid)
        if not ports and self.psutil_fallback:
            ports = await asyncio.to_thread(_ports_from_psutil, pid)
            if ports:
                logger.info("psutil reported listening ports for PID %s: %s", pid, _join(ports))
        if ports:
            logger.info("Found %d listening ports: %s", len(ports), _join(ports))
        return ports

    async def _ports_from_command(self, pid: int) -> ListeningPorts:
        command = self.strategy.list_listening_ports_command(pid)
        try:
            result = await self._run(command, self.timeout_seconds)
        except CommandExecutionFailed as exc:  # policy_guard: allow-silent-handler
            logger.warning("Failed to fetch listening ports: %s", exc)
            return ()
        try:
            return self.strategy.parse_listening_ports(result.stdout, pid)
        except (ValueError, TypeError, IndexError) as exc:  # policy_guard: allow-silent-handler
            logger.warning("Failed to parse listening ports for PID %s: %s", pid, exc)
            return ()


def _load_psutil() -> Optional[Any]:
    """Load psutil, or None when it is not installed."""
    try:
        import psutil
    except ImportError:  # Optional module not available  # policy_guard: allow-silent-handler
        logger.debug("psutil unavailable; skipping socket table lookup")
        return None
    return psutil


def _ports_from_psutil(pid: int) -> ListeningPorts:
    psutil = _load_psutil()
    if psutil is None:
        return ()

    try:
        process = psutil.Process(pid)
        list_connections = getattr(process, "net_connections", None) or process.connections
        connections = list_connections(kind="tcp")
    except (psutil.Error, OSError) as exc:  # policy_guard: allow-silent-handler
        logger.debug("psutil could not inspect sockets of PID %s: %s", pid, exc)
        return ()

    ports: List[int] = []
    for connection in connections:
        if connection.status != psutil.CONN_LISTEN or not connection.laddr:
            continue
        port = connection.laddr.port
        if is_valid_port(port):
            ports.append(port)
    return unique_ports(ports)


def _join(ports: ListeningPorts) -> str:
    return ", ".join(str(port) for port in ports)


__all__ = ["PortEnumerator"]
