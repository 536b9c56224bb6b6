"""Locate the language server process and read its launch arguments."""

from __future__ import annotations

import logging

from .command_runner import CommandRunner, run_command
from .config.settings import DEFAULT_PROCESS_LIST_TIMEOUT_SECONDS
from .errors import ProcessNotFound
from .models import ProcessInfo, mask_token
from .platform_strategy import PlatformStrategy

logger = logging.getLogger(__name__)


class ProcessLocator:
    """Runs the platform's process listing and parses the target's PID, port and token."""

    def __init__(
        self,
        strategy: PlatformStrategy,
        *,
        timeout_seconds: float = DEFAULT_PROCESS_LIST_TIMEOUT_SECONDS,
        command_runner: CommandRunner = run_command,
    ):
        self.strategy = strategy
        self.timeout_seconds = timeout_seconds
        self.process_name = strategy.target_process_name()
        self._run = command_runner

    async def locate_process(self) -> ProcessInfo:
        """
        Find the running language server.

        Raises:
            CommandExecutionFailed: If the listing command times out or exits non-zero
            ProcessNotFound: If no record matches or required arguments are missing
        """
        command = self.strategy.list_processes_command(self.process_name)
        result = await self._run(command, self.timeout_seconds)

        info = self.strategy.parse_process_info(result.stdout)
        if info is None:
            raise ProcessNotFound(self.strategy.diagnostic_messages().process_not_found_message)

        logger.info(
            "Found process info: PID %s, extension_server_port %s, CSRF token %s",
            info.pid,
            info.declared_port if info.declared_port is not None else "(not found)",
            mask_token(info.security_token),
        )
        return info


__all__ = ["ProcessLocator"]
