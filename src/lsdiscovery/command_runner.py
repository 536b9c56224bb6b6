"""Run short-lived shell commands with a bounded execution time."""

from __future__ import annotations

import asyncio
import logging
import os
import signal
from dataclasses import dataclass
from typing import Awaitable, Callable

from .errors import CommandExecutionFailed

logger = logging.getLogger(__name__)

_OUTPUT_ENCODING = "utf-8"
# Own process group per command so a timeout can kill the whole pipeline
_USE_PROCESS_GROUP = os.name == "posix"


@dataclass(frozen=True)
class CommandResult:
    command: str
    stdout: str
    stderr: str
    exit_code: int


CommandRunner = Callable[[str, float], Awaitable[CommandResult]]


async def run_command(command: str, timeout_seconds: float) -> CommandResult:
    """
    Run ``command`` through the system shell and capture its output.

    Args:
        command: Shell command line supplied by a platform strategy
        timeout_seconds: Upper bound on execution time; the child is killed afterwards

    Returns:
        CommandResult for a zero exit status

    Raises:
        CommandExecutionFailed: On timeout, launch failure or non-zero exit
    """
    logger.debug("Running command (timeout=%ss): %s", timeout_seconds, command)
    try:
        process = await asyncio.create_subprocess_shell(
            command,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            start_new_session=_USE_PROCESS_GROUP,
        )
    except OSError as exc:
        raise CommandExecutionFailed.launch_failed(command, str(exc)) from exc

    try:
        stdout_bytes, stderr_bytes = await asyncio.wait_for(process.communicate(), timeout=timeout_seconds)
    except asyncio.TimeoutError as exc:
        await _kill(process, command)
        raise CommandExecutionFailed.timeout(command, timeout_seconds) from exc
    except asyncio.CancelledError:
        await _kill(process, command)
        raise

    stdout = stdout_bytes.decode(_OUTPUT_ENCODING, errors="replace")
    stderr = stderr_bytes.decode(_OUTPUT_ENCODING, errors="replace")
    exit_code = process.returncode if process.returncode is not None else -1

    if exit_code != 0:
        raise CommandExecutionFailed(command=command, exit_code=exit_code, stderr=stderr)

    return CommandResult(command=command, stdout=stdout, stderr=stderr, exit_code=exit_code)


async def _kill(process: asyncio.subprocess.Process, command: str) -> None:
    """Kill a child and every process it started, then reap it."""
    if process.returncode is not None:
        return
    try:
        if _USE_PROCESS_GROUP:
            os.killpg(process.pid, signal.SIGKILL)
        else:
            process.kill()
    except ProcessLookupError:
        # Exited between the returncode check and kill
        return
    try:
        await asyncio.wait_for(process.wait(), timeout=1.0)
    except asyncio.TimeoutError:
        logger.warning("Child process %s did not exit after kill: %s", process.pid, command)


__all__ = ["CommandResult", "CommandRunner", "run_command"]
