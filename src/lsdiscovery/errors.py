"""Error types raised while discovering language-server credentials.

All discovery failures inherit from :class:`DiscoveryError`. They are
recoverable: the orchestrator catches them inside a single attempt and
uses them only to decide whether to retry.

Exception classes support two patterns:
1. No-argument raise: raise ProcessNotFound()
2. Contextual attributes: err = NoListeningPorts(pid=4321); raise err
"""

from __future__ import annotations

from typing import Any, Optional, Sequence


class DiscoveryError(Exception):
    """Base exception for all discovery failures.

    Supports keyword arguments that are stored as attributes for debugging.
    """

    def __init__(self, message: str = "", **kwargs: Any) -> None:
        if not message:
            message = self.__class__.__doc__ or "Discovery failed"
        super().__init__(message)
        self.message = message
        for key, value in kwargs.items():
            setattr(self, key, value)


class CommandExecutionFailed(DiscoveryError):
    """Shell command timed out or exited with a non-zero status."""

    def __init__(
        self,
        message: str = "",
        *,
        command: str = "",
        exit_code: Optional[int] = None,
        stderr: str = "",
        timed_out: bool = False,
    ) -> None:
        if not message:
            message = _describe_command_failure(command, exit_code, stderr, timed_out)
        super().__init__(message, command=command, exit_code=exit_code, stderr=stderr, timed_out=timed_out)

    @classmethod
    def timeout(cls, command: str, timeout_seconds: float) -> "CommandExecutionFailed":
        """Create error for a command that exceeded its execution timeout."""
        return cls(
            f"Command timeout after {timeout_seconds:g}s: {command}",
            command=command,
            timed_out=True,
        )

    @classmethod
    def launch_failed(cls, command: str, reason: str) -> "CommandExecutionFailed":
        """Create error for a command the shell could not start."""
        return cls(f"Command could not be started ({reason}): {command}", command=command, stderr=reason)


class ProcessNotFound(DiscoveryError):
    """Target process is not running or its command line lacks required fields."""


class NoListeningPorts(DiscoveryError):
    """Process was found but has no listening sockets."""

    def __init__(self, message: str = "", *, pid: Optional[int] = None) -> None:
        if not message and pid is not None:
            message = f"Process {pid} is not listening on any ports"
        super().__init__(message, pid=pid)


class NoWorkingPort(DiscoveryError):
    """Every candidate port failed the liveness probe."""

    def __init__(self, message: str = "", *, pid: Optional[int] = None, ports: Sequence[int] = ()) -> None:
        if not message and ports:
            message = f"Unable to find a working API port among {', '.join(str(port) for port in ports)}"
        super().__init__(message, pid=pid, ports=tuple(ports))


class UnsupportedPlatformError(RuntimeError):
    """Raised when no platform strategy exists for the running operating system."""

    def __init__(self, system: str) -> None:
        super().__init__(f"Unsupported platform for language server discovery: {system!r}")
        self.system = system


def _describe_command_failure(command: str, exit_code: Optional[int], stderr: str, timed_out: bool) -> str:
    if timed_out:
        return f"Command timeout: {command}"
    detail = stderr.strip()
    if exit_code is not None:
        summary = f"Command failed with exit code {exit_code}: {command}"
    else:
        summary = f"Command failed: {command}"
    if detail:
        summary = f"{summary} ({detail})"
    return summary


__all__ = [
    "CommandExecutionFailed",
    "DiscoveryError",
    "NoListeningPorts",
    "NoWorkingPort",
    "ProcessNotFound",
    "UnsupportedPlatformError",
]
