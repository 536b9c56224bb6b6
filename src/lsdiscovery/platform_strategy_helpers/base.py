"""Shared contract and parsing helpers for platform strategies."""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from ..models import ListeningPorts, ProcessInfo, is_valid_port

logger = logging.getLogger(__name__)

EXTENSION_PORT_FLAG = "--extension_server_port"
CSRF_TOKEN_FLAG = "--csrf_token"

# Matches "host:port" where host is IPv4, "*", "[ipv6]" or a bare IPv6 literal
_ADDRESS_PORT_RE = re.compile(r"^(?:\*|\[[^\]]*\]|[0-9A-Fa-f.:%\w]*):(\d+)$")


@dataclass(frozen=True)
class DiagnosticMessages:
    """Human-readable guidance for reporting failures."""

    process_not_found_message: str
    command_unavailable_message: str
    requirements: Tuple[str, ...]


def _flag_pattern(flag: str) -> re.Pattern[str]:
    return re.compile(rf"(?:^|\s){re.escape(flag)}(?:=|\s+)(\"[^\"]*\"|'[^']*'|\S+)")


_FLAG_PATTERNS = {flag: _flag_pattern(flag) for flag in (EXTENSION_PORT_FLAG, CSRF_TOKEN_FLAG)}


def extract_flag_value(command_line: str, flag: str) -> Optional[str]:
    """Return the value passed for ``flag`` as ``--flag value`` or ``--flag=value``."""
    pattern = _FLAG_PATTERNS.get(flag) or _flag_pattern(flag)
    match = pattern.search(command_line)
    if match is None:
        return None
    value = match.group(1).strip("\"'")
    return value or None


def build_process_info(pid_text: str, command_line: str) -> Optional[ProcessInfo]:
    """Build a :class:`ProcessInfo` from a PID and command line, or ``None`` when fields are missing."""
    try:
        pid = int(pid_text)
    except (TypeError, ValueError):
        return None
    if pid <= 0:
        return None

    token = extract_flag_value(command_line, CSRF_TOKEN_FLAG)
    if not token:
        logger.debug("Process %s has no %s argument", pid, CSRF_TOKEN_FLAG)
        return None

    declared_port: Optional[int] = None
    port_text = extract_flag_value(command_line, EXTENSION_PORT_FLAG)
    if port_text is not None:
        try:
            declared_port = int(port_text)
        except ValueError:
            logger.debug("Ignoring non-numeric %s value %r", EXTENSION_PORT_FLAG, port_text)
        else:
            if not 0 <= declared_port <= 65535:
                declared_port = None

    return ProcessInfo(pid=pid, declared_port=declared_port, security_token=token)


def port_from_address(address: str) -> Optional[int]:
    """Extract the port from a ``host:port`` socket address token."""
    match = _ADDRESS_PORT_RE.match(address.strip())
    if match is None:
        return None
    port = int(match.group(1))
    return port if is_valid_port(port) else None


def unique_ports(ports: Iterable[int]) -> ListeningPorts:
    """Deduplicate ports preserving first-seen order."""
    seen: List[int] = []
    for port in ports:
        if port not in seen:
            seen.append(port)
    return tuple(seen)


class PlatformStrategy(ABC):
    """Capability set for one operating-system family.

    Concrete strategies own every piece of OS-specific command syntax and
    output format knowledge. Instances are immutable.
    """

    family: str = ""
    display_name: str = ""

    def __init__(self, process_name: str) -> None:
        self._process_name = process_name

    def target_process_name(self) -> str:
        return self._process_name

    @abstractmethod
    def list_processes_command(self, name: str) -> str:
        """Shell command printing the full command line of every process matching ``name``."""

    @abstractmethod
    def list_listening_ports_command(self, pid: int) -> str:
        """Shell command printing the listening sockets of ``pid``."""

    @abstractmethod
    def parse_process_info(self, raw_output: str) -> Optional[ProcessInfo]:
        """Extract the first matching process record, or ``None``."""

    @abstractmethod
    def parse_listening_ports(self, raw_output: str, pid: Optional[int] = None) -> ListeningPorts:
        """Extract distinct listening ports; never raises."""

    @abstractmethod
    def diagnostic_messages(self) -> DiagnosticMessages:
        """Guidance surfaced when discovery fails."""

    def _matches_target(self, command_line: str) -> bool:
        return self._process_name in command_line

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(process_name={self._process_name!r})"


__all__ = [
    "CSRF_TOKEN_FLAG",
    "DiagnosticMessages",
    "EXTENSION_PORT_FLAG",
    "PlatformStrategy",
    "build_process_info",
    "extract_flag_value",
    "port_from_address",
    "unique_ports",
]
