"""macOS and Linux process and socket inspection via pgrep, lsof, ss and netstat."""

from __future__ import annotations

import re
import shlex
from typing import List, Optional

from ..models import ListeningPorts, ProcessInfo
from .base import DiagnosticMessages, PlatformStrategy, build_process_info, port_from_address, unique_ports

MACOS_PROCESS_NAME = "language_server_macos"
MACOS_ARM_PROCESS_NAME = "language_server_macos_arm"
LINUX_PROCESS_NAME = "language_server_linux_x64"
LINUX_ARM_PROCESS_NAME = "language_server_linux_arm"

_PGREP_LINE_RE = re.compile(r"^\s*(\d+)\s+(.*)$")
_LSOF_LISTEN_MARKER = "(LISTEN)"


def parse_lsof_line(columns: List[str], pid: Optional[int]) -> Optional[int]:
    """Port from an ``lsof -iTCP -sTCP:LISTEN`` row: COMMAND PID USER FD TYPE DEVICE SIZE/OFF NODE NAME (LISTEN)."""
    if _LSOF_LISTEN_MARKER not in columns:
        return None
    marker_index = columns.index(_LSOF_LISTEN_MARKER)
    if marker_index == 0:
        return None
    if pid is not None and (len(columns) < 2 or columns[1] != str(pid)):
        return None
    return port_from_address(columns[marker_index - 1])


class _PgrepStrategy(PlatformStrategy):
    """Shared pgrep-based process lookup; pgrep prints ``PID full-command-line`` per match."""

    pgrep_flags = "-f"

    def list_processes_command(self, name: str) -> str:
        return f"pgrep {self.pgrep_flags} {shlex.quote(name)}"

    def parse_process_info(self, raw_output: str) -> Optional[ProcessInfo]:
        for line in raw_output.splitlines():
            match = _PGREP_LINE_RE.match(line)
            if match is None:
                continue
            pid_text, command_line = match.groups()
            if not self._matches_target(command_line):
                continue
            info = build_process_info(pid_text, command_line)
            if info is not None:
                return info
        return None


class DarwinStrategy(_PgrepStrategy):
    family = "darwin"
    display_name = "macOS"
    pgrep_flags = "-lf"

    def __init__(self, process_name: str = MACOS_PROCESS_NAME) -> None:
        super().__init__(process_name)

    def list_listening_ports_command(self, pid: int) -> str:
        return f"lsof -nP -a -iTCP -sTCP:LISTEN -p {pid}"

    def parse_listening_ports(self, raw_output: str, pid: Optional[int] = None) -> ListeningPorts:
        ports: List[int] = []
        for line in raw_output.splitlines():
            port = parse_lsof_line(line.split(), pid)
            if port is not None:
                ports.append(port)
        return unique_ports(ports)

    def diagnostic_messages(self) -> DiagnosticMessages:
        return DiagnosticMessages(
            process_not_found_message=(
                f"Language server process '{self.target_process_name()}' not found. Make sure the IDE is running."
            ),
            command_unavailable_message="Port detection requires lsof or netstat. Please install one of them.",
            requirements=(
                "The IDE is running and a workspace is open",
                f"The '{self.target_process_name()}' process appears in Activity Monitor",
                "pgrep and lsof are available on PATH",
            ),
        )


class LinuxStrategy(_PgrepStrategy):
    family = "linux"
    display_name = "Linux"
    pgrep_flags = "-af"

    def __init__(self, process_name: str = LINUX_PROCESS_NAME) -> None:
        super().__init__(process_name)

    def list_listening_ports_command(self, pid: int) -> str:
        return (
            f'ss -tlnp 2>/dev/null | grep "pid={pid},"'
            f" || lsof -nP -a -iTCP -sTCP:LISTEN -p {pid} 2>/dev/null"
            f' || netstat -tlnp 2>/dev/null | grep " {pid}/"'
        )

    def parse_listening_ports(self, raw_output: str, pid: Optional[int] = None) -> ListeningPorts:
        ports: List[int] = []
        for line in raw_output.splitlines():
            port = self._parse_socket_line(line, pid)
            if port is not None:
                ports.append(port)
        return unique_ports(ports)

    def diagnostic_messages(self) -> DiagnosticMessages:
        return DiagnosticMessages(
            process_not_found_message=(
                f"Language server process '{self.target_process_name()}' not found. Make sure the IDE is running."
            ),
            command_unavailable_message="Port detection requires lsof, ss or netstat. Please install one of them.",
            requirements=(
                "The IDE is running and a workspace is open",
                f"The '{self.target_process_name()}' process is visible to the current user",
                "pgrep plus one of ss, lsof or netstat are available on PATH",
            ),
        )

    @staticmethod
    def _parse_socket_line(line: str, pid: Optional[int]) -> Optional[int]:
        columns = line.split()
        if not columns:
            return None
        # ss: State Recv-Q Send-Q Local:Port Peer:Port Process
        if columns[0] == "LISTEN":
            if len(columns) < 4:
                return None
            if pid is not None and f"pid={pid}," not in line:
                return None
            return port_from_address(columns[3])
        # netstat: Proto Recv-Q Send-Q Local Foreign State PID/Program
        if columns[0].startswith("tcp") and "LISTEN" in columns:
            if len(columns) < 7:
                return None
            if pid is not None and not columns[-1].startswith(f"{pid}/"):
                return None
            return port_from_address(columns[3])
        return parse_lsof_line(columns, pid)


__all__ = [
    "DarwinStrategy",
    "LINUX_ARM_PROCESS_NAME",
    "LINUX_PROCESS_NAME",
    "LinuxStrategy",
    "MACOS_ARM_PROCESS_NAME",
    "MACOS_PROCESS_NAME",
    "parse_lsof_line",
]
