"""Windows process and socket inspection via PowerShell and netstat."""

from __future__ import annotations

import json
import logging
from typing import Any, Iterable, List, Optional, Tuple

from ..models import ListeningPorts, ProcessInfo
from .base import DiagnosticMessages, PlatformStrategy, build_process_info, port_from_address, unique_ports

logger = logging.getLogger(__name__)

WINDOWS_PROCESS_NAME = "language_server_windows_x64.exe"

_WMIC_COMMAND_LINE_KEY = "CommandLine="
_WMIC_PROCESS_ID_KEY = "ProcessId="


class WindowsStrategy(PlatformStrategy):
    family = "windows"
    display_name = "Windows"

    def __init__(self, process_name: str = WINDOWS_PROCESS_NAME) -> None:
        super().__init__(process_name)

    def list_processes_command(self, name: str) -> str:
        return (
            'powershell -NoProfile -NonInteractive -Command "'
            f"Get-CimInstance -ClassName Win32_Process | Where-Object {{ $_.Name -eq '{name}' }} | "
            'Select-Object ProcessId,CommandLine | ConvertTo-Json -Compress"'
        )

    def list_listening_ports_command(self, pid: int) -> str:
        return f'netstat -ano | findstr "LISTENING" | findstr "{pid}"'

    def parse_process_info(self, raw_output: str) -> Optional[ProcessInfo]:
        for pid_text, command_line in self._process_records(raw_output):
            if not command_line:
                continue
            info = build_process_info(pid_text, command_line)
            if info is not None:
                return info
        return None

    def parse_listening_ports(self, raw_output: str, pid: Optional[int] = None) -> ListeningPorts:
        ports: List[int] = []
        for line in raw_output.splitlines():
            columns = line.split()
            # Proto, Local Address, Foreign Address, State, PID
            if len(columns) < 5 or columns[0].upper() != "TCP" or columns[3].upper() != "LISTENING":
                continue
            if pid is not None and columns[4] != str(pid):
                continue
            port = port_from_address(columns[1])
            if port is not None:
                ports.append(port)
        return unique_ports(ports)

    def diagnostic_messages(self) -> DiagnosticMessages:
        return DiagnosticMessages(
            process_not_found_message=(
                f"Language server process '{self.target_process_name()}' not found. Make sure the IDE is running."
            ),
            command_unavailable_message="PowerShell or netstat is not available; both are required on Windows.",
            requirements=(
                "The IDE is running and a workspace is open",
                f"The '{self.target_process_name()}' process is visible in Task Manager",
                "PowerShell (Get-CimInstance) and netstat are available on PATH",
                "Local firewall rules allow connections to 127.0.0.1",
            ),
        )

    def _process_records(self, raw_output: str) -> Iterable[Tuple[str, str]]:
        stripped = raw_output.strip()
        if not stripped:
            return []
        if stripped[0] in "[{":
            return _records_from_json(stripped)
        return _records_from_wmic_list(stripped)


def _records_from_json(payload: str) -> List[Tuple[str, str]]:
    try:
        decoded: Any = json.loads(payload)
    except json.JSONDecodeError:
        logger.debug("Process listing is not valid JSON")
        return []
    entries = decoded if isinstance(decoded, list) else [decoded]
    records: List[Tuple[str, str]] = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        command_line = entry.get("CommandLine")
        pid = entry.get("ProcessId")
        if isinstance(command_line, str) and pid is not None:
            records.append((str(pid), command_line))
    return records


def _records_from_wmic_list(payload: str) -> List[Tuple[str, str]]:
    """Parse ``wmic ... /format:list`` blocks of ``CommandLine=`` / ``ProcessId=`` lines."""
    records: List[Tuple[str, str]] = []
    command_line: Optional[str] = None
    for line in payload.splitlines():
        stripped = line.strip()
        if stripped.startswith(_WMIC_COMMAND_LINE_KEY):
            command_line = stripped[len(_WMIC_COMMAND_LINE_KEY) :]
        elif stripped.startswith(_WMIC_PROCESS_ID_KEY) and command_line is not None:
            records.append((stripped[len(_WMIC_PROCESS_ID_KEY) :], command_line))
            command_line = None
    return records


__all__ = ["WINDOWS_PROCESS_NAME", "WindowsStrategy"]
