"""Map attempt failures to actionable hints for the user."""

from __future__ import annotations

from typing import Optional

from ..errors import CommandExecutionFailed
from ..platform_strategy_helpers import DiagnosticMessages

HEAVY_LOAD_HINT = "Command execution timed out; the system may be under heavy load"

_COMMAND_MISSING_MARKERS = ("not found", "not recognized", "no such file")


def failure_hint(error: BaseException, messages: DiagnosticMessages) -> Optional[str]:
    """Return a hint explaining ``error``, or None when there is nothing specific to say."""
    if isinstance(error, CommandExecutionFailed) and error.timed_out:
        return HEAVY_LOAD_HINT

    text = str(error).lower()
    if "timeout" in text or "timed out" in text:
        return HEAVY_LOAD_HINT
    if isinstance(error, CommandExecutionFailed) and any(marker in text for marker in _COMMAND_MISSING_MARKERS):
        return messages.command_unavailable_message
    return None


def format_requirements(messages: DiagnosticMessages) -> str:
    lines = ["Please ensure:"]
    lines.extend(f"  {index}. {requirement}" for index, requirement in enumerate(messages.requirements, start=1))
    return "\n".join(lines)


__all__ = ["HEAVY_LOAD_HINT", "failure_hint", "format_requirements"]
