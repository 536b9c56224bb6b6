"""Helpers used by the discovery orchestrator."""

from .events import DiscoveryEvent, DiscoveryObserver, DiscoveryStage, EventEmitter
from .failure_hints import failure_hint, format_requirements
from .port_selection import find_working_port
from .retry_policy import RetryPolicy

__all__ = [
    "DiscoveryEvent",
    "DiscoveryObserver",
    "DiscoveryStage",
    "EventEmitter",
    "RetryPolicy",
    "failure_hint",
    "find_working_port",
    "format_requirements",
]
