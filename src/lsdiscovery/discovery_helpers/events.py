"""Progress events emitted while discovery runs.

Events are observational only: they let a presentation layer show which
attempt and stage discovery reached, and never influence control flow.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class DiscoveryStage(Enum):
    """Stages of a single discovery attempt."""

    LOCATE = "locate"
    ENUMERATE = "enumerate"
    PROBE = "probe"
    SUCCESS = "success"
    RETRY_WAIT = "retry_wait"
    ATTEMPT_FAILED = "attempt_failed"
    GAVE_UP = "gave_up"


@dataclass(frozen=True)
class DiscoveryEvent:
    attempt: int
    max_attempts: int
    stage: DiscoveryStage
    message: str
    reason: Optional[str] = None
    port: Optional[int] = None


DiscoveryObserver = Callable[[DiscoveryEvent], None]


class EventEmitter:
    """Delivers events to an optional observer, isolating discovery from observer failures."""

    def __init__(self, observer: Optional[DiscoveryObserver] = None):
        self._observer = observer

    def emit(self, event: DiscoveryEvent) -> None:
        if self._observer is None:
            return
        try:
            self._observer(event)
        except Exception:  # policy_guard: allow-silent-handler
            logger.exception("Discovery observer failed while handling %s event", event.stage.value)


__all__ = ["DiscoveryEvent", "DiscoveryObserver", "DiscoveryStage", "EventEmitter"]
