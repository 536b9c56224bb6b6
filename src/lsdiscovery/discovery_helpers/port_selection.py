"""Sequential, short-circuiting search for the port that serves the API."""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Iterable, Optional

logger = logging.getLogger(__name__)

ProbeFunc = Callable[[int, str], Awaitable[bool]]
ProbeResultCallback = Callable[[int, bool], None]


async def find_working_port(
    ports: Iterable[int],
    security_token: str,
    probe: ProbeFunc,
    on_result: Optional[ProbeResultCallback] = None,
) -> Optional[int]:
    """
    Probe ``ports`` one at a time in the given order and return the first that answers.

    Ports after the first success are never probed, and probes never run in
    parallel.

    Args:
        ports: Candidate ports in priority order
        security_token: Token sent with every probe
        probe: Coroutine function returning True for a working port
        on_result: Called with ``(port, succeeded)`` after each probe

    Returns:
        The first working port, or None if every probe failed
    """
    for port in ports:
        logger.info("Testing port %s...", port)
        is_working = await probe(port, security_token)
        if on_result is not None:
            on_result(port, is_working)
        if is_working:
            logger.info("Port %s test succeeded", port)
            return port
        logger.info("Port %s test failed", port)
    return None


__all__ = ["ProbeFunc", "find_working_port"]
