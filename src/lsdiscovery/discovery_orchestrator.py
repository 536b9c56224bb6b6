"""
Discovery Orchestrator

Sequences process location, port enumeration and port probing, retrying
the whole pipeline until a port answers or the attempt budget is spent.

Usage:
    from lsdiscovery.discovery_orchestrator import DiscoveryOrchestrator

    bundle = await DiscoveryOrchestrator().discover(max_attempts=3, retry_delay_ms=2000)
    if bundle is None:
        ...  # no credentials available right now
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from .config import DiscoverySettings, load_discovery_settings
from .discovery_helpers import (
    DiscoveryEvent,
    DiscoveryObserver,
    DiscoveryStage,
    EventEmitter,
    RetryPolicy,
    failure_hint,
    find_working_port,
    format_requirements,
)
from .discovery_helpers.dependencies_factory import DiscoveryDependenciesFactory, DiscoveryOptionalDeps
from .errors import DiscoveryError, NoListeningPorts, NoWorkingPort
from .models import CredentialBundle, ListeningPorts, ProcessInfo, is_valid_port

logger = logging.getLogger(__name__)

SleepFunc = Callable[[float], Awaitable[None]]


class DiscoveryOrchestrator:
    """Runs credential discovery attempts against the local language server.

    The orchestrator keeps no per-call state on the instance, so
    concurrent ``discover()`` calls are independent.
    """

    def __init__(
        self,
        settings: Optional[DiscoverySettings] = None,
        *,
        observer: Optional[DiscoveryObserver] = None,
        optional_deps: Optional[DiscoveryOptionalDeps] = None,
        sleep: SleepFunc = asyncio.sleep,
    ):
        self.settings = settings if settings is not None else load_discovery_settings()
        deps = DiscoveryDependenciesFactory.create_or_use(self.settings, optional_deps)
        self.strategy = deps.strategy
        self.locator = deps.locator
        self.enumerator = deps.enumerator
        self.prober = deps.prober
        self._emitter = EventEmitter(observer)
        self._sleep = sleep

    def build_retry_policy(self, max_attempts: Optional[int] = None, retry_delay_ms: Optional[int] = None) -> RetryPolicy:
        return RetryPolicy(
            max_attempts=self.settings.max_attempts if max_attempts is None else max_attempts,
            retry_delay_ms=self.settings.retry_delay_ms if retry_delay_ms is None else retry_delay_ms,
            multiplier=self.settings.backoff_multiplier,
            max_delay_ms=self.settings.max_retry_delay_ms,
        )

    async def discover(
        self,
        max_attempts: Optional[int] = None,
        retry_delay_ms: Optional[int] = None,
    ) -> Optional[CredentialBundle]:
        """
        Discover credentials for the running language server.

        Args:
            max_attempts: Attempt budget (settings default: 3)
            retry_delay_ms: Wait between failed attempts (settings default: 2000)

        Returns:
            CredentialBundle confirmed by a successful probe, or None once every
            attempt has failed
        """
        policy = self.build_retry_policy(max_attempts, retry_delay_ms)
        messages = self.strategy.diagnostic_messages()

        attempt = 1
        last_failure = messages.process_not_found_message
        last_reason: Optional[str] = None
        while True:
            self._emit(
                attempt,
                policy,
                DiscoveryStage.LOCATE,
                f"Attempting to detect language server process "
                f"({self.strategy.display_name}, try {attempt}/{policy.max_attempts})",
            )
            try:
                return await self._run_attempt(attempt, policy)
            except DiscoveryError as exc:  # policy_guard: allow-silent-handler
                hint = failure_hint(exc, messages)
                logger.warning("Attempt %s failed: %s", attempt, exc)
                if hint:
                    logger.warning("   Reason: %s", hint)
                last_failure = str(exc)
                last_reason = hint or type(exc).__name__
                self._emit(attempt, policy, DiscoveryStage.ATTEMPT_FAILED, last_failure, reason=last_reason)

            if not policy.should_retry(attempt):
                break

            delay_seconds = policy.delay_seconds(attempt)
            logger.info("Waiting %.0fms before retrying...", delay_seconds * 1000)
            self._emit(attempt, policy, DiscoveryStage.RETRY_WAIT, f"Retrying in {delay_seconds:g}s")
            await self._sleep(delay_seconds)
            attempt += 1

        logger.error("All %s attempts failed", policy.max_attempts)
        logger.error(format_requirements(messages))
        self._emit(attempt, policy, DiscoveryStage.GAVE_UP, last_failure, reason=last_reason)
        return None

    async def _run_attempt(self, attempt: int, policy: RetryPolicy) -> CredentialBundle:
        """One locate, enumerate and probe pass; nothing carries over between calls."""
        info: ProcessInfo = await self.locator.locate_process()

        self._emit(attempt, policy, DiscoveryStage.ENUMERATE, f"Fetching listening ports for PID {info.pid}")
        ports: ListeningPorts = tuple(await self.enumerator.list_ports(info.pid))
        if not ports:
            raise NoListeningPorts(pid=info.pid)

        self._emit(attempt, policy, DiscoveryStage.PROBE, f"Testing {len(ports)} candidate ports")

        def _on_result(port: int, succeeded: bool) -> None:
            outcome = "succeeded" if succeeded else "failed"
            self._emit(attempt, policy, DiscoveryStage.PROBE, f"Port {port} test {outcome}", port=port)

        connect_port = await find_working_port(ports, info.security_token, self.prober.probe, _on_result)
        if connect_port is None:
            connect_port = await self._probe_offset_candidate(info, ports)
        if connect_port is None:
            raise NoWorkingPort(pid=info.pid, ports=ports)

        # A process without a usable declared port is reached through the probed one
        extension_port = info.declared_port if info.declared_port else connect_port
        bundle = CredentialBundle(
            extension_port=extension_port,
            connect_port=connect_port,
            security_token=info.security_token,
        )
        logger.info(
            "Attempt %s succeeded: API port (HTTPS) %s, CSRF token %s", attempt, connect_port, bundle.masked_token()
        )
        self._emit(attempt, policy, DiscoveryStage.SUCCESS, f"Detected API port {connect_port}", port=connect_port)
        return bundle

    async def _probe_offset_candidate(self, info: ProcessInfo, tried: ListeningPorts) -> Optional[int]:
        """Probe ``declared_port + fallback_port_offset`` when configured and not already tried."""
        offset = self.settings.fallback_port_offset
        if offset is None or not info.declared_port:
            return None
        candidate = info.declared_port + offset
        if candidate in tried or not is_valid_port(candidate):
            return None
        logger.info("Testing offset candidate port %s (declared %s %+d)", candidate, info.declared_port, offset)
        if await self.prober.probe(candidate, info.security_token):
            return candidate
        return None

    def _emit(
        self,
        attempt: int,
        policy: RetryPolicy,
        stage: DiscoveryStage,
        message: str,
        *,
        reason: Optional[str] = None,
        port: Optional[int] = None,
    ) -> None:
        self._emitter.emit(
            DiscoveryEvent(
                attempt=attempt,
                max_attempts=policy.max_attempts,
                stage=stage,
                message=message,
                reason=reason,
                port=port,
            )
        )


async def discover(
    max_attempts: Optional[int] = None,
    retry_delay_ms: Optional[int] = None,
    *,
    settings: Optional[DiscoverySettings] = None,
    observer: Optional[DiscoveryObserver] = None,
) -> Optional[CredentialBundle]:
    """Run discovery with default components for the current platform."""
    orchestrator = DiscoveryOrchestrator(settings, observer=observer)
    return await orchestrator.discover(max_attempts, retry_delay_ms)


def discover_sync(
    max_attempts: Optional[int] = None,
    retry_delay_ms: Optional[int] = None,
    *,
    settings: Optional[DiscoverySettings] = None,
    observer: Optional[DiscoveryObserver] = None,
) -> Optional[CredentialBundle]:
    """Synchronously run :func:`discover` on a private event loop.

    Raises:
        RuntimeError: If called while an event loop is already running.
    """
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:  # policy_guard: allow-silent-handler
        # Absence of running loop - expected when called from synchronous context
        loop = None

    if loop is not None and loop.is_running():
        raise RuntimeError("discover_sync cannot run inside an active event loop. Use the async discover API instead.")

    return asyncio.run(discover(max_attempts, retry_delay_ms, settings=settings, observer=observer))


__all__ = ["DiscoveryOrchestrator", "discover", "discover_sync"]
