from __future__ import annotations

"""Dependency factory for DiscoveryOrchestrator."""


from dataclasses import dataclass
from typing import Any, Optional

from ..config.settings import DiscoverySettings
from ..platform_strategy import PlatformStrategy, select_platform_strategy
from ..port_enumerator import PortEnumerator
from ..port_prober import PortProber
from ..process_locator import ProcessLocator


@dataclass(frozen=True)
class DiscoveryOptionalDeps:
    """Optional dependencies for DiscoveryOrchestrator.

    Components only need the method the orchestrator calls
    (``locate_process``, ``list_ports`` or ``probe``), so test doubles fit.
    """

    strategy: Optional[PlatformStrategy] = None
    locator: Optional[Any] = None
    enumerator: Optional[Any] = None
    prober: Optional[Any] = None


@dataclass
class DiscoveryDependencies:
    """Container for all DiscoveryOrchestrator dependencies."""

    strategy: PlatformStrategy
    locator: Any
    enumerator: Any
    prober: Any


def _merge_field(optional_value, base_value):
    """Prefer the provided value; explicit None check keeps falsy doubles usable."""
    if optional_value is not None:
        return optional_value
    return base_value


class DiscoveryDependenciesFactory:
    """Factory for creating DiscoveryOrchestrator dependencies."""

    @staticmethod
    def create(settings: DiscoverySettings, strategy: Optional[PlatformStrategy] = None) -> DiscoveryDependencies:
        """Create every component from settings."""
        resolved_strategy = strategy or select_platform_strategy(settings.process_name)
        locator = ProcessLocator(
            resolved_strategy,
            timeout_seconds=settings.process_list_timeout_seconds,
        )
        enumerator = PortEnumerator(
            resolved_strategy,
            timeout_seconds=settings.port_list_timeout_seconds,
            psutil_fallback=settings.psutil_fallback,
        )
        prober = PortProber(timeout_seconds=settings.probe_timeout_seconds)
        return DiscoveryDependencies(
            strategy=resolved_strategy,
            locator=locator,
            enumerator=enumerator,
            prober=prober,
        )

    @staticmethod
    def create_or_use(
        settings: DiscoverySettings,
        optional: Optional[DiscoveryOptionalDeps] = None,
    ) -> DiscoveryDependencies:
        """Create only the dependencies that were not provided."""
        if optional is None:
            optional = DiscoveryOptionalDeps()

        if optional.strategy and optional.locator and optional.enumerator and optional.prober:
            return DiscoveryDependencies(
                strategy=optional.strategy,
                locator=optional.locator,
                enumerator=optional.enumerator,
                prober=optional.prober,
            )

        defaults = DiscoveryDependenciesFactory.create(settings, optional.strategy)
        return DiscoveryDependencies(
            strategy=defaults.strategy,
            locator=_merge_field(optional.locator, defaults.locator),
            enumerator=_merge_field(optional.enumerator, defaults.enumerator),
            prober=_merge_field(optional.prober, defaults.prober),
        )


__all__ = ["DiscoveryDependencies", "DiscoveryDependenciesFactory", "DiscoveryOptionalDeps"]
