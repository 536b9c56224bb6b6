"""Discover connection credentials of a locally running language server."""

from .config import ConfigurationError, DiscoverySettings, load_discovery_settings
from .discovery_helpers import DiscoveryEvent, DiscoveryStage
from .discovery_orchestrator import DiscoveryOrchestrator, discover, discover_sync
from .errors import (
    CommandExecutionFailed,
    DiscoveryError,
    NoListeningPorts,
    NoWorkingPort,
    ProcessNotFound,
    UnsupportedPlatformError,
)
from .models import CredentialBundle, ProcessInfo
from .platform_strategy import PlatformStrategy, select_platform_strategy

__version__ = "0.1.0"

__all__ = [
    "CommandExecutionFailed",
    "ConfigurationError",
    "CredentialBundle",
    "DiscoveryError",
    "DiscoveryEvent",
    "DiscoveryOrchestrator",
    "DiscoverySettings",
    "DiscoveryStage",
    "NoListeningPorts",
    "NoWorkingPort",
    "PlatformStrategy",
    "ProcessInfo",
    "ProcessNotFound",
    "UnsupportedPlatformError",
    "discover",
    "discover_sync",
    "load_discovery_settings",
    "select_platform_strategy",
]
