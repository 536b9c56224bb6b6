"""Shared configuration helpers and dataclasses."""

from .errors import ConfigurationError
from .runtime import env_bool, env_float, env_int, env_str, reset_default_values
from .settings import DiscoverySettings, load_discovery_settings

__all__ = [
    "ConfigurationError",
    "DiscoverySettings",
    "env_bool",
    "env_float",
    "env_int",
    "env_str",
    "load_discovery_settings",
    "reset_default_values",
]
