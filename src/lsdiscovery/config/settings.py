from __future__ import annotations

"""Discovery settings resolved from the environment."""


from dataclasses import dataclass
from typing import Optional

from .errors import ConfigurationError
from .runtime import ENV_PREFIX, env_bool, env_float, env_int, env_str

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_RETRY_DELAY_MS = 2000
DEFAULT_BACKOFF_MULTIPLIER = 1.0
DEFAULT_MAX_RETRY_DELAY_MS = 60_000
DEFAULT_PROCESS_LIST_TIMEOUT_SECONDS = 5.0
DEFAULT_PORT_LIST_TIMEOUT_SECONDS = 3.0
DEFAULT_PROBE_TIMEOUT_SECONDS = 2.0


@dataclass(frozen=True)
class DiscoverySettings:
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    retry_delay_ms: int = DEFAULT_RETRY_DELAY_MS
    backoff_multiplier: float = DEFAULT_BACKOFF_MULTIPLIER
    max_retry_delay_ms: int = DEFAULT_MAX_RETRY_DELAY_MS
    process_list_timeout_seconds: float = DEFAULT_PROCESS_LIST_TIMEOUT_SECONDS
    port_list_timeout_seconds: float = DEFAULT_PORT_LIST_TIMEOUT_SECONDS
    probe_timeout_seconds: float = DEFAULT_PROBE_TIMEOUT_SECONDS
    process_name: Optional[str] = None
    fallback_port_offset: Optional[int] = None
    psutil_fallback: bool = True
    log_file: Optional[str] = None

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ConfigurationError.invalid_value("max_attempts", self.max_attempts, "Must be at least 1")
        if self.retry_delay_ms < 0:
            raise ConfigurationError.invalid_value("retry_delay_ms", self.retry_delay_ms, "Must be non-negative")
        if self.backoff_multiplier < 1.0:
            raise ConfigurationError.invalid_value("backoff_multiplier", self.backoff_multiplier, "Must be at least 1.0")
        if self.max_retry_delay_ms < self.retry_delay_ms:
            raise ConfigurationError.invalid_value(
                "max_retry_delay_ms", self.max_retry_delay_ms, "Must not be smaller than retry_delay_ms"
            )
        for name in ("process_list_timeout_seconds", "port_list_timeout_seconds", "probe_timeout_seconds"):
            value = getattr(self, name)
            if value <= 0:
                raise ConfigurationError.invalid_value(name, value, "Must be positive")


def _env(name: str) -> str:
    return f"{ENV_PREFIX}{name}"


def load_discovery_settings() -> DiscoverySettings:
    """Build :class:`DiscoverySettings` from ``LSDISCOVERY_*`` variables and .env defaults."""

    return DiscoverySettings(
        max_attempts=env_int(_env("MAX_ATTEMPTS"), or_value=DEFAULT_MAX_ATTEMPTS),
        retry_delay_ms=env_int(_env("RETRY_DELAY_MS"), or_value=DEFAULT_RETRY_DELAY_MS),
        backoff_multiplier=env_float(_env("BACKOFF_MULTIPLIER"), or_value=DEFAULT_BACKOFF_MULTIPLIER),
        max_retry_delay_ms=env_int(_env("MAX_RETRY_DELAY_MS"), or_value=DEFAULT_MAX_RETRY_DELAY_MS),
        process_list_timeout_seconds=env_float(
            _env("PROCESS_LIST_TIMEOUT_SECONDS"), or_value=DEFAULT_PROCESS_LIST_TIMEOUT_SECONDS
        ),
        port_list_timeout_seconds=env_float(
            _env("PORT_LIST_TIMEOUT_SECONDS"), or_value=DEFAULT_PORT_LIST_TIMEOUT_SECONDS
        ),
        probe_timeout_seconds=env_float(_env("PROBE_TIMEOUT_SECONDS"), or_value=DEFAULT_PROBE_TIMEOUT_SECONDS),
        process_name=env_str(_env("PROCESS_NAME")),
        fallback_port_offset=env_int(_env("FALLBACK_PORT_OFFSET")),
        psutil_fallback=bool(env_bool(_env("PSUTIL_FALLBACK"), or_value=True)),
        log_file=env_str(_env("LOG_FILE")),
    )


__all__ = ["DiscoverySettings", "load_discovery_settings"]
