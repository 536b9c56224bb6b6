"""Value objects passed between discovery stages."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

MAX_PORT = 65535
TOKEN_PREVIEW_LENGTH = 8

ListeningPorts = Tuple[int, ...]


def mask_token(token: str) -> str:
    """Return a log-safe preview of a security token."""
    return f"{token[:TOKEN_PREVIEW_LENGTH]}..."


def is_valid_port(value: int) -> bool:
    return 0 < value <= MAX_PORT


@dataclass(frozen=True)
class ProcessInfo:
    """Fields extracted from the language server's command line."""

    pid: int
    declared_port: Optional[int]
    security_token: str

    def __post_init__(self) -> None:
        if self.pid <= 0:
            raise ValueError(f"pid must be positive (got {self.pid})")
        if self.declared_port is not None and not 0 <= self.declared_port <= MAX_PORT:
            raise ValueError(f"declared_port out of range (got {self.declared_port})")
        if not self.security_token:
            raise ValueError("security_token must be a non-empty string")


@dataclass(frozen=True)
class CredentialBundle:
    """Connection credentials confirmed by a successful liveness probe.

    ``extension_port`` is the port the process declared at launch and
    ``connect_port`` is the port that answered the probe. The two are not
    assumed to be related.
    """

    extension_port: int
    connect_port: int
    security_token: str

    def __post_init__(self) -> None:
        if not is_valid_port(self.extension_port):
            raise ValueError(f"extension_port out of range (got {self.extension_port})")
        if not is_valid_port(self.connect_port):
            raise ValueError(f"connect_port out of range (got {self.connect_port})")
        if not self.security_token:
            raise ValueError("security_token must be a non-empty string")

    def masked_token(self) -> str:
        return mask_token(self.security_token)

    def to_dict(self) -> Dict[str, object]:
        return {
            "extension_port": self.extension_port,
            "connect_port": self.connect_port,
            "security_token": self.security_token,
        }


__all__ = [
    "CredentialBundle",
    "ListeningPorts",
    "MAX_PORT",
    "ProcessInfo",
    "is_valid_port",
    "mask_token",
]
