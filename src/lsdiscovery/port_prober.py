"""Liveness probe for candidate language server ports."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Mapping, Optional

import aiohttp

from .config.settings import DEFAULT_PROBE_TIMEOUT_SECONDS
from .http_utils import build_loopback_url
from .network_errors import PROBE_FAILURE_TYPES, describe_probe_failure, is_network_unreachable_error

logger = logging.getLogger(__name__)

PROBE_PATH = "/exa.language_server_pb.LanguageServerService/GetUnleashData"
CSRF_HEADER = "X-Codeium-Csrf-Token"
CONNECT_PROTOCOL_VERSION = "1"
HTTP_OK = 200

# GetUnleashData answers without a signed-in user, only the CSRF token is checked
DEFAULT_CLIENT_CONTEXT: Mapping[str, str] = {
    "devMode": "false",
    "extensionVersion": "",
    "hasAnthropicModelAccess": "true",
    "ide": "antigravity",
    "ideVersion": "1.11.2",
    "installationId": "liveness-probe",
    "language": "UNSPECIFIED",
    "os": "unspecified",
    "requestedModelId": "MODEL_UNSPECIFIED",
}


def build_probe_body(client_context: Optional[Mapping[str, str]] = None) -> bytes:
    properties = dict(DEFAULT_CLIENT_CONTEXT)
    if client_context:
        properties.update(client_context)
    payload: Dict[str, Any] = {"context": {"properties": properties}}
    return json.dumps(payload, separators=(",", ":")).encode("utf-8")


class PortProber:
    """Sends one authenticated POST per port and reports whether it answered HTTP 200.

    Each probe uses its own session, so concurrent probes against different
    ports do not share connection state.
    """

    def __init__(
        self,
        *,
        timeout_seconds: float = DEFAULT_PROBE_TIMEOUT_SECONDS,
        path: str = PROBE_PATH,
        client_context: Optional[Mapping[str, str]] = None,
    ):
        self.timeout_seconds = timeout_seconds
        self.path = path
        self._body = build_probe_body(client_context)

    def build_headers(self, security_token: str) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Content-Length": str(len(self._body)),
            "Connect-Protocol-Version": CONNECT_PROTOCOL_VERSION,
            CSRF_HEADER: security_token,
        }

    async def probe(self, port: int, security_token: str) -> bool:
        """Return True only when ``port`` answers the probe with HTTP 200 within the timeout."""
        try:
            url = build_loopback_url(port, self.path)
        except ValueError as exc:  # policy_guard: allow-silent-handler
            logger.warning("Skipping probe: %s", exc)
            return False

        timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)
        # Loopback service with a self-signed certificate
        connector = aiohttp.TCPConnector(ssl=False)
        try:
            async with aiohttp.ClientSession(connector=connector, timeout=timeout) as session:
                async with session.post(url, data=self._body, headers=self.build_headers(security_token)) as response:
                    status = response.status
                    await _drain(response, port)
        except PROBE_FAILURE_TYPES as exc:  # policy_guard: allow-silent-handler
            log_probe_failure(port, exc)
            return False

        if status != HTTP_OK:
            logger.debug("Probe of port %s returned HTTP %s", port, status)
            return False
        return True


def log_probe_failure(port: int, exc: BaseException) -> None:
    """Log unreachable ports at DEBUG and ports that answered but then failed at INFO."""
    level = logging.DEBUG if is_network_unreachable_error(exc) else logging.INFO
    logger.log(level, "Probe of port %s failed: %s", port, describe_probe_failure(exc))


async def _drain(response: aiohttp.ClientResponse, port: int) -> None:
    """Consume the body so the connection is released cleanly."""
    try:
        await response.read()
    except PROBE_FAILURE_TYPES as exc:  # policy_guard: allow-silent-handler
        logger.debug("Could not drain response from port %s: %s", port, describe_probe_failure(exc))


__all__ = ["CSRF_HEADER", "PROBE_PATH", "PortProber", "build_probe_body", "log_probe_failure"]
