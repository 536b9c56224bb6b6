"""
Network error detection and classification for liveness probes.

All probe failure handling should import from here rather than listing
exception types locally.
"""

import asyncio
import socket

import aiohttp

PROBE_FAILURE_TYPES = (
    aiohttp.ClientError,
    asyncio.TimeoutError,
    socket.gaierror,
    OSError,
)


def is_network_unreachable_error(exception: BaseException) -> bool:
    """
    Determine if an exception means the port could not be reached at all.

    Args:
        exception: Exception to check

    Returns:
        True for connection-level failures, False for protocol-level ones
    """
    if isinstance(exception, (aiohttp.ClientConnectorError, aiohttp.ServerTimeoutError, asyncio.TimeoutError)):
        return True
    if isinstance(exception, aiohttp.ClientError):
        return False
    if isinstance(exception, OSError):
        return True

    os_error = getattr(exception, "os_error", None)
    return isinstance(os_error, OSError)


def describe_probe_failure(exception: BaseException) -> str:
    """Short human-readable reason for a failed probe."""
    if isinstance(exception, asyncio.TimeoutError):
        return "timeout"
    if isinstance(exception, aiohttp.ClientConnectorCertificateError):
        return "TLS certificate error"
    if isinstance(exception, aiohttp.ClientConnectorSSLError):
        return "TLS handshake failed"
    if isinstance(exception, aiohttp.ClientConnectorError):
        return "connection refused"
    if isinstance(exception, aiohttp.ServerDisconnectedError):
        return "server disconnected"
    if isinstance(exception, aiohttp.ClientError):
        return f"client error ({exception.__class__.__name__})"
    return str(exception) or exception.__class__.__name__


__all__ = ["PROBE_FAILURE_TYPES", "describe_probe_failure", "is_network_unreachable_error"]
