from __future__ import annotations

"""HTTP helper utilities for loopback probes."""

from urllib.parse import urlsplit

from .models import is_valid_port

LOOPBACK_HOST = "127.0.0.1"


def ensure_http_url(request_url: str) -> str:
    """Ensure the provided URL uses an allowed HTTP/HTTPS scheme."""
    parsed = urlsplit(request_url)
    scheme = parsed.scheme.lower()
    if scheme not in {"http", "https"}:
        raise ValueError(f"Unsupported URL scheme: {request_url}")
    if not parsed.netloc:
        raise ValueError(f"URL missing network location: {request_url}")
    return request_url


def build_loopback_url(port: int, path: str, *, scheme: str = "https") -> str:
    """Return ``<scheme>://127.0.0.1:<port><path>`` after validating the port."""
    if not is_valid_port(port):
        raise ValueError(f"Port out of range: {port}")
    normalized_path = path if path.startswith("/") else f"/{path}"
    return ensure_http_url(f"{scheme}://{LOOPBACK_HOST}:{port}{normalized_path}")


__all__ = ["LOOPBACK_HOST", "build_loopback_url", "ensure_http_url"]
