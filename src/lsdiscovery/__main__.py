"""Discover the local language server's ports and CSRF token.

Usage:
    python -m lsdiscovery [--max-attempts N] [--retry-delay-ms MS] [--json]
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Optional, Sequence

from .config import ConfigurationError, DiscoverySettings, load_discovery_settings
from .discovery_helpers import DiscoveryEvent, format_requirements
from .discovery_orchestrator import DiscoveryOrchestrator
from .errors import UnsupportedPlatformError
from .logging_config import setup_logging
from .models import CredentialBundle

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_NOT_FOUND = 1
EXIT_CONFIG_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lsdiscovery",
        description="Find the running language server and print its connection credentials.",
    )
    parser.add_argument("--max-attempts", type=int, default=None, help="Attempts before giving up (default: 3)")
    parser.add_argument(
        "--retry-delay-ms", type=int, default=None, help="Wait between failed attempts in ms (default: 2000)"
    )
    parser.add_argument("--json", action="store_true", help="Print the credentials as JSON")
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="store_true", help="Show debug output")
    verbosity.add_argument("-q", "--quiet", action="store_true", help="Only show warnings and the result")
    return parser


def _log_event(event: DiscoveryEvent) -> None:
    logger.debug("[%s/%s] %s: %s", event.attempt, event.max_attempts, event.stage.value, event.message)


def _render(bundle: CredentialBundle, as_json: bool) -> str:
    if as_json:
        return json.dumps(bundle.to_dict(), indent=2)
    return "\n".join(
        [
            f"extension_port: {bundle.extension_port}",
            f"connect_port:   {bundle.connect_port}",
            f"csrf_token:     {bundle.security_token}",
        ]
    )


async def _run(settings: DiscoverySettings, args: argparse.Namespace) -> int:
    orchestrator = DiscoveryOrchestrator(settings, observer=_log_event)
    bundle = await orchestrator.discover(args.max_attempts, args.retry_delay_ms)
    if bundle is None:
        print(format_requirements(orchestrator.strategy.diagnostic_messages()), file=sys.stderr)
        return EXIT_NOT_FOUND
    print(_render(bundle, args.json))
    return EXIT_OK


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.max_attempts is not None and args.max_attempts < 1:
        parser.error("--max-attempts must be at least 1")
    if args.retry_delay_ms is not None and args.retry_delay_ms < 0:
        parser.error("--retry-delay-ms must be non-negative")
    try:
        settings = load_discovery_settings()
    except ConfigurationError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    setup_logging(user_friendly=args.quiet, log_file=settings.log_file, verbose=args.verbose)
    try:
        return asyncio.run(_run(settings, args))
    except UnsupportedPlatformError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_CONFIG_ERROR


if __name__ == "__main__":
    sys.exit(main())
