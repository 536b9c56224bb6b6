"""Root pytest configuration and shared fixtures."""

from __future__ import annotations

import os
import ssl
from pathlib import Path
from typing import Dict, List, Sequence, Tuple, Union

import pytest

from lsdiscovery.command_runner import CommandResult
from lsdiscovery.config import runtime
from lsdiscovery.errors import CommandExecutionFailed

from tests.helpers.tls_server import generate_self_signed_cert


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch):
    """Keep host LSDISCOVERY_* variables and .env files out of tests."""
    for name in list(os.environ):
        if name.startswith(runtime.ENV_PREFIX):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(runtime, "_DEFAULT_VALUES", {})


@pytest.fixture(scope="session")
def tls_cert_paths(tmp_path_factory) -> Tuple[Path, Path]:
    return generate_self_signed_cert(tmp_path_factory.mktemp("tls"))


@pytest.fixture
def server_ssl_context(tls_cert_paths) -> ssl.SSLContext:
    cert_path, key_path = tls_cert_paths
    context = ssl.create_default_context(ssl.Purpose.CLIENT_AUTH)
    context.load_cert_chain(str(cert_path), str(key_path))
    return context


Outcome = Union[str, BaseException]


class FakeCommandRunner:
    """Async stand-in for ``run_command`` returning scripted outputs per command substring."""

    def __init__(self, outputs: Dict[str, Union[Outcome, Sequence[Outcome]]]):
        self._outputs = {key: list(value) if isinstance(value, list) else [value] for key, value in outputs.items()}
        self.calls: List[Tuple[str, float]] = []

    async def __call__(self, command: str, timeout_seconds: float) -> CommandResult:
        self.calls.append((command, timeout_seconds))
        for marker, queue in self._outputs.items():
            if marker in command:
                outcome = queue.pop(0) if len(queue) > 1 else queue[0]
                if isinstance(outcome, BaseException):
                    raise outcome
                return CommandResult(command=command, stdout=outcome, stderr="", exit_code=0)
        raise CommandExecutionFailed(command=command, exit_code=127, stderr="command not found")


@pytest.fixture
def fake_runner_factory():
    return FakeCommandRunner
