"""Tests for the ``python -m lsdiscovery`` entry point."""

import json

import pytest

from lsdiscovery import __main__ as cli
from lsdiscovery.errors import UnsupportedPlatformError
from lsdiscovery.models import CredentialBundle
from lsdiscovery.platform_strategy_helpers import LinuxStrategy

BUNDLE = CredentialBundle(extension_port=4321, connect_port=51001, security_token="abc123")


class _FakeOrchestrator:
    result = BUNDLE
    calls = []

    def __init__(self, settings, *, observer=None):
        self.settings = settings
        self.strategy = LinuxStrategy()

    async def discover(self, max_attempts=None, retry_delay_ms=None):
        _FakeOrchestrator.calls.append((max_attempts, retry_delay_ms))
        return self.result


@pytest.fixture
def fake_orchestrator(monkeypatch):
    _FakeOrchestrator.result = BUNDLE
    _FakeOrchestrator.calls = []
    monkeypatch.setattr(cli, "DiscoveryOrchestrator", _FakeOrchestrator)
    monkeypatch.setattr(cli, "setup_logging", lambda **kwargs: None)
    return _FakeOrchestrator


def test_main_prints_credentials(fake_orchestrator, capsys):
    assert cli.main(["--max-attempts", "2", "--retry-delay-ms", "500"]) == cli.EXIT_OK

    out = capsys.readouterr().out
    assert "extension_port: 4321" in out
    assert "connect_port:   51001" in out
    assert "csrf_token:     abc123" in out
    assert fake_orchestrator.calls == [(2, 500)]


def test_main_json_output(fake_orchestrator, capsys):
    assert cli.main(["--json"]) == cli.EXIT_OK

    assert json.loads(capsys.readouterr().out) == BUNDLE.to_dict()
    assert fake_orchestrator.calls == [(None, None)]


def test_main_reports_requirements_when_nothing_found(fake_orchestrator, capsys):
    fake_orchestrator.result = None

    assert cli.main([]) == cli.EXIT_NOT_FOUND

    err = capsys.readouterr().err
    assert err.startswith("Please ensure:")


def test_main_config_error(monkeypatch, capsys):
    monkeypatch.setenv("LSDISCOVERY_MAX_ATTEMPTS", "lots")

    assert cli.main([]) == cli.EXIT_CONFIG_ERROR
    assert "Configuration error" in capsys.readouterr().err


def test_main_unsupported_platform(monkeypatch, capsys):
    class _Unsupported:
        def __init__(self, settings, *, observer=None):
            raise UnsupportedPlatformError("Plan9")

    monkeypatch.setattr(cli, "DiscoveryOrchestrator", _Unsupported)
    monkeypatch.setattr(cli, "setup_logging", lambda **kwargs: None)

    assert cli.main([]) == cli.EXIT_CONFIG_ERROR
    assert "Plan9" in capsys.readouterr().err


@pytest.mark.parametrize("argv", [["--max-attempts", "0"], ["--retry-delay-ms", "-1"], ["-v", "-q"]])
def test_main_rejects_invalid_arguments(argv):
    with pytest.raises(SystemExit) as exc_info:
        cli.main(argv)
    assert exc_info.value.code == 2
