"""Tests for platform strategy selection and output parsing."""

import json
import logging

import pytest

from lsdiscovery import platform_strategy
from lsdiscovery.errors import UnsupportedPlatformError
from lsdiscovery.platform_strategy import build_platform_strategy
from lsdiscovery.platform_strategy_helpers import DarwinStrategy, LinuxStrategy, WindowsStrategy
from lsdiscovery.platform_strategy_helpers.base import (
    extract_flag_value,
    port_from_address,
    unique_ports,
)
from lsdiscovery.platform_strategy_helpers.unix import (
    LINUX_ARM_PROCESS_NAME,
    LINUX_PROCESS_NAME,
    MACOS_ARM_PROCESS_NAME,
    MACOS_PROCESS_NAME,
)
from lsdiscovery.platform_strategy_helpers.windows import WINDOWS_PROCESS_NAME

WINDOWS_COMMAND_LINE = (
    r"C:\Program Files\IDE\language_server_windows_x64.exe --extension_server_port 4321 "
    r"--csrf_token abc123 --random_port"
)


class TestBuildPlatformStrategy:
    """Tests for build_platform_strategy."""

    def test_windows(self) -> None:
        strategy = build_platform_strategy("Windows", "AMD64")
        assert isinstance(strategy, WindowsStrategy)
        assert strategy.target_process_name() == WINDOWS_PROCESS_NAME
        assert strategy.family == "windows"

    def test_darwin_intel_and_arm(self) -> None:
        assert build_platform_strategy("Darwin", "x86_64").target_process_name() == MACOS_PROCESS_NAME
        arm = build_platform_strategy("Darwin", "arm64")
        assert isinstance(arm, DarwinStrategy)
        assert arm.target_process_name() == MACOS_ARM_PROCESS_NAME
        assert arm.family == "darwin"

    def test_linux_intel_and_arm(self) -> None:
        assert build_platform_strategy("Linux", "x86_64").target_process_name() == LINUX_PROCESS_NAME
        arm = build_platform_strategy("linux", "aarch64")
        assert isinstance(arm, LinuxStrategy)
        assert arm.target_process_name() == LINUX_ARM_PROCESS_NAME
        assert arm.family == "linux"

    def test_process_name_override(self) -> None:
        strategy = build_platform_strategy("Linux", "aarch64", process_name="custom_server")
        assert strategy.target_process_name() == "custom_server"
        assert build_platform_strategy("Windows", process_name="ls.exe").target_process_name() == "ls.exe"

    def test_select_platform_strategy_logs_family(self, monkeypatch, caplog) -> None:
        monkeypatch.setattr(platform_strategy.platform, "system", lambda: "Linux")
        monkeypatch.setattr(platform_strategy.platform, "machine", lambda: "x86_64")
        platform_strategy.select_platform_strategy.cache_clear()
        try:
            with caplog.at_level(logging.DEBUG, logger="lsdiscovery.platform_strategy"):
                strategy = platform_strategy.select_platform_strategy("custom_ls")
        finally:
            platform_strategy.select_platform_strategy.cache_clear()

        assert strategy.target_process_name() == "custom_ls"
        assert "Selected linux strategy" in caplog.text

    def test_unsupported_platform(self) -> None:
        with pytest.raises(UnsupportedPlatformError) as exc_info:
            build_platform_strategy("SunOS")
        assert exc_info.value.system == "SunOS"


def test_extract_flag_value_forms() -> None:
    assert extract_flag_value("bin --csrf_token abc123", "--csrf_token") == "abc123"
    assert extract_flag_value("bin --csrf_token=abc123 --x", "--csrf_token") == "abc123"
    assert extract_flag_value('bin --csrf_token "quoted"', "--csrf_token") == "quoted"
    assert extract_flag_value("bin --csrf_token_extra abc", "--csrf_token") is None
    assert extract_flag_value("bin", "--csrf_token") is None


@pytest.mark.parametrize(
    ("address", "expected"),
    [
        ("127.0.0.1:51000", 51000),
        ("0.0.0.0:80", 80),
        ("*:8080", 8080),
        ("[::1]:42100", 42100),
        ("[::]:443", 443),
        ("::1:9000", 9000),
        ("127.0.0.1:0", None),
        ("127.0.0.1:70000", None),
        ("garbage", None),
        ("", None),
    ],
)
def test_port_from_address(address, expected) -> None:
    assert port_from_address(address) == expected


def test_unique_ports_preserves_first_seen_order() -> None:
    assert unique_ports([51001, 51000, 51001, 42100, 51000]) == (51001, 51000, 42100)


class TestWindowsStrategy:
    """Tests for WindowsStrategy parsing."""

    def test_list_processes_command_filters_by_name(self) -> None:
        command = WindowsStrategy().list_processes_command("language_server_windows_x64.exe")
        assert "Get-CimInstance" in command
        assert "'language_server_windows_x64.exe'" in command
        assert "ConvertTo-Json" in command

    def test_parse_process_info_json_object(self) -> None:
        raw = json.dumps({"ProcessId": 4321, "CommandLine": WINDOWS_COMMAND_LINE})
        info = WindowsStrategy().parse_process_info(raw)
        assert info is not None
        assert info.pid == 4321
        assert info.declared_port == 4321
        assert info.security_token == "abc123"

    def test_parse_process_info_json_list_skips_records_without_token(self) -> None:
        raw = json.dumps(
            [
                {"ProcessId": 10, "CommandLine": None},
                {"ProcessId": 11, "CommandLine": "language_server_windows_x64.exe --extension_server_port 1"},
                {"ProcessId": 12, "CommandLine": "language_server_windows_x64.exe --csrf_token=tok"},
            ]
        )
        info = WindowsStrategy().parse_process_info(raw)
        assert info is not None
        assert info.pid == 12
        assert info.declared_port is None
        assert info.security_token == "tok"

    def test_parse_process_info_wmic_list_format(self) -> None:
        raw = f"\r\n\r\nCommandLine={WINDOWS_COMMAND_LINE}\r\nProcessId=4321\r\n\r\n"
        info = WindowsStrategy().parse_process_info(raw)
        assert info is not None
        assert info.pid == 4321
        assert info.security_token == "abc123"

    @pytest.mark.parametrize("raw", ["", "   ", "{not json", "[]", "Node,CommandLine,ProcessId"])
    def test_parse_process_info_returns_none_for_unusable_output(self, raw) -> None:
        assert WindowsStrategy().parse_process_info(raw) is None

    def test_parse_listening_ports_filters_state_and_pid(self) -> None:
        raw = "\n".join(
            [
                "  TCP    127.0.0.1:51000        0.0.0.0:0              LISTENING       4321",
                "  TCP    127.0.0.1:51001        0.0.0.0:0              LISTENING       4321",
                "  TCP    [::1]:51001            [::]:0                 LISTENING       4321",
                "  TCP    127.0.0.1:60000        0.0.0.0:0              LISTENING       43210",
                "  TCP    127.0.0.1:51002        127.0.0.1:50000        ESTABLISHED     4321",
                "  UDP    0.0.0.0:5353           *:*                                    4321",
            ]
        )
        assert WindowsStrategy().parse_listening_ports(raw, 4321) == (51000, 51001)
        assert WindowsStrategy().parse_listening_ports(raw) == (51000, 51001, 60000)

    def test_diagnostic_messages_include_process_name(self) -> None:
        messages = WindowsStrategy("custom.exe").diagnostic_messages()
        assert "custom.exe" in messages.process_not_found_message
        assert messages.requirements


class TestLinuxStrategy:
    """Tests for LinuxStrategy parsing."""

    def test_list_processes_command_quotes_name(self) -> None:
        assert LinuxStrategy().list_processes_command("language_server_linux_x64") == (
            "pgrep -af language_server_linux_x64"
        )
        assert LinuxStrategy().list_processes_command("odd name") == "pgrep -af 'odd name'"

    def test_list_listening_ports_command_mentions_pid(self) -> None:
        command = LinuxStrategy().list_listening_ports_command(4321)
        assert 'grep "pid=4321,"' in command
        assert "-p 4321" in command

    def test_parse_process_info_skips_unrelated_lines(self) -> None:
        raw = "\n".join(
            [
                "100 /usr/bin/bash -c pgrep -af language_server_linux_x64",
                "4321 /opt/ide/bin/language_server_linux_x64 --extension_server_port 4321 --csrf_token abc123",
            ]
        )
        info = LinuxStrategy().parse_process_info(raw)
        assert info is not None
        assert info.pid == 4321
        assert info.security_token == "abc123"

    def test_parse_process_info_non_numeric_port_becomes_none(self) -> None:
        raw = "77 /opt/language_server_linux_x64 --extension_server_port abc --csrf_token t0k"
        info = LinuxStrategy().parse_process_info(raw)
        assert info is not None
        assert info.declared_port is None

    def test_parse_process_info_missing_token(self) -> None:
        raw = "77 /opt/language_server_linux_x64 --extension_server_port 4321"
        assert LinuxStrategy().parse_process_info(raw) is None

    def test_parse_listening_ports_ss_output(self) -> None:
        raw = "\n".join(
            [
                'LISTEN 0      4096       127.0.0.1:51000      0.0.0.0:*    users:(("language_server",pid=4321,fd=9))',
                'LISTEN 0      4096       127.0.0.1:51001      0.0.0.0:*    users:(("language_server",pid=4321,fd=10))',
                'LISTEN 0      4096           [::1]:51001         [::]:*    users:(("language_server",pid=4321,fd=11))',
                'LISTEN 0      4096       127.0.0.1:60000      0.0.0.0:*    users:(("other",pid=43210,fd=3))',
            ]
        )
        assert LinuxStrategy().parse_listening_ports(raw, 4321) == (51000, 51001)

    def test_parse_listening_ports_netstat_output(self) -> None:
        raw = "\n".join(
            [
                "tcp        0      0 127.0.0.1:51000         0.0.0.0:*               LISTEN      4321/language_serve",
                "tcp6       0      0 ::1:51001               :::*                    LISTEN      4321/language_serve",
                "tcp        0      0 127.0.0.1:60000         0.0.0.0:*               LISTEN      43210/other",
            ]
        )
        assert LinuxStrategy().parse_listening_ports(raw, 4321) == (51000, 51001)

    def test_parse_listening_ports_lsof_output(self) -> None:
        raw = "\n".join(
            [
                "COMMAND    PID USER   FD   TYPE DEVICE SIZE/OFF NODE NAME",
                "language 4321 dev    9u  IPv4  12345      0t0  TCP 127.0.0.1:51000 (LISTEN)",
                "language 4321 dev   10u  IPv6  12346      0t0  TCP [::1]:51000 (LISTEN)",
            ]
        )
        assert LinuxStrategy().parse_listening_ports(raw, 4321) == (51000,)

    @pytest.mark.parametrize("raw", ["", "\n\n", "random text here", "LISTEN 0"])
    def test_parse_listening_ports_garbage(self, raw) -> None:
        assert LinuxStrategy().parse_listening_ports(raw, 4321) == ()


class TestDarwinStrategy:
    """Tests for DarwinStrategy parsing."""

    def test_commands(self) -> None:
        strategy = DarwinStrategy()
        assert strategy.list_processes_command(MACOS_PROCESS_NAME) == f"pgrep -lf {MACOS_PROCESS_NAME}"
        assert strategy.list_listening_ports_command(4321) == "lsof -nP -a -iTCP -sTCP:LISTEN -p 4321"

    def test_parse_process_info(self) -> None:
        raw = (
            "4321 /Applications/IDE.app/Contents/Resources/bin/language_server_macos "
            "--extension_server_port=4321 --csrf_token=abc123\n"
        )
        info = DarwinStrategy().parse_process_info(raw)
        assert info is not None
        assert (info.pid, info.declared_port, info.security_token) == (4321, 4321, "abc123")

    def test_parse_listening_ports_dedupes_and_filters_pid(self) -> None:
        raw = "\n".join(
            [
                "COMMAND     PID USER   FD   TYPE             DEVICE SIZE/OFF NODE NAME",
                "language_ 4321 dev   12u  IPv4 0x1234567890abcdef      0t0  TCP 127.0.0.1:51001 (LISTEN)",
                "language_ 4321 dev   13u  IPv4 0x1234567890abcdee      0t0  TCP 127.0.0.1:51000 (LISTEN)",
                "language_ 4321 dev   14u  IPv6 0x1234567890abcded      0t0  TCP [::1]:51001 (LISTEN)",
                "other     9999 dev    3u  IPv4 0x1234567890abcdec      0t0  TCP *:7000 (LISTEN)",
            ]
        )
        assert DarwinStrategy().parse_listening_ports(raw, 4321) == (51001, 51000)
        assert DarwinStrategy().parse_listening_ports(raw) == (51001, 51000, 7000)
