import asyncio

import pytest

from lan_survey.config.config_loader import LivenessConfig
from lan_survey.scanners.ping_scanner import (
    LivenessProber,
    os_guess_from_ttl,
    parse_ttl,
    ping_command,
)
from lan_survey.utils.error_handler import ToolMissingError

from conftest import FakeLiveness


def test_sweep_never_exceeds_configured_width():
    hosts = [f"10.0.0.{i}" for i in range(1, 61)]
    checker = FakeLiveness({"10.0.0.3": 64, "10.0.0.40": None}, delay=0.01)
    prober = LivenessProber(LivenessConfig(concurrency=7), checker)

    alive = asyncio.run(prober.sweep(hosts))

    assert alive == {"10.0.0.3": 64, "10.0.0.40": None}
    assert sorted(checker.checked) == sorted(hosts)
    assert checker.max_in_flight == 7


def test_missing_tool_aborts_the_sweep():
    class BrokenChecker(FakeLiveness):
        async def check(self, ip):
            raise ToolMissingError("Cannot run ping", tool_name="ping")

    prober = LivenessProber(LivenessConfig(concurrency=4), BrokenChecker({}))

    with pytest.raises(ToolMissingError):
        asyncio.run(prober.sweep(["10.0.0.1", "10.0.0.2"]))


@pytest.mark.parametrize(
    "output, expected",
    [
        ("64 bytes from 10.0.0.1: icmp_seq=1 ttl=64 time=0.41 ms", 64),
        ("Reply from 10.0.0.1: bytes=32 time<1ms TTL=128", 128),
        ("Antwort von 10.0.0.1: Bytes=32 Zeit<1ms TTL: 255", 255),
        ("Request timed out.", None),
    ],
)
def test_parse_ttl(output, expected):
    assert parse_ttl(output) == expected


@pytest.mark.parametrize(
    "ttl, expected",
    [(128, "Windows"), (200, "Windows"), (64, "Linux/Unix"), (127, "Linux/Unix"),
     (63, "Network/Embedded"), (1, "Network/Embedded"), (0, ""), (None, "")],
)
def test_os_guess_from_ttl(ttl, expected):
    assert os_guess_from_ttl(ttl) == expected


def test_ping_command_per_platform():
    assert ping_command("10.0.0.1", 1.0, "windows") == ["ping", "-n", "1", "-w", "1000", "10.0.0.1"]
    assert ping_command("10.0.0.1", 1.5, "darwin") == ["ping", "-c", "1", "-W", "1500", "10.0.0.1"]
    assert ping_command("10.0.0.1", 1.5, "linux") == ["ping", "-c", "1", "-W", "2", "10.0.0.1"]
    assert ping_command("10.0.0.1", 0.2, "linux")[4] == "1"
