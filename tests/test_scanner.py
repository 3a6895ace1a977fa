import asyncio
import socket
import time
from ipaddress import IPv4Address

import pytest

from netsweep import scanner
from netsweep.discover import ScapyPing
from netsweep.parser import AddressRange
from netsweep.scanner import (
    DEFAULT_TCP_PORTS,
    UNKNOWN_HOSTNAME,
    HostProbeResult,
    HostProber,
    ScanConfig,
    Status,
)
from netsweep.sweeper import NetworkSweeper


class FakeWriter:
    def __init__(self):
        self.closed = False

    def close(self):
        self.closed = True

    async def wait_closed(self):
        return None


def fake_connections(monkeypatch, open_ports=(), timeout_ports=()):
    attempts = []

    async def open_connection(host, port):
        attempts.append((host, port))
        if port in open_ports:
            return object(), FakeWriter()
        if port in timeout_ports:
            raise asyncio.TimeoutError()
        raise ConnectionRefusedError()

    monkeypatch.setattr(scanner.asyncio, "open_connection", open_connection)
    return attempts


def fake_reverse_dns(monkeypatch, hostname=None, error=None, delay=0):
    lookups = []

    def gethostbyaddr(ip):
        lookups.append(ip)
        if delay:
            time.sleep(delay)
        if error:
            raise error
        return hostname, [], [ip]

    monkeypatch.setattr(scanner.socket, "gethostbyaddr", gethostbyaddr)
    return lookups


@pytest.mark.asyncio
async def test_down_host_skips_dns_and_ports(monkeypatch, fake_liveness) -> None:
    attempts = fake_connections(monkeypatch, open_ports={22})
    lookups = fake_reverse_dns(monkeypatch, hostname="ghost")
    prober = HostProber(ScanConfig(), fake_liveness())

    result = await prober.probe(IPv4Address("10.0.0.9"))

    assert result == HostProbeResult.down(IPv4Address("10.0.0.9"))
    assert result.hostname is None
    assert result.open_ports == ()
    assert attempts == []
    assert lookups == []


@pytest.mark.asyncio
async def test_up_host_gets_hostname_and_open_ports(monkeypatch, fake_liveness) -> None:
    attempts = fake_connections(monkeypatch, open_ports={22, 443}, timeout_ports={80})
    fake_reverse_dns(monkeypatch, hostname="router.lan")
    prober = HostProber(ScanConfig(), fake_liveness(alive=["10.0.0.1"]))

    result = await prober.probe(IPv4Address("10.0.0.1"))

    assert result.status == Status.UP
    assert result.hostname == "router.lan"
    assert result.open_ports == (22, 443)
    # every configured port is tried, in order, despite refusals and timeouts
    assert [port for _, port in attempts] == list(DEFAULT_TCP_PORTS)


@pytest.mark.asyncio
async def test_dns_failure_gives_unknown_hostname(monkeypatch, fake_liveness) -> None:
    fake_connections(monkeypatch)
    fake_reverse_dns(monkeypatch, error=socket.herror(1, "Unknown host"))
    prober = HostProber(ScanConfig(ports=(80,)), fake_liveness(alive=["10.0.0.1"]))

    result = await prober.probe(IPv4Address("10.0.0.1"))

    assert result.status == Status.UP
    assert result.hostname == UNKNOWN_HOSTNAME
    assert result.open_ports == ()


@pytest.mark.asyncio
async def test_dns_timeout_gives_unknown_hostname(monkeypatch, fake_liveness) -> None:
    fake_connections(monkeypatch)
    fake_reverse_dns(monkeypatch, hostname="slow.example", delay=0.3)
    config = ScanConfig(ports=(80,), dns_timeout=0.05)
    prober = HostProber(config, fake_liveness(alive=["10.0.0.1"]))

    result = await prober.probe(IPv4Address("10.0.0.1"))

    assert result.hostname == UNKNOWN_HOSTNAME


@pytest.mark.asyncio
async def test_unreachable_port_does_not_abort_scan(monkeypatch, fake_liveness) -> None:
    attempts = []

    async def open_connection(host, port):
        attempts.append(port)
        if port == 21:
            raise OSError(113, "No route to host")
        if port == 25:
            return object(), FakeWriter()
        raise ConnectionRefusedError()

    monkeypatch.setattr(scanner.asyncio, "open_connection", open_connection)
    fake_reverse_dns(monkeypatch, hostname="mail.lan")
    prober = HostProber(ScanConfig(ports=(21, 25, 53)), fake_liveness(alive=["10.0.0.2"]))

    result = await prober.probe(IPv4Address("10.0.0.2"))

    assert attempts == [21, 25, 53]
    assert result.open_ports == (25,)


@pytest.mark.asyncio
async def test_liveness_error_counts_as_down(monkeypatch) -> None:
    class BrokenLiveness:
        async def is_alive(self, address, timeout):
            raise OSError("socket exploded")

    lookups = fake_reverse_dns(monkeypatch, hostname="x")
    prober = HostProber(ScanConfig(), BrokenLiveness())

    result = await prober.probe(IPv4Address("10.0.0.3"))

    assert result.status == Status.DOWN
    assert lookups == []


@pytest.mark.asyncio
async def test_liveness_receives_configured_timeout() -> None:
    seen = []

    class RecordingLiveness:
        async def is_alive(self, address, timeout):
            seen.append(timeout)
            return False

    await HostProber(ScanConfig(timeout=0.25), RecordingLiveness()).probe(IPv4Address("10.0.0.3"))
    assert seen == [0.25]


def test_down_result_cannot_carry_metadata() -> None:
    with pytest.raises(ValueError):
        HostProbeResult(IPv4Address("10.0.0.1"), Status.DOWN, hostname="nope")
    with pytest.raises(ValueError):
        HostProbeResult(IPv4Address("10.0.0.1"), Status.DOWN, open_ports=(22,))


def test_result_to_dict() -> None:
    result = HostProbeResult(IPv4Address("10.0.0.1"), Status.UP, hostname="gw", open_ports=(22, 80))
    assert result.to_dict() == {
        "address": "10.0.0.1",
        "status": "up",
        "hostname": "gw",
        "open_ports": [22, 80],
    }


@pytest.mark.parametrize("kwargs", [
    {"timeout": 0},
    {"dns_timeout": -1},
    {"chunk_size": 0},
    {"max_workers": 0},
    {"ports": (0,)},
    {"ports": (70000,)},
])
def test_scan_config_validation(kwargs) -> None:
    with pytest.raises(ValueError):
        ScanConfig(**kwargs)


def test_scan_config_defaults() -> None:
    config = ScanConfig(ports=[80, 443])
    assert config.timeout == 0.1
    assert config.chunk_size == 10
    assert config.max_workers is None
    assert config.ports == (80, 443)
    assert ScanConfig().ports == DEFAULT_TCP_PORTS


@pytest.mark.asyncio
async def test_slow_icmp_sends_do_not_starve_reverse_dns(monkeypatch, fake_scapy, fake_reply) -> None:
    def sr1(packet, timeout, verbose):
        # blocks a default executor thread for the whole timeout
        time.sleep(timeout)
        return fake_reply(0)

    fake_scapy(sr1)
    fake_connections(monkeypatch)
    fake_reverse_dns(monkeypatch, hostname="lab-host")
    config = ScanConfig(timeout=0.1, dns_timeout=0.2, ports=(80,), chunk_size=1)
    prober = HostProber(config, ScapyPing())
    address_range = AddressRange(IPv4Address("10.1.0.1"), IPv4Address("10.1.0.64"))

    try:
        report = await NetworkSweeper(config, prober=prober).sweep_range(address_range)
    finally:
        prober.close()

    assert report.total_up == 64
    assert [r.hostname for r in report.results if r.hostname != "lab-host"] == []


@pytest.mark.asyncio
async def test_dns_timeout_excludes_time_waiting_for_a_thread(monkeypatch, fake_liveness) -> None:
    fake_connections(monkeypatch)
    fake_reverse_dns(monkeypatch, hostname="queued.lan", delay=0.2)
    # one DNS thread, so the second lookup queues behind the first
    config = ScanConfig(ports=(80,), dns_timeout=0.3, max_workers=1)
    prober = HostProber(config, fake_liveness(alive=["10.0.0.1", "10.0.0.2"]))

    try:
        results = await asyncio.gather(
            prober.probe(IPv4Address("10.0.0.1")),
            prober.probe(IPv4Address("10.0.0.2")),
        )
    finally:
        prober.close()

    assert [r.hostname for r in results] == ["queued.lan", "queued.lan"]
