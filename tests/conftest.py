import asyncio
import os
import sys
from ipaddress import IPv4Address

import pytest


PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from netsweep.discover import LivenessProbe
from netsweep.scanner import HostProbeResult, Status


class FakeLiveness(LivenessProbe):
    """Answers for a fixed set of addresses."""

    name = "fake"

    def __init__(self, alive=()):
        self.alive = {IPv4Address(a) for a in alive}
        self.calls = []

    async def is_alive(self, address, timeout):
        self.calls.append(address)
        return address in self.alive


class FakeProber:
    """Stands in for HostProber with canned outcomes."""

    def __init__(self, up=(), crash=(), delays=None):
        self.up = {IPv4Address(a) for a in up}
        self.crash = {IPv4Address(a) for a in crash}
        self.delays = delays or {}
        self.calls = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def probe(self, address):
        self.calls.append(address)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(str(address), 0))
            if address in self.crash:
                raise RuntimeError("probe exploded")
            if address in self.up:
                return HostProbeResult(address, Status.UP, hostname=f"host-{int(address) & 0xff}", open_ports=(22, 80))
            return HostProbeResult.down(address)
        finally:
            self.in_flight -= 1


@pytest.fixture
def fake_liveness():
    return FakeLiveness


@pytest.fixture
def fake_prober():
    return FakeProber


class FakeIP:
    def __init__(self, dst):
        self.dst = dst

    def __truediv__(self, other):
        return self


class FakeICMP:
    pass


class FakeReply:
    def __init__(self, icmp_type):
        self.type = icmp_type

    def haslayer(self, layer):
        return layer is FakeICMP

    def __getitem__(self, layer):
        return self


@pytest.fixture
def fake_scapy(monkeypatch):
    """Swap scapy's packet layers and ``sr1`` for fakes.

    Returns a setter taking the ``sr1`` replacement.
    """
    from netsweep import discover

    monkeypatch.setattr(discover, "SCAPY_AVAILABLE", True)
    monkeypatch.setattr(discover, "IP", FakeIP, raising=False)
    monkeypatch.setattr(discover, "ICMP", FakeICMP, raising=False)

    def install(sr1):
        monkeypatch.setattr(discover, "sr1", sr1, raising=False)

    return install


@pytest.fixture
def fake_reply():
    return FakeReply
