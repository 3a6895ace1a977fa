"""
Local network interfaces, listed for orientation before a sweep.
"""

import ipaddress
import socket
from dataclasses import dataclass
from typing import List
import logging

import psutil

logger = logging.getLogger(__name__)


@dataclass
class InterfaceAddress:
    """IPv4 address bound to a local interface."""
    interface: str
    address: str
    prefixlen: int
    is_up: bool = True

    @property
    def network(self) -> str:
        return str(ipaddress.IPv4Interface(f"{self.address}/{self.prefixlen}").network)

    def __str__(self) -> str:
        return f"{self.address}/{self.prefixlen}"


def list_ipv4_interfaces(include_loopback: bool = False) -> List[InterfaceAddress]:
    """IPv4 addresses of local interfaces, loopback excluded by default."""
    stats = psutil.net_if_stats()
    found = []
    for name, addresses in psutil.net_if_addrs().items():
        for addr in addresses:
            if addr.family != socket.AF_INET or not addr.address:
                continue
            ip = ipaddress.IPv4Address(addr.address)
            if ip.is_unspecified or (ip.is_loopback and not include_loopback):
                continue
            prefixlen = 32
            if addr.netmask:
                prefixlen = ipaddress.IPv4Network(f"0.0.0.0/{addr.netmask}").prefixlen
            is_up = stats[name].isup if name in stats else False
            found.append(InterfaceAddress(name, addr.address, prefixlen, is_up))
    logger.debug(f"Found {len(found)} IPv4 interface addresses")
    return found
