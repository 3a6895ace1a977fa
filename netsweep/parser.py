"""
Target Parser Module

Turns the command line target into something the sweeper can work on:
- Single IPv4 address
- Explicit start/end address pair
- CIDR notation (usable host addresses of the network)
"""

import ipaddress
from dataclasses import dataclass
from ipaddress import IPv4Address
from typing import Iterator, Optional, Union
import logging

from .exceptions import InvalidAddress, InvalidRange

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AddressRange:
    """Inclusive range of IPv4 addresses."""
    start: IPv4Address
    end: IPv4Address

    def __post_init__(self):
        if self.start > self.end:
            raise InvalidRange(self.start, self.end)

    def __len__(self) -> int:
        return int(self.end) - int(self.start) + 1

    def __iter__(self) -> Iterator[IPv4Address]:
        for value in range(int(self.start), int(self.end) + 1):
            yield IPv4Address(value)

    def __contains__(self, address) -> bool:
        return self.start <= address <= self.end

    def __str__(self) -> str:
        return f"{self.start} - {self.end}"


Target = Union[IPv4Address, AddressRange]


def _parse_address(token: str) -> IPv4Address:
    try:
        return IPv4Address(token.strip())
    except ValueError as e:
        raise InvalidAddress(token, str(e)) from e


def _parse_network(token: str) -> AddressRange:
    try:
        network = ipaddress.IPv4Network(token.strip(), strict=False)
    except ValueError as e:
        raise InvalidAddress(token, str(e)) from e

    # /31 and /32 have no network or broadcast address to skip
    if network.prefixlen >= 31:
        return AddressRange(network.network_address, network.broadcast_address)
    return AddressRange(network.network_address + 1, network.broadcast_address - 1)


def parse_target(target: str, end: Optional[str] = None) -> Target:
    """Parse a command line target.

    Returns a single ``IPv4Address`` when only one plain address is given,
    otherwise an ``AddressRange``.

    Raises:
        InvalidAddress: a token is not an IPv4 address or network.
        InvalidRange: the explicit range is not strictly increasing.
    """
    if target is None:
        raise InvalidAddress("", "no target given")

    if "/" in target:
        address_range = _parse_network(target)
        if end is not None:
            logger.warning(f"Ignoring range end '{end}' because '{target}' is a network")
        logger.info(f"Parsed '{target}' as CIDR: {address_range.start} to {address_range.end}")
        return address_range

    start = _parse_address(target)
    logger.info(f"Parsed '{target}' as IPv4 address: {start}")

    if end is None:
        return start

    stop = _parse_address(end)
    logger.info(f"Parsed '{end}' as IPv4 address: {stop}")
    if start >= stop:
        raise InvalidRange(start, stop)
    return AddressRange(start, stop)


def as_range(target: Target) -> AddressRange:
    """Single addresses become a one-address range."""
    if isinstance(target, AddressRange):
        return target
    return AddressRange(target, target)


def total_addresses(target: Target) -> int:
    """Number of hosts a target covers."""
    return len(as_range(target))
