"""
netsweep - Concurrent IPv4 network sweeps.

This package provides modules for:
- Target parsing (address, range, CIDR)
- Range chunking
- Host liveness checks, reverse DNS and TCP port scans
- Concurrent sweeping and result aggregation
- Reporting
"""

__version__ = "1.0.0"

from .aggregator import AggregateReport, aggregate
from .chunker import chunk_by_size, split_range
from .exceptions import InvalidAddress, InvalidRange, SweepError, UnsupportedPlatform
from .parser import AddressRange, parse_target
from .scanner import HostProbeResult, HostProber, ScanConfig, Status
from .sweeper import NetworkSweeper

__all__ = [
    "AddressRange",
    "AggregateReport",
    "HostProbeResult",
    "HostProber",
    "InvalidAddress",
    "InvalidRange",
    "NetworkSweeper",
    "ScanConfig",
    "Status",
    "SweepError",
    "UnsupportedPlatform",
    "aggregate",
    "chunk_by_size",
    "parse_target",
    "split_range",
]
