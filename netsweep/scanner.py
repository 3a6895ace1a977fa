"""
Host Scanner Module

Probes a single host:
- Liveness check (ICMP echo or ping command)
- Reverse DNS lookup
- TCP connect scan of a fixed port list
"""

import asyncio
import socket
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from ipaddress import IPv4Address
from typing import Any, Dict, List, Optional, Tuple
import logging

from .discover import LivenessProbe, select_liveness_probe

logger = logging.getLogger(__name__)

DEFAULT_TCP_PORTS: Tuple[int, ...] = (20, 21, 22, 23, 25, 53, 80, 110, 143, 443, 445)
UNKNOWN_HOSTNAME = "unknown"


class Status(Enum):
    """Liveness outcome of a host probe."""
    UP = "up"
    DOWN = "down"


@dataclass(frozen=True)
class HostProbeResult:
    """Result of probing one host."""
    address: IPv4Address
    status: Status
    hostname: Optional[str] = None
    open_ports: Tuple[int, ...] = ()

    def __post_init__(self):
        if self.status == Status.DOWN and (self.hostname is not None or self.open_ports):
            raise ValueError(f"Down host {self.address} cannot carry hostname or open ports")

    @classmethod
    def down(cls, address: IPv4Address) -> "HostProbeResult":
        return cls(address=address, status=Status.DOWN)

    @property
    def is_up(self) -> bool:
        return self.status == Status.UP

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": str(self.address),
            "status": self.status.value,
            "hostname": self.hostname,
            "open_ports": list(self.open_ports),
        }


@dataclass
class ScanConfig:
    """Configuration for sweeping."""
    timeout: float = 0.1  # seconds, liveness and per port
    dns_timeout: float = 1.0
    ports: Tuple[int, ...] = field(default_factory=lambda: DEFAULT_TCP_PORTS)
    chunk_size: int = 10  # addresses per worker
    max_workers: Optional[int] = None  # None means one worker per chunk
    verbose: bool = False

    def __post_init__(self):
        if self.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout}")
        if self.dns_timeout <= 0:
            raise ValueError(f"dns_timeout must be positive, got {self.dns_timeout}")
        if self.chunk_size < 1:
            raise ValueError(f"chunk_size must be positive, got {self.chunk_size}")
        if self.max_workers is not None and self.max_workers < 1:
            raise ValueError(f"max_workers must be positive, got {self.max_workers}")
        for port in self.ports:
            if not 0 < port < 65536:
                raise ValueError(f"invalid TCP port: {port}")
        self.ports = tuple(self.ports)


class HostProber:
    """Probe hosts for liveness, hostname and open TCP ports."""

    def __init__(self, config: ScanConfig, liveness_probe: Optional[LivenessProbe] = None):
        self.config = config
        self.liveness_probe = liveness_probe or select_liveness_probe()
        # kept apart from the default executor, which blocking ICMP sends can fill
        self._dns_executor = ThreadPoolExecutor(
            max_workers=config.max_workers,
            thread_name_prefix="netsweep-dns"
        )

    def close(self):
        """Release the reverse DNS worker threads."""
        self._dns_executor.shutdown(wait=False, cancel_futures=True)

    async def probe(self, address: IPv4Address) -> HostProbeResult:
        """Probe one host. Network failures never raise."""
        alive = await self._check_alive(address)
        if not alive:
            if self.config.verbose:
                logger.debug(f"{address} is down")
            return HostProbeResult.down(address)

        hostname = await self._resolve_hostname(address)
        open_ports = await self._scan_ports(address)
        logger.debug(f"{address} is up ({hostname}), open ports: {open_ports}")
        return HostProbeResult(
            address=address,
            status=Status.UP,
            hostname=hostname,
            open_ports=tuple(open_ports)
        )

    async def _check_alive(self, address: IPv4Address) -> bool:
        try:
            return await self.liveness_probe.is_alive(address, self.config.timeout)
        except Exception as e:
            logger.debug(f"Liveness check failed for {address}: {e}")
            return False

    async def _resolve_hostname(self, address: IPv4Address) -> str:
        """Reverse DNS lookup, ``UNKNOWN_HOSTNAME`` on failure."""
        loop = asyncio.get_running_loop()
        started = asyncio.Event()

        def lookup():
            loop.call_soon_threadsafe(started.set)
            return socket.gethostbyaddr(str(address))

        future = loop.run_in_executor(self._dns_executor, lookup)
        future.add_done_callback(lambda _: started.set())
        try:
            # time queued for a free thread does not count against dns_timeout
            await started.wait()
            hostname, _, _ = await asyncio.wait_for(future, timeout=self.config.dns_timeout)
            return hostname
        except asyncio.CancelledError:
            future.cancel()
            raise
        except asyncio.TimeoutError:
            logger.debug(f"Reverse DNS lookup timed out for {address}")
        except (socket.herror, socket.gaierror, OSError) as e:
            logger.debug(f"Reverse DNS lookup failed for {address}: {e}")
        return UNKNOWN_HOSTNAME

    async def _scan_ports(self, address: IPv4Address) -> List[int]:
        open_ports = []
        for port in self.config.ports:
            if await self._tcp_connect(address, port):
                open_ports.append(port)
        return open_ports

    async def _tcp_connect(self, address: IPv4Address, port: int) -> bool:
        """Perform TCP connect scan on one port."""
        try:
            future = asyncio.open_connection(str(address), port)
            reader, writer = await asyncio.wait_for(future, timeout=self.config.timeout)
        except asyncio.TimeoutError:
            logger.debug(f"{address}:{port} filtered (timeout)")
            return False
        except ConnectionRefusedError:
            logger.debug(f"{address}:{port} closed")
            return False
        except OSError as e:
            logger.debug(f"{address}:{port} unreachable: {e}")
            return False

        # Connection successful - port is open
        writer.close()
        try:
            await writer.wait_closed()
        except OSError as e:
            logger.debug(f"Error closing connection to {address}:{port}: {e}")
        return True
