"""
Host Discovery Module

Provides liveness checks for single hosts:
- ICMP echo using raw sockets (using Scapy)
- Platform ping command fallback
- Startup selection of the usable mechanism
"""

import asyncio
import os
import platform
import shutil
from abc import ABC, abstractmethod
from ipaddress import IPv4Address
from typing import List, Optional
import logging

try:
    from scapy.all import sr1
    from scapy.layers.inet import IP, ICMP
    SCAPY_AVAILABLE = True
except ImportError:
    SCAPY_AVAILABLE = False
    logging.warning("Scapy not available. Raw ICMP pings will be disabled.")

from .exceptions import UnsupportedPlatform

logger = logging.getLogger(__name__)

SUPPORTED_SYSTEMS = ("Linux", "Darwin", "Windows")


class LivenessProbe(ABC):
    """Checks whether a single host answers."""

    name = "liveness"

    @abstractmethod
    async def is_alive(self, address: IPv4Address, timeout: float) -> bool:
        """Return True when the host answered within ``timeout`` seconds."""


class SubprocessPing(LivenessProbe):
    """Liveness check through the system ``ping`` command."""

    name = "ping"
    # seconds ping gets past its own timeout before it is killed
    exit_grace = 2.0

    def __init__(self, system: Optional[str] = None):
        self.system = system or platform.system()
        if self.system not in SUPPORTED_SYSTEMS:
            raise UnsupportedPlatform(self.system)
        self.executable = shutil.which("ping")
        if not self.executable:
            raise UnsupportedPlatform(self.system, "no 'ping' command found in PATH")

    def build_command(self, address: IPv4Address, timeout: float) -> List[str]:
        """Build a one-echo ping command line for this system."""
        millis = max(1, int(timeout * 1000))
        if self.system == "Windows":
            return [self.executable, "-n", "1", "-w", str(millis), str(address)]
        if self.system == "Darwin":
            return [self.executable, "-c", "1", "-W", str(millis), str(address)]
        # iputils takes fractional seconds
        return [self.executable, "-c", "1", "-W", f"{timeout:g}", str(address)]

    async def is_alive(self, address: IPv4Address, timeout: float) -> bool:
        command = self.build_command(address, timeout)
        process = None
        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL
            )
            returncode = await asyncio.wait_for(process.wait(), timeout=timeout + self.exit_grace)
            return returncode == 0
        except asyncio.TimeoutError:
            if process and process.returncode is None:
                process.kill()
                await process.wait()
            return False
        except OSError as e:
            logger.debug(f"Ping error for {address}: {e}")
            return False


class ScapyPing(LivenessProbe):
    """Liveness check sending a raw ICMP echo request with Scapy."""

    name = "icmp"

    def __init__(self):
        if not SCAPY_AVAILABLE:
            raise UnsupportedPlatform(platform.system(), "scapy is not installed")

    async def is_alive(self, address: IPv4Address, timeout: float) -> bool:
        packet = IP(dst=str(address)) / ICMP()

        def send_echo():
            return sr1(packet, timeout=timeout, verbose=0)

        try:
            response = await asyncio.get_running_loop().run_in_executor(None, send_echo)
        except Exception as e:
            logger.debug(f"ICMP echo error for {address}: {e}")
            return False

        if response is None or not response.haslayer(ICMP):
            return False
        # echo-reply
        return response[ICMP].type == 0


def has_raw_socket_privileges() -> bool:
    """Raw ICMP sockets need root (POSIX) or an elevated shell (Windows)."""
    try:
        if platform.system() == "Windows":
            import ctypes
            return ctypes.windll.shell32.IsUserAnAdmin() != 0
        if hasattr(os, "geteuid"):
            return os.geteuid() == 0
        return False
    except (AttributeError, OSError):
        return False


def select_liveness_probe(prefer_raw: bool = True) -> LivenessProbe:
    """Pick the liveness mechanism for this process.

    Raises:
        UnsupportedPlatform: neither raw ICMP nor a ping command is usable.
    """
    if prefer_raw and SCAPY_AVAILABLE and has_raw_socket_privileges():
        logger.info("Using raw ICMP echo for liveness checks")
        return ScapyPing()

    probe = SubprocessPing()
    logger.info(f"Using '{probe.executable}' for liveness checks")
    return probe
