"""
Sweep Errors

Only these errors are allowed to abort a run. Every per-host network
outcome is reported as data in the results, never raised.
"""

from ipaddress import IPv4Address
from typing import Optional


class SweepError(Exception):
    """Base class for fatal sweep errors."""
    exit_code = 1


class InvalidAddress(SweepError):
    """A token is neither an IPv4 address nor an IPv4 network prefix."""
    exit_code = 2

    def __init__(self, token: str, reason: Optional[str] = None):
        self.token = token
        self.reason = reason
        message = f"Failed to parse '{token}' as an IPv4 address or CIDR network"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class InvalidRange(SweepError):
    """Range start is not strictly lower than range end."""
    exit_code = 2

    def __init__(self, start: IPv4Address, end: IPv4Address):
        self.start = start
        self.end = end
        super().__init__(
            f"Invalid IP range: {start} to {end}. "
            f"Make sure the start address is lower than the end address"
        )


class UnsupportedPlatform(SweepError):
    """No liveness probe implementation exists for this system."""
    exit_code = 3

    def __init__(self, system: str, reason: Optional[str] = None):
        self.system = system
        self.reason = reason
        message = f"Unsupported platform for host liveness checks: {system}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)
