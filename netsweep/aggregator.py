"""
Result Aggregation

A single collector task owns the result list and the progress counter.
Workers only put results on its queue.
"""

import asyncio
import inspect
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Tuple
import logging

from .scanner import HostProbeResult, Status

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[HostProbeResult, int, int], Optional[Awaitable[None]]]

_STOP = object()


@dataclass(frozen=True)
class AggregateReport:
    """Sorted sweep results with totals."""
    results: Tuple[HostProbeResult, ...]
    total_scanned: int
    total_up: int

    @property
    def total_down(self) -> int:
        return self.total_scanned - self.total_up

    @property
    def up_hosts(self) -> List[HostProbeResult]:
        return [r for r in self.results if r.status == Status.UP]

    @property
    def down_hosts(self) -> List[HostProbeResult]:
        return [r for r in self.results if r.status == Status.DOWN]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_scanned": self.total_scanned,
            "total_up": self.total_up,
            "total_down": self.total_down,
            "results": [r.to_dict() for r in self.results],
        }


def aggregate(results: Iterable[HostProbeResult]) -> AggregateReport:
    """Order results by address and count them."""
    ordered = tuple(sorted(results, key=lambda r: r.address))
    total_up = sum(1 for r in ordered if r.status == Status.UP)
    return AggregateReport(results=ordered, total_scanned=len(ordered), total_up=total_up)


class ResultCollector:
    """Single consumer of probe results."""

    def __init__(self, total: int, progress_callback: Optional[ProgressCallback] = None):
        self.total = total
        self.progress_callback = progress_callback
        self.queue: "asyncio.Queue" = asyncio.Queue()
        self.results: List[HostProbeResult] = []

    @property
    def completed(self) -> int:
        return len(self.results)

    async def put(self, result: HostProbeResult):
        await self.queue.put(result)

    async def close(self):
        """Tell the collector no more results are coming."""
        await self.queue.put(_STOP)

    async def run(self) -> List[HostProbeResult]:
        while True:
            item = await self.queue.get()
            if item is _STOP:
                break
            self.results.append(item)
            await self._notify(item)
        logger.debug(f"Collected {self.completed} of {self.total} results")
        return self.results

    async def _notify(self, result: HostProbeResult):
        if not self.progress_callback:
            return
        try:
            outcome = self.progress_callback(result, self.completed, self.total)
            if inspect.isawaitable(outcome):
                await outcome
        except Exception as e:
            logger.warning(f"Progress callback failed: {e}")
