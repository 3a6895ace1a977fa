"""
Network Sweeper Module

Fans chunks of addresses out to concurrent workers:
- One asyncio task per chunk, optionally bounded by a worker limit
- Addresses inside a chunk are probed one after another
- Results go to a single collector which ticks the progress callback
"""

import asyncio
import time
from ipaddress import IPv4Address
from typing import Optional, Sequence
import logging

from .aggregator import AggregateReport, ProgressCallback, ResultCollector, aggregate
from .chunker import chunk_by_size
from .parser import AddressRange, Target
from .scanner import HostProbeResult, HostProber, ScanConfig

logger = logging.getLogger(__name__)


class NetworkSweeper:
    """Concurrent liveness, hostname and port sweep over address ranges."""

    def __init__(self, config: ScanConfig, prober: Optional[HostProber] = None,
                 progress_callback: Optional[ProgressCallback] = None):
        self.config = config
        self.prober = prober or HostProber(config)
        self.progress_callback = progress_callback
        self._cancelled = False

    def cancel(self):
        """Stop workers before their next address."""
        self._cancelled = True
        logger.info("Sweep cancellation requested")

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    async def sweep_target(self, target: Target) -> AggregateReport:
        """Sweep a parsed target, either a single address or a range."""
        if isinstance(target, AddressRange):
            return await self.sweep_range(target)
        return await self.sweep_address(target)

    async def sweep_address(self, address: IPv4Address) -> AggregateReport:
        return await self.sweep([AddressRange(address, address)])

    async def sweep_range(self, address_range: AddressRange) -> AggregateReport:
        chunks = chunk_by_size(address_range, self.config.chunk_size)
        return await self.sweep(chunks)

    async def sweep(self, chunks: Sequence[AddressRange]) -> AggregateReport:
        """Probe every address of every chunk and aggregate the results."""
        total = sum(len(chunk) for chunk in chunks)
        workers = self.config.max_workers or "unbounded"
        logger.info(f"Starting sweep of {total} addresses in {len(chunks)} chunks (workers: {workers})")
        start_time = time.time()

        collector = ResultCollector(total, self.progress_callback)
        collector_task = asyncio.create_task(collector.run())

        semaphore = asyncio.Semaphore(self.config.max_workers) if self.config.max_workers else None
        tasks = [
            asyncio.create_task(self._run_chunk(chunk, collector, semaphore))
            for chunk in chunks
        ]
        try:
            await asyncio.gather(*tasks)
        finally:
            pending = [task for task in tasks if not task.done()]
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)
            await collector.close()
            results = await collector_task

        report = aggregate(results)
        duration = time.time() - start_time
        logger.info(
            f"Sweep completed in {duration:.2f}s. Scanned {report.total_scanned} addresses, "
            f"{report.total_up} up"
        )
        return report

    async def _run_chunk(self, chunk: AddressRange, collector: ResultCollector,
                         semaphore: Optional[asyncio.Semaphore]):
        if semaphore is None:
            await self._probe_chunk(chunk, collector)
            return
        async with semaphore:
            await self._probe_chunk(chunk, collector)

    async def _probe_chunk(self, chunk: AddressRange, collector: ResultCollector):
        logger.debug(f"Worker started on {chunk}")
        for address in chunk:
            if self._cancelled:
                logger.debug(f"Worker on {chunk} stopped before {address}")
                return
            result = await self._probe_isolated(address)
            await collector.put(result)

    async def _probe_isolated(self, address: IPv4Address) -> HostProbeResult:
        try:
            return await self.prober.probe(address)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Probe of {address} crashed, recording it as down: {e}")
            return HostProbeResult.down(address)
