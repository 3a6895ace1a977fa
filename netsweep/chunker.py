"""
Range Chunker

Splits an address range into contiguous work units. Chunks from one split
never overlap, never leave gaps and always end exactly at the range end.
"""

from ipaddress import IPv4Address
from typing import List
import logging

from .parser import AddressRange

logger = logging.getLogger(__name__)


def split_range(address_range: AddressRange, chunk_count: int) -> List[AddressRange]:
    """Split a range into ``chunk_count`` chunks.

    Every chunk holds ``total // chunk_count`` addresses, the last one also
    takes the remainder. Asking for more chunks than there are addresses
    gives back a single chunk covering the whole range.
    """
    if chunk_count < 1:
        raise ValueError(f"chunk count must be positive, got {chunk_count}")

    total = len(address_range)
    if chunk_count > total:
        logger.debug(f"Requested {chunk_count} chunks for {total} addresses, using a single chunk")
        return [address_range]

    size = total // chunk_count
    first = int(address_range.start)
    chunks = []
    for index in range(chunk_count):
        start = first + index * size
        if index == chunk_count - 1:
            end = int(address_range.end)
        else:
            end = start + size - 1
        chunks.append(AddressRange(IPv4Address(start), IPv4Address(end)))
    return chunks


def chunk_by_size(address_range: AddressRange, chunk_size: int) -> List[AddressRange]:
    """Split a range into chunks of ``chunk_size`` addresses.

    The last chunk is smaller when the range does not divide evenly.
    """
    if chunk_size < 1:
        raise ValueError(f"chunk size must be positive, got {chunk_size}")

    total = len(address_range)
    if chunk_size >= total:
        return [address_range]

    last = int(address_range.end)
    chunks = []
    current = int(address_range.start)
    while current <= last:
        end = min(current + chunk_size - 1, last)
        chunks.append(AddressRange(IPv4Address(current), IPv4Address(end)))
        current = end + 1

    logger.debug(f"Split {address_range} into {len(chunks)} chunks of up to {chunk_size} addresses")
    return chunks
