# ====================================================================== #
# slothunter/utils/leases.py                                             #
# Lease-period grid arithmetic shared by the ledger, engine and client.  #
# ====================================================================== #

from __future__ import annotations

from typing import Optional, Tuple

from slothunter.config import (
    BLOCK_TIME_SECONDS,
    LEASE_PERIODS_PER_AUCTION,
    SLOT_RANGE_COUNT,
)

LeaseRange = Tuple[int, int]

# Runtime `SlotRange` order: (0,0), (0,1) … (0,7), (1,1) … (1,7), (2,2) … (7,7).
# The winning array is indexed by this order.
SLOT_RANGES: Tuple[LeaseRange, ...] = tuple(
    (first, last)
    for first in range(LEASE_PERIODS_PER_AUCTION)
    for last in range(first, LEASE_PERIODS_PER_AUCTION)
)
assert len(SLOT_RANGES) == SLOT_RANGE_COUNT

_POSITIONS = {r: i for i, r in enumerate(SLOT_RANGES)}


def position_in_ranges(leases: LeaseRange) -> Optional[int]:
    return _POSITIONS.get(tuple(leases))


def leases_length(leases: LeaseRange) -> int:
    return leases[1] - leases[0] + 1


def ranges_are_intersecting(a: LeaseRange, b: LeaseRange) -> bool:
    return a[0] <= b[1] and a[1] >= b[0]


def range_of(first_lease_period: int) -> LeaseRange:
    """Absolute lease periods offered by an auction starting at *first_lease_period*."""
    return (first_lease_period, first_lease_period + LEASE_PERIODS_PER_AUCTION - 1)


def check_leases(available: LeaseRange, wanted: LeaseRange) -> bool:
    """True when *wanted* lies entirely inside *available*."""
    return available[0] <= wanted[0] and available[1] >= wanted[1]


def offsets_of(leases: LeaseRange, first_lease_period: int) -> LeaseRange:
    return (leases[0] - first_lease_period, leases[1] - first_lease_period)


def winning_offset_of(block_number: int, ending_period_start_at: int, sample_length: int) -> int:
    """
    Index of the `Auctions::Winning` sample that is live at *block_number*.
    Before the ending period starts the runtime keeps writing sample 0.
    """
    if block_number < ending_period_start_at:
        return 0
    return (block_number - ending_period_start_at) // sample_length


def blocks2time(blocks_count: int, block_time: int = BLOCK_TIME_SECONDS) -> str:
    hour = 60 * 60
    day = hour * 24

    seconds = max(0, blocks_count) * block_time
    d = seconds // day
    h = (seconds % day) // hour
    m = (seconds % hour) // 60
    s = seconds % 60

    return f"{d}d:{h}h:{m}m:{s}s"
