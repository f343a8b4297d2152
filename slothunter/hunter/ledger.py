# ====================================================================== #
# slothunter/hunter/ledger.py                                            #
# ====================================================================== #
"""
Winning allocation for the 8-period candle auction grid.

`resolve` replays the runtime's clearing rule: the allocation that maximises
the total weighted value (per-period value × range length) over disjoint
sub-ranges of the grid.  `minimum_bid_to_win` answers the inverse question:
the lowest per-period value that makes a bid on our own sub-range part of a
better allocation than the current one.
"""

from __future__ import annotations

from typing import Iterator, List, Optional, Sequence, Tuple

from slothunter.config import LEASE_PERIODS_PER_AUCTION, SLOT_RANGE_COUNT
from slothunter.errors import LedgerError
from slothunter.primitives import WinningSlot
from slothunter.utils.leases import LeaseRange, leases_length, position_in_ranges, ranges_are_intersecting


def _slot_at(winning: Sequence[Optional[WinningSlot]], leases: LeaseRange) -> Optional[WinningSlot]:
    i = position_in_ranges(leases)
    if i is None:
        return None
    return winning[i]


def resolve(winning: Sequence[Optional[WinningSlot]]) -> Tuple[List[WinningSlot], int]:
    """
    Best disjoint coverage of [0, 7] and its weighted total (the threshold).

    best[i] is the best allocation of the prefix [0, i]: either the slot that
    spans it directly, or best[j] followed by the slot spanning [j+1, i].
    Splits are scanned in increasing j and only a strictly greater total
    replaces the current candidate, so among equal totals the earliest wins.
    """
    if len(winning) != SLOT_RANGE_COUNT:
        raise LedgerError(f"winning must have {SLOT_RANGE_COUNT} entries, got {len(winning)}")

    best: List[Tuple[List[WinningSlot], int]] = [([], 0)] * LEASE_PERIODS_PER_AUCTION

    for i in range(LEASE_PERIODS_PER_AUCTION):
        direct = _slot_at(winning, (0, i))
        best[i] = ([direct], direct.weighted) if direct else ([], 0)

        for j in range(i):
            tail = _slot_at(winning, (j + 1, i))
            prefix_winners, prefix_value = best[j]
            value = prefix_value + (tail.weighted if tail else 0)

            if value > best[i][1]:
                best[i] = (prefix_winners + [tail] if tail else list(prefix_winners), value)

    winners, threshold = best[-1]
    return list(winners), threshold


def disjoint_combinations(slots: Sequence[WinningSlot]) -> Iterator[List[WinningSlot]]:
    """
    Every non-empty subset of *slots* whose members pairwise do not intersect.

    Subsets are grown member by member in input order; a member that would
    intersect one already chosen ends that branch, so no intersecting subset
    is ever built.
    """
    def grow(start: int, chosen: List[WinningSlot]) -> Iterator[List[WinningSlot]]:
        for k in range(start, len(slots)):
            candidate = slots[k]
            if any(ranges_are_intersecting(candidate.leases, c.leases) for c in chosen):
                continue
            subset = chosen + [candidate]
            yield subset
            yield from grow(k + 1, subset)

    yield from grow(0, [])


def minimum_bid_to_win(
    winning: Sequence[Optional[WinningSlot]],
    leases: LeaseRange,
    threshold: int,
) -> int:
    """
    Lowest per-period value on *leases* (offsets) that beats *threshold*.

    Slots outside *leases* may survive next to a winner of *leases*; the most
    favourable surviving combination leaves the smallest remainder for us to
    cover.  With no such slot the whole threshold must be covered alone.
    """
    length = leases_length(leases)
    if length <= 0:
        raise LedgerError(f"invalid lease range {leases}")

    compatible = [w for w in winning if w is not None and not ranges_are_intersecting(w.leases, leases)]

    minimum: Optional[int] = None
    for subset in disjoint_combinations(compatible):
        remainder = threshold - sum(w.weighted for w in subset)
        if remainder < 0:
            raise LedgerError(
                f"surviving slots outweigh the threshold ({remainder} < 0) for leases {leases}"
            )
        price = remainder // length
        if minimum is None or price < minimum:
            minimum = price

    if minimum is None:
        if threshold < 0:
            raise LedgerError(f"negative threshold {threshold}")
        return threshold // length
    return minimum
