# ------------------------------------------------------------------------
# tests/test_ledger.py
# ------------------------------------------------------------------------
# Winning allocation and minimum bid to win.
#
# Scenarios
#   ① reference grids for resolve (single winner, full split, mixed)
#   ② equal totals keep the earliest allocation
#   ③ minimum bid on the reference cases
#   ④ both agree with an exhaustive search on small random grids
#   ⑤ arithmetic invariants fail fast
# ------------------------------------------------------------------------

import itertools
import random

import pytest

from slothunter.errors import LedgerError
from slothunter.hunter.ledger import disjoint_combinations, minimum_bid_to_win, resolve
from slothunter.primitives import empty_winning
from slothunter.utils.leases import SLOT_RANGES, leases_length, ranges_are_intersecting

from doubles import grid, slot


def W(name, leases, value):
    return slot(name, leases, value, para_id=ord(name))


# ====================================================================== #
# ① resolve
# ====================================================================== #
def test_resolve_empty_grid():
    assert resolve(empty_winning()) == ([], 0)


def test_resolve_prefers_the_widest_single_winner():
    winning = grid(W("A", (0, 1), 5), W("B", (0, 2), 6), W("C", (1, 2), 3), W("D", (0, 3), 7), W("E", (2, 3), 4))
    assert resolve(winning) == ([W("D", (0, 3), 7)], 28)


def test_resolve_splits_into_single_periods():
    winning = grid(W("A", (0, 0), 5), W("B", (1, 1), 6), W("C", (2, 2), 7), W("D", (3, 3), 8), W("E", (0, 3), 3))
    assert resolve(winning) == (
        [W("A", (0, 0), 5), W("B", (1, 1), 6), W("C", (2, 2), 7), W("D", (3, 3), 8)],
        26,
    )


def test_resolve_mixed_grid():
    winning = grid(W("A", (0, 7), 10), W("B", (0, 2), 4), W("C", (3, 3), 5), W("D", (1, 7), 11), W("E", (4, 7), 16))
    assert resolve(winning) == ([W("B", (0, 2), 4), W("C", (3, 3), 5), W("E", (4, 7), 16)], 81)


def test_resolve_is_deterministic():
    winning = grid(W("A", (0, 7), 10), W("B", (0, 2), 4), W("E", (4, 7), 16))
    assert resolve(winning) == resolve(winning)


# ====================================================================== #
# ② tie-break
# ====================================================================== #
def test_equal_totals_keep_the_first_candidate():
    # [0,1] as one slot (10) ties with [0,0] + [1,1] (5 + 5): the direct slot stays.
    winning = grid(W("A", (0, 1), 5), W("B", (0, 0), 5), W("C", (1, 1), 5))
    assert resolve(winning) == ([W("A", (0, 1), 5)], 10)


def test_equal_totals_keep_the_earliest_split():
    # [0,2]: split after 0 (B + C = 1 + 4) ties with split after 1 (A's prefix 4 + D 1).
    winning = grid(W("B", (0, 0), 1), W("C", (1, 2), 2), W("A", (0, 1), 2), W("D", (2, 2), 1))
    winners, threshold = resolve(winning)
    assert threshold == 5
    assert winners == [W("B", (0, 0), 1), W("C", (1, 2), 2)]


# ====================================================================== #
# ③ minimum bid to win
# ====================================================================== #
def _min_bid(slots, target):
    winning = grid(*slots)
    _, threshold = resolve(winning)
    return minimum_bid_to_win(winning, target, threshold)


@pytest.mark.parametrize(
    "slots, target, expected",
    [
        ([W("A", (0, 3), 10)], (1, 2), 20),
        ([W("A", (0, 3), 10), W("B", (0, 1), 5)], (2, 3), 15),
        ([W("A", (0, 3), 10), W("B", (0, 1), 5), W("C", (0, 2), 8), W("D", (1, 2), 7)], (0, 0), 26),
        ([W("A", (1, 3), 11), W("B", (2, 6), 21), W("C", (7, 7), 34)], (0, 7), 17),
        ([W("A", (1, 2), 11), W("B", (3, 6), 21), W("C", (7, 7), 34)], (0, 7), 17),
        (
            [W("A", (0, 3), 10), W("B", (0, 1), 10), W("C", (2, 2), 5),
             W("D", (1, 3), 11), W("E", (3, 3), 16), W("F", (0, 0), 1)],
            (1, 2),
            12,
        ),
    ],
)
def test_minimum_bid_to_win(slots, target, expected):
    assert _min_bid(slots, target) == expected


def test_minimum_bid_with_explicit_threshold():
    winning = grid(W("A", (0, 3), 10))
    assert minimum_bid_to_win(winning, (1, 2), 40) == 20

    winning = grid(W("A", (0, 3), 10), W("B", (0, 1), 5))
    assert minimum_bid_to_win(winning, (2, 3), 40) == 15


def test_minimum_bid_is_monotonic_in_threshold():
    winning = grid(W("A", (0, 1), 7), W("B", (4, 7), 3), W("C", (2, 3), 9))
    prices = [minimum_bid_to_win(winning, (2, 3), t) for t in range(30, 200, 7)]
    assert prices == sorted(prices)


# ====================================================================== #
# ④ exhaustive cross-check
# ====================================================================== #
def _pairwise_disjoint(subset):
    return all(not ranges_are_intersecting(a.leases, b.leases) for a, b in itertools.combinations(subset, 2))


def _brute_threshold(slots):
    best = 0
    for r in range(1, len(slots) + 1):
        for subset in itertools.combinations(slots, r):
            if _pairwise_disjoint(subset):
                best = max(best, sum(s.weighted for s in subset))
    return best


def _brute_minimum(slots, target, threshold):
    compatible = [s for s in slots if not ranges_are_intersecting(s.leases, target)]
    prices = []
    for r in range(1, len(compatible) + 1):
        for subset in itertools.combinations(compatible, r):
            if _pairwise_disjoint(subset):
                prices.append((threshold - sum(s.weighted for s in subset)) // leases_length(target))
    return min(prices) if prices else threshold // leases_length(target)


@pytest.mark.parametrize("seed", range(25))
def test_resolve_and_minimum_match_exhaustive_search(seed):
    rng = random.Random(seed)
    ranges = rng.sample(SLOT_RANGES, rng.randint(1, 9))
    slots = [slot(f"0x{i:02x}", r, rng.randint(1, 50), para_id=2000 + i) for i, r in enumerate(ranges)]
    winning = grid(*slots)

    winners, threshold = resolve(winning)
    assert threshold == _brute_threshold(slots)
    assert sum(w.weighted for w in winners) == threshold
    assert _pairwise_disjoint(winners)

    target = rng.choice(SLOT_RANGES)
    assert minimum_bid_to_win(winning, target, threshold) == _brute_minimum(slots, target, threshold)


def test_disjoint_combinations_never_yields_overlaps():
    slots = [W("A", (0, 1), 1), W("B", (1, 2), 1), W("C", (3, 3), 1), W("D", (2, 2), 1)]
    subsets = list(disjoint_combinations(slots))
    assert all(_pairwise_disjoint(s) for s in subsets)
    expected = [
        s for r in range(1, 5) for s in itertools.combinations(slots, r) if _pairwise_disjoint(s)
    ]
    assert sorted(map(tuple, subsets), key=repr) == sorted(expected, key=repr)


# ====================================================================== #
# ⑤ invariants
# ====================================================================== #
def test_resolve_rejects_a_short_array():
    with pytest.raises(LedgerError):
        resolve(empty_winning()[:35])


def test_minimum_bid_rejects_a_threshold_below_surviving_slots():
    winning = grid(W("A", (0, 0), 10))
    with pytest.raises(LedgerError):
        minimum_bid_to_win(winning, (1, 1), 5)
