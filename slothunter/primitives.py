# ====================================================================== #
# slothunter/primitives.py: typed chain values the hunter core consumes  #
# ====================================================================== #

from __future__ import annotations

from dataclasses import asdict, dataclass
from decimal import Decimal
from typing import Any, Dict, Optional, Sequence, Tuple

from slothunter.config import LEASE_PERIODS_PER_AUCTION, SLOT_RANGE_COUNT
from slothunter.utils.leases import SLOT_RANGES, LeaseRange, blocks2time, leases_length
from slothunter.utils.pretty_logs import mask


@dataclass(slots=True, frozen=True)
class Token:
    symbol: str
    decimals: int

    @property
    def unit(self) -> int:
        return 10**self.decimals

    def fmt(self, balance: int) -> str:
        amount = (Decimal(balance) / Decimal(self.unit)).normalize()
        return f"{self.symbol}({amount:f})"


@dataclass(slots=True, frozen=True)
class BlockRef:
    height: int
    hash: str


@dataclass(slots=True, frozen=True)
class AuctionSnapshot:
    index: int
    first_lease_period: int
    ending_period_start_at: int

    def describe(self, now: int, end_at: int) -> str:
        remain = max(0, end_at - now)
        return (
            f"auction(#{self.index}) for leases[#{self.first_lease_period}, "
            f"#{self.first_lease_period + LEASE_PERIODS_PER_AUCTION}) has been activated for "
            f"block range[#{self.ending_period_start_at}, #{end_at}], remain {remain} block(s) "
            f"approximately {blocks2time(remain)}"
        )


@dataclass(slots=True, frozen=True)
class AcceptedBid:
    at: int
    amount: int
    first_slot: int
    last_slot: int

    def describe(self, token: Token) -> str:
        return (
            f"{token.fmt(self.amount)} for lease(s)[#{self.first_slot}, #{self.last_slot}] "
            f"at block height(#{self.at})"
        )


@dataclass(slots=True, frozen=True)
class Bidder:
    who: str
    para_id: int
    reserved: int
    existing_deposit: int = 0
    last_accepted_bid: Optional[AcceptedBid] = None

    def describe(self, token: Token) -> str:
        extra = (
            ""
            if self.existing_deposit == 0
            else f" and found it has an existing lease with deposit {token.fmt(self.existing_deposit)}"
        )
        return (
            f"bidder({mask(self.who)}, {self.para_id}) has bid with extra reservation "
            f"{token.fmt(self.reserved)} this turn{extra}"
        )


@dataclass(slots=True, frozen=True)
class WinningSlot:
    who: str
    para_id: int
    leases: LeaseRange
    value: int

    @property
    def weighted(self) -> int:
        """Value over the whole sub-range; what the runtime compares between allocations."""
        return self.value * leases_length(self.leases)

    def describe(self, token: Token, first_lease_period: int) -> str:
        return (
            f"bidder({mask(self.who)}, {self.para_id}) has won the lease(s)"
            f"[#{first_lease_period + self.leases[0]}, #{first_lease_period + self.leases[1]}] "
            f"with {token.fmt(self.value)}"
        )

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["leases"] = list(self.leases)
        return d


Winning = Tuple[Optional[WinningSlot], ...]


def empty_winning() -> Winning:
    return (None,) * SLOT_RANGE_COUNT


def winning_of(entries: Sequence[Optional[Tuple[str, int, int]]]) -> Winning:
    """
    Build the 36-slot winning array from raw `(who, para_id, value)` entries,
    attaching each entry's sub-range from its position.
    """
    if len(entries) != SLOT_RANGE_COUNT:
        raise ValueError(f"winning must have {SLOT_RANGE_COUNT} entries, got {len(entries)}")
    return tuple(
        None if e is None else WinningSlot(who=e[0], para_id=int(e[1]), leases=SLOT_RANGES[i], value=int(e[2]))
        for i, e in enumerate(entries)
    )


@dataclass(slots=True, frozen=True)
class DispatchOutcome:
    """Result of an included extrinsic: `ok`, or the runtime's failure reason."""
    ok: bool
    error: Optional[str] = None

    @classmethod
    def success(cls) -> "DispatchOutcome":
        return cls(ok=True)

    @classmethod
    def failure(cls, error: str) -> "DispatchOutcome":
        return cls(ok=False, error=error)
