# slothunter/hunter/state.py
from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Optional

from slothunter.hunter.tracker import AuctionTracker


class BidPhase(Enum):
    IDLE = "idle"
    TENDERED = "tendered"
    UNAFFORDABLE = "unaffordable"


@dataclass(slots=True, frozen=True)
class BidState:
    """
    Bid bookkeeping for one auction cycle.

    `self_bid_amount` is our last accepted bid (what a contribution only has
    to top up); `retries` counts consecutive dispatch failures.
    """
    phase: BidPhase = BidPhase.IDLE
    self_bid_amount: int = 0
    retries: int = 0

    @property
    def has_pending_tender(self) -> bool:
        return self.phase is BidPhase.TENDERED

    @property
    def unaffordable(self) -> bool:
        return self.phase is BidPhase.UNAFFORDABLE

    def with_self_bid(self, amount: int) -> "BidState":
        return replace(self, self_bid_amount=amount)

    def tendered(self) -> "BidState":
        return replace(self, phase=BidPhase.TENDERED, retries=0)

    def failed(self) -> "BidState":
        return replace(self, phase=BidPhase.IDLE, retries=self.retries + 1)

    def priced_out(self) -> "BidState":
        return replace(self, phase=BidPhase.UNAFFORDABLE, retries=0)

    def affordable(self) -> "BidState":
        if self.phase is BidPhase.UNAFFORDABLE:
            return replace(self, phase=BidPhase.IDLE)
        return self

    def settled(self) -> "BidState":
        """The block after a tender has been skipped."""
        if self.phase is BidPhase.TENDERED:
            return replace(self, phase=BidPhase.IDLE)
        return self


@dataclass(slots=True, frozen=True)
class HunterState:
    tracker: AuctionTracker = field(default_factory=AuctionTracker)
    bid: BidState = field(default_factory=BidState)
    processed: int = 0

    def with_bid(self, bid: BidState) -> "HunterState":
        return replace(self, bid=bid)


@dataclass(slots=True, frozen=True)
class Notify:
    """
    One notification for the sink. Webhooks always receive it; mail only
    when `mail` is set.
    """
    payload: Any
    text: str
    mail: bool = True


@dataclass(slots=True, frozen=True)
class Tender:
    """Record of a tender decision taken during a step (already executed)."""
    amount: int
    contribution: bool
    ok: Optional[bool]
    error: Optional[str] = None
