# slothunter/hunter/tracker.py
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from slothunter.primitives import AuctionSnapshot


class AuctionEdge(Enum):
    OPENED = "auction has just been started"
    CLOSED = "auction has just been closed"


@dataclass(slots=True, frozen=True)
class AuctionEvent:
    edge: AuctionEdge
    auction: AuctionSnapshot

    @property
    def message(self) -> str:
        return self.edge.value


@dataclass(slots=True, frozen=True)
class AuctionTracker:
    """
    Closed / Open(snapshot) machine fed one optional snapshot per block.
    The only place that decides where an auction starts and ends.
    """
    auction: Optional[AuctionSnapshot] = None

    @property
    def is_open(self) -> bool:
        return self.auction is not None

    def advance(self, snapshot: Optional[AuctionSnapshot]) -> Tuple["AuctionTracker", List[AuctionEvent]]:
        previous = self.auction
        events: List[AuctionEvent] = []

        if previous is None and snapshot is not None:
            events.append(AuctionEvent(AuctionEdge.OPENED, snapshot))
        elif previous is not None and snapshot is None:
            events.append(AuctionEvent(AuctionEdge.CLOSED, previous))
        elif previous is not None and snapshot is not None and previous.index != snapshot.index:
            # One auction ended and the next began between two observed blocks.
            events.append(AuctionEvent(AuctionEdge.CLOSED, previous))
            events.append(AuctionEvent(AuctionEdge.OPENED, snapshot))

        return AuctionTracker(auction=snapshot), events

    @staticmethod
    def closed_in(events: List[AuctionEvent]) -> bool:
        return any(e.edge is AuctionEdge.CLOSED for e in events)
