# slothunter/chain/interface.py
"""
The narrow surfaces the hunter core talks to.  Everything behind them
(storage decoding, signing, transport) is the chain client's business.
"""
from __future__ import annotations

from typing import AsyncIterator, List, Optional, Protocol, Sequence, runtime_checkable

from slothunter.configuration import BlockSubscriptionMode
from slothunter.primitives import AcceptedBid, AuctionSnapshot, Bidder, BlockRef, DispatchOutcome, Winning
from slothunter.utils.leases import LeaseRange


@runtime_checkable
class ChainClient(Protocol):
    async def auction_ending_period(self) -> int: ...

    async def auction_sample_length(self) -> int: ...

    async def auction_at(self, block: BlockRef) -> Optional[AuctionSnapshot]: ...

    async def bidders_at(self, block: BlockRef) -> List[Bidder]: ...

    async def winning_at(self, block: BlockRef, height: int, ending_period_start_at: int) -> Optional[Winning]: ...

    async def fund_index_at(self, block: BlockRef, para_id: int) -> Optional[int]: ...

    async def proxies_at(self, block: BlockRef, real: str) -> Sequence[tuple[str, str]]:
        """`(delegate, proxy_type)` pairs registered for *real*."""
        ...

    async def submit_bid(self, auction_index: int, para_id: int, leases: LeaseRange, amount: int) -> DispatchOutcome: ...

    async def submit_contribution(self, para_id: int, amount: int) -> DispatchOutcome: ...

    def blocks(self, mode: BlockSubscriptionMode) -> AsyncIterator[BlockRef]: ...

    async def is_connected(self) -> bool: ...

    async def close(self) -> None: ...


@runtime_checkable
class HistoricalBidLookup(Protocol):
    async def last_accepted_bid_of(self, who: str, para_id: int) -> Optional[AcceptedBid]: ...
