# ====================================================================== #
# slothunter/hunter/engine.py                                            #
# Per-block bid / contribute decision while an auction is open.          #
# ====================================================================== #
"""
BidDecisionEngine
─────────────────
For one block of an open auction:

  1. bidders   – none yet → tender the bare increment
  2. winning   – nothing sampled yet → wait
  3. resolve   – publish the winners; stop if we are one of them
  4. price     – minimum bid to displace the current allocation + increment
  5. tender    – watch-only report, ceiling check, or proxied submission

Chain reads and submissions go through the injected ChainClient; the
engine itself only threads BidState and collects notifications.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence, Tuple, Union

from slothunter.chain.interface import ChainClient
from slothunter.config import MAIL_RETRY_LIMIT
from slothunter.configuration import Bid
from slothunter.errors import ConfigurationError
from slothunter.hunter.ledger import minimum_bid_to_win, resolve
from slothunter.hunter.logging import HunterPhase, LogLevel, hunter_logger, log_auction, log_bidding
from slothunter.hunter.state import BidState, Notify, Tender
from slothunter.primitives import AuctionSnapshot, Bidder, BlockRef, Token, Winning, WinningSlot
from slothunter.utils.leases import check_leases, offsets_of, range_of
from slothunter.utils.pretty_logs import mask

Action = Union[Notify, Tender]


@dataclass(slots=True, frozen=True)
class HuntContext:
    """Everything the engine needs that is fixed between (re)initializations."""
    bid: Bid
    token: Token
    bidder: str
    ending_period: int

    def is_bidder(self, who: str, para_id: int) -> bool:
        return who == self.bidder and para_id == self.bid.para_id

    def is_winner(self, winners: Sequence[WinningSlot]) -> bool:
        return any(self.is_bidder(w.who, w.para_id) for w in winners)


class BidDecisionEngine:
    def __init__(self, chain: ChainClient, context: HuntContext):
        self.chain = chain
        self.ctx = context

    # ---------------------- helpers ----------------------

    def check_leases(self, auction: AuctionSnapshot) -> None:
        available = range_of(auction.first_lease_period)
        wanted = self.ctx.bid.leases
        if not check_leases(available, wanted):
            raise ConfigurationError(
                f"invalid leases configuration, available range(#{available[0]}, #{available[1]}) "
                f"but found range(#{wanted[0]}, #{wanted[1]})"
            )

    def end_of(self, auction: AuctionSnapshot) -> int:
        return auction.ending_period_start_at + self.ctx.ending_period

    # ---------------------- decision ----------------------

    async def decide(
        self, state: BidState, auction: AuctionSnapshot, block: BlockRef
    ) -> Tuple[BidState, List[Action]]:
        self.check_leases(auction)

        end_at = self.end_of(auction)
        if end_at <= block.height:
            return state, []

        log_auction(LogLevel.MEDIUM, auction.describe(block.height, end_at), "engine")

        bidders = await self.chain.bidders_at(block)
        if not bidders:
            log_auction(LogLevel.LOW, "no bidders were found", "engine")
            return await self.try_tender(state, auction.index, self.ctx.bid.increment)

        state = self.analyze_bidders(state, bidders)

        winning = await self.chain.winning_at(block, block.height, auction.ending_period_start_at)
        if winning is None or all(w is None for w in winning):
            log_auction(LogLevel.LOW, "no winning has been calculated yet", "engine")
            return state, []

        return await self.analyze_winners(state, auction, block, winning)

    def analyze_bidders(self, state: BidState, bidders: Sequence[Bidder]) -> BidState:
        token = self.ctx.token
        for b in bidders:
            log_auction(LogLevel.LOW, b.describe(token), "bidders")
            if b.last_accepted_bid is None:
                continue
            log_auction(LogLevel.LOW, f"last accepted bid is {b.last_accepted_bid.describe(token)}", "bidders")
            if self.ctx.is_bidder(b.who, b.para_id):
                state = state.with_self_bid(b.last_accepted_bid.amount)
        return state

    async def analyze_winners(
        self, state: BidState, auction: AuctionSnapshot, block: BlockRef, winning: Winning
    ) -> Tuple[BidState, List[Action]]:
        token = self.ctx.token
        winners, threshold = resolve(winning)
        winner = self.ctx.is_winner(winners)

        hunter_logger.winning_summary(
            block.height,
            [
                [
                    mask(w.who),
                    w.para_id,
                    f"#{auction.first_lease_period + w.leases[0]}..#{auction.first_lease_period + w.leases[1]}",
                    token.fmt(w.value),
                ]
                for w in winners
            ],
            token.fmt(threshold),
            winner,
        )

        described = ",".join(w.describe(token, auction.first_lease_period) for w in winners)
        actions: List[Action] = [
            Notify(
                payload={
                    "block": {"height": block.height, "hash": block.hash},
                    "winning": [None if w is None else w.to_dict() for w in winning],
                    "winners": [w.to_dict() for w in winners],
                },
                text=f"at block(#{block.height}, {block.hash})\n{described}",
                mail=False,
            )
        ]

        if winner:
            return state, actions

        target = offsets_of(self.ctx.bid.leases, auction.first_lease_period)
        bid = minimum_bid_to_win(winning, target, threshold) + self.ctx.bid.increment

        state, tender_actions = await self.try_tender(state, auction.index, bid)
        return state, actions + tender_actions

    # ---------------------- tender ----------------------

    async def try_tender(self, state: BidState, auction_index: int, bid: int) -> Tuple[BidState, List[Action]]:
        cfg = self.ctx.bid
        token = self.ctx.token
        contribution = not cfg.is_self_funded
        mode = "contribute" if contribution else "bid"
        amount = bid - state.self_bid_amount if contribution else bid

        if cfg.watch_only:
            text = f"slothunter is running under the watch-only mode, {mode} {token.fmt(amount)} manually to win"
            hunter_logger.warning(HunterPhase.BIDDING, text, "tender")
            return state, [Tender(amount, contribution, ok=None), Notify(None, text, mail=False)]

        if amount <= 0:
            # Our accepted bid already covers the price; nothing to top up.
            log_bidding(LogLevel.LOW, f"already reserved enough to {mode} {token.fmt(bid)}", "tender")
            return state.affordable(), []

        was_unaffordable = state.unaffordable

        if not cfg.can_spend(amount):
            gerund = "contributing" if contribution else "bidding"
            text = f"skip {gerund} {token.fmt(amount)} because it exceeds the upper limit {token.fmt(cfg.upper_limit)}"
            hunter_logger.warning(HunterPhase.BIDDING, text, "tender")
            state = state.priced_out()
            tender = Tender(amount, contribution, ok=None)
        else:
            if contribution:
                outcome = await self.chain.submit_contribution(cfg.para_id, amount)
            else:
                outcome = await self.chain.submit_bid(auction_index, cfg.para_id, cfg.leases, amount)

            if outcome.ok:
                text = f"{mode} with {token.fmt(amount)}"
                hunter_logger.success(HunterPhase.BIDDING, text, "tender")
                state = state.tendered()
            else:
                text = f"{mode} failed due to error({outcome.error})"
                hunter_logger.error(HunterPhase.BIDDING, text, "tender", {"retries": state.retries + 1})
                state = state.failed()
            tender = Tender(amount, contribution, ok=outcome.ok, error=outcome.error)

        mail = state.retries < MAIL_RETRY_LIMIT and not was_unaffordable
        return state, [tender, Notify(None, text, mail=mail)]
