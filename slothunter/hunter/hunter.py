# ====================================================================== #
# slothunter/hunter/hunter.py                                            #
# Initialization, the per-block step and the block loop.                 #
# ====================================================================== #
from __future__ import annotations

from dataclasses import asdict, replace
from typing import Callable, List, Optional, Protocol, Sequence, Tuple

from slothunter.chain.interface import ChainClient
from slothunter.configuration import BidType, Configuration
from slothunter.errors import ConfigurationError
from slothunter.hunter.cursor import BlockCursor
from slothunter.hunter.engine import Action, BidDecisionEngine, HuntContext
from slothunter.hunter.logging import HunterPhase, LogLevel, hunter_logger, init_banner, log_auction, log_init
from slothunter.hunter.state import BidState, HunterState, Notify
from slothunter.hunter.tracker import AuctionEdge, AuctionTracker
from slothunter.primitives import AuctionSnapshot, BlockRef
from slothunter.utils.helpers import check_http_uri, check_smtp_uri, check_ws_uri, crowdloan_id_of, normalize_hex
from slothunter.utils.pretty_logs import mask

# Proxy types that may dispatch `Auctions.bid` / `Crowdloan.contribute` for the real account.
ALLOWED_PROXY_TYPES = ("Any", "All", "Auction")


class NotificationSink(Protocol):
    async def notify(self, payload, text: str, mail: bool = True) -> None: ...


class Hunter:
    """
    Drives one chain connection: `initialize` fetches constants and the
    bidder identity, then `run` feeds blocks through `step`.

    `step` never touches the block stream; it only reads the chain at the
    given block, may submit one tender, and returns the new state plus the
    notifications to deliver.
    """

    def __init__(self, configuration: Configuration, notifier: NotificationSink):
        self.configuration = configuration
        self.notifier = notifier
        self.chain: Optional[ChainClient] = None
        self.context: Optional[HuntContext] = None
        self.engine: Optional[BidDecisionEngine] = None

    @property
    def bid(self):
        return self.configuration.bid

    # ---------------------- initialization ----------------------

    async def initialize(self, chain: ChainClient) -> Tuple[HunterState, BlockCursor]:
        """
        Fresh constants, fresh tracker and bid state: nothing survives from a
        previous connection.
        """
        init_banner("Slothunter", "initializing", [("endpoint", self.configuration.node_endpoint)])

        ending_period = await chain.auction_ending_period()
        sample_length = await chain.auction_sample_length()

        cursor = BlockCursor(chain.blocks(self.configuration.block_subscription_mode))
        head = await cursor.next_block()

        await self.check(chain, head)

        bidder = await self.bidder_of(chain, head)
        self.chain = chain
        self.context = HuntContext(
            bid=self.bid,
            token=self.configuration.token,
            bidder=bidder,
            ending_period=ending_period,
        )
        self.engine = BidDecisionEngine(chain, self.context)

        auction = await chain.auction_at(head)
        log_init(LogLevel.MEDIUM, "initialized", "hunter", {
            "block": head.height,
            "bidder": mask(bidder),
            "ending_period": ending_period,
            "sample_length": sample_length,
            "auction": "none" if auction is None else auction.index,
        })
        return HunterState(tracker=AuctionTracker(auction=auction)), cursor

    async def bidder_of(self, chain: ChainClient, head: BlockRef) -> str:
        if self.bid.type is BidType.SELF_FUNDED:
            return normalize_hex(self.bid.real)
        fund_index = await chain.fund_index_at(head, self.bid.para_id)
        if fund_index is None:
            raise ConfigurationError(f"no existing crowdloan found for parachain({self.bid.para_id})")
        return crowdloan_id_of(fund_index)

    async def check(self, chain: ChainClient, head: BlockRef) -> None:
        cfg = self.configuration
        token = cfg.token

        if not check_ws_uri(cfg.node_endpoint):
            raise ConfigurationError(f"invalid node endpoint({cfg.node_endpoint})")
        if not check_http_uri(cfg.graphql_endpoint):
            raise ConfigurationError(f"invalid graphql endpoint({cfg.graphql_endpoint})")

        items: List[Tuple[str, object]] = [
            ("node endpoint", cfg.node_endpoint),
            ("graphql endpoint", cfg.graphql_endpoint),
            ("subscription", cfg.block_subscription_mode.value),
            ("parachain", self.bid.para_id),
            ("leases", f"#{self.bid.leases[0]}..#{self.bid.leases[1]}"),
            ("watch-only", self.bid.watch_only),
        ]

        if not self.bid.watch_only:
            delegate = normalize_hex(self.bid.delegate.public_key.hex())
            proxy_type = await self.proxy_type_of(chain, head, delegate)
            if self.bid.increment < token.unit:
                raise ConfigurationError(f"increment should be at least {token.symbol}(1)")
            items += [
                ("funding type", str(self.bid.type)),
                ("real account", mask(self.bid.real)),
                ("proxy delegate", mask(delegate)),
                ("proxy type", proxy_type),
                ("upper limit", token.fmt(self.bid.upper_limit)),
                ("increment", token.fmt(self.bid.increment)),
            ]

        notification = cfg.notification
        for uri in notification.webhooks:
            items.append(("webhook", uri))
        if notification.mail is not None:
            if not check_smtp_uri(notification.mail.sender.smtp):
                raise ConfigurationError(f"invalid smtp({notification.mail.sender.smtp})")
            items.append(("mail sender", notification.mail.sender.email))
            items.append(("smtp", notification.mail.sender.smtp))
            for to in notification.mail.receivers:
                items.append(("mail receiver", to))

        hunter_logger.configuration_summary(items)

    async def proxy_type_of(self, chain: ChainClient, head: BlockRef, delegate: str) -> str:
        error = (
            "no delegate(`ProxyType::Any`, `ProxyType::All` or `ProxyType::Auction`) found, "
            "please check your configurations"
        )
        proxies: Sequence[Tuple[str, str]] = await chain.proxies_at(head, self.bid.real)
        for who, proxy_type in proxies:
            if who == delegate and proxy_type in ALLOWED_PROXY_TYPES:
                return proxy_type
        raise ConfigurationError(error)

    # ---------------------- per block ----------------------

    async def step(self, state: HunterState, block: BlockRef) -> Tuple[HunterState, List[Action]]:
        if self.chain is None or self.engine is None:
            raise RuntimeError("hunter is not initialized")

        log_auction(LogLevel.DEBUG, f"block(#{block.height}, {block.hash})", "hunter")

        snapshot = await self.chain.auction_at(block)
        tracker, events = state.tracker.advance(snapshot)
        bid = state.bid
        actions: List[Action] = []

        for e in events:
            hunter_logger.phase_banner(HunterPhase.AUCTION, e.message, f"auction #{e.auction.index}")
            if e.edge is AuctionEdge.CLOSED:
                bid = BidState()
            actions.append(Notify(payload=_auction_payload(e.auction), text=e.message, mail=True))

        if tracker.auction is not None:
            bid, engine_actions = await self.engine.decide(bid, tracker.auction, block)
            actions.extend(engine_actions)

        return replace(state, tracker=tracker, bid=bid, processed=state.processed + 1), actions

    async def deliver(self, actions: Sequence[Action]) -> None:
        for a in actions:
            if isinstance(a, Notify):
                await self.notifier.notify(a.payload, a.text, mail=a.mail)

    async def run(self, chain: ChainClient, progress: Callable[[], None] = lambda: None) -> None:
        """Block loop for one connection; returns only by raising."""
        state, cursor = await self.initialize(chain)

        while True:
            if state.bid.has_pending_tender:
                await cursor.skip()
                state = state.with_bid(state.bid.settled())

            block = await cursor.next_block()
            state, actions = await self.step(state, block)
            await self.deliver(actions)
            progress()


def _auction_payload(auction: AuctionSnapshot) -> dict:
    return asdict(auction)
