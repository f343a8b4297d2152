# ====================================================================== #
# slothunter/chain/substrate.py                                          #
# Relay-chain access over async-substrate-interface.                     #
# ====================================================================== #
"""
SubstrateChainClient
────────────────────
Reads `Auctions`, `Slots`, `Crowdloan` and `Proxy` storage at a given block,
fetches the auction constants, and submits `Auctions.bid` /
`Crowdloan.contribute` wrapped in `Proxy.proxy` signed by the delegate.

Accounts leave this module as lowercase 0x-hex public keys whatever shape
the decoder produced (ss58 string, raw bytes, nested int tuples).
"""
from __future__ import annotations

import asyncio
from typing import Any, AsyncIterator, Iterable, List, Optional, Sequence, Tuple

from async_substrate_interface import AsyncSubstrateInterface
from async_substrate_interface.errors import SubstrateRequestException
from substrateinterface import Keypair
from substrateinterface.utils.ss58 import ss58_decode, ss58_encode
from websockets.exceptions import ConnectionClosed, InvalidHandshake
from websockets.protocol import State

from slothunter.chain.interface import HistoricalBidLookup
from slothunter.config import BLOCK_POLL_SECONDS, SLOT_RANGE_COUNT
from slothunter.configuration import BlockSubscriptionMode, Configuration
from slothunter.errors import StreamError
from slothunter.hunter.logging import LogLevel, log_connection
from slothunter.primitives import (
    AuctionSnapshot,
    Bidder,
    BlockRef,
    DispatchOutcome,
    Winning,
    winning_of,
)
from slothunter.utils.async_substrate import value_of
from slothunter.utils.helpers import normalize_hex, safe_int
from slothunter.utils.leases import LeaseRange, winning_offset_of

# Errors that mean "the transport is gone", as opposed to a logic error.
TRANSPORT_ERRORS = (
    ConnectionClosed,
    InvalidHandshake,
    OSError,
    asyncio.TimeoutError,
    SubstrateRequestException,
)

# Raised by async-substrate-interface when its socket dropped under a request
# or a subscription and it could not (or would not) reconnect by itself.
RECONNECT_MESSAGES = ("Unable to reconnect", "Max retries exceeded")


def is_connectivity_error(e: BaseException) -> bool:
    """True when *e* means the node went away, whatever the socket looks like now."""
    if isinstance(e, (ConnectionClosed, InvalidHandshake, OSError, asyncio.TimeoutError)):
        return True
    if isinstance(e, SubstrateRequestException):
        return any(m in str(e) for m in RECONNECT_MESSAGES)
    return False


def account_of(value: Any) -> str:
    """Lowercase 0x-hex public key from any decoded AccountId shape."""
    v = value_of(value)
    if isinstance(v, (bytes, bytearray)):
        if len(v) != 32:
            raise ValueError(f"account id must be 32 bytes, got {len(v)}")
        return "0x" + bytes(v).hex()
    if isinstance(v, str):
        if v.startswith("0x"):
            return normalize_hex(v)
        return "0x" + ss58_decode(v)
    if isinstance(v, (list, tuple)):
        if len(v) == 1:
            return account_of(v[0])
        if len(v) == 32 and all(isinstance(b, int) for b in v):
            return "0x" + bytes(v).hex()
    if isinstance(v, dict) and len(v) == 1:
        # MultiAddress::Id
        return account_of(next(iter(v.values())))
    raise ValueError(f"cannot read an account id from {value!r}")


def _int(value: Any, what: str) -> int:
    i = safe_int(value_of(value))
    if i is None:
        raise ValueError(f"{what} is not an integer: {value!r}")
    return i


def _seq(value: Any) -> Sequence[Any]:
    v = value_of(value)
    if isinstance(v, dict):
        return list(v.values())
    return list(v or [])


def _field(value: Any, name: str, index: int) -> Any:
    v = value_of(value)
    if isinstance(v, dict):
        return v[name]
    return v[index]


def _variant_name(value: Any) -> str:
    v = value_of(value)
    if isinstance(v, dict) and len(v) == 1:
        return str(next(iter(v)))
    return str(v)


def dispatch_outcome_of(events: Iterable[Any]) -> DispatchOutcome:
    """
    Inner result of a `Proxy.proxy` call: the outer extrinsic succeeds even
    when the proxied call fails, so the `ProxyExecuted` event decides.
    """
    for raw in events:
        record = value_of(raw)
        event = record.get("event", record) if isinstance(record, dict) else record
        if not isinstance(event, dict):
            continue
        if event.get("module_id") != "Proxy" or event.get("event_id") != "ProxyExecuted":
            continue
        attributes = event.get("attributes")
        if isinstance(attributes, dict):
            result = attributes.get("result", attributes)
        elif isinstance(attributes, (list, tuple)) and attributes:
            result = attributes[0]
        else:
            result = attributes
        result = value_of(result)
        if isinstance(result, dict) and "Err" in result:
            return DispatchOutcome.failure(str(result["Err"]))
        return DispatchOutcome.success()

    log_connection(LogLevel.HIGH, "no `Proxy.ProxyExecuted` event found", "substrate")
    return DispatchOutcome.failure("no Proxy.ProxyExecuted event found")


class SubstrateChainClient:
    def __init__(
        self,
        substrate: AsyncSubstrateInterface,
        configuration: Configuration,
        lookup: Optional[HistoricalBidLookup] = None,
    ):
        self.substrate = substrate
        self.configuration = configuration
        self.lookup = lookup
        self.ss58_format = configuration.network.ss58_format
        self._sample_length: Optional[int] = None

    @classmethod
    async def connect(
        cls, configuration: Configuration, lookup: Optional[HistoricalBidLookup] = None
    ) -> "SubstrateChainClient":
        url = configuration.node_endpoint
        log_connection(LogLevel.MEDIUM, "connecting", "substrate", {"url": url})
        substrate = AsyncSubstrateInterface(url, ss58_format=configuration.network.ss58_format)
        try:
            await substrate.initialize()
        except TRANSPORT_ERRORS as e:
            raise StreamError(f"cannot connect to {url}: {e}") from e
        return cls(substrate, configuration, lookup)

    def _ss58(self, account: str) -> str:
        return ss58_encode(normalize_hex(account), ss58_format=self.ss58_format)

    # ---------------------- constants ----------------------

    async def auction_ending_period(self) -> int:
        return _int(await self.substrate.get_constant("Auctions", "EndingPeriod"), "Auctions.EndingPeriod")

    async def auction_sample_length(self) -> int:
        self._sample_length = _int(
            await self.substrate.get_constant("Auctions", "SampleLength"), "Auctions.SampleLength"
        )
        return self._sample_length

    # ---------------------- storage ----------------------

    async def _query(self, module: str, storage: str, params: Optional[list] = None, block: Optional[BlockRef] = None):
        r = await self.substrate.query(module, storage, params or [], block_hash=block.hash if block else None)
        return value_of(r)

    async def auction_at(self, block: BlockRef) -> Optional[AuctionSnapshot]:
        info = await self._query("Auctions", "AuctionInfo", block=block)
        if info is None:
            return None
        counter = await self._query("Auctions", "AuctionCounter", block=block)
        if counter is None:
            raise ValueError("`Auctions.AuctionCounter` must exist while an auction is open")
        info = _seq(info)
        return AuctionSnapshot(
            index=_int(counter, "AuctionCounter"),
            first_lease_period=_int(info[0], "AuctionInfo.0"),
            ending_period_start_at=_int(info[1], "AuctionInfo.1"),
        )

    async def _existing_deposit(self, block: BlockRef, who: str, para_id: int) -> int:
        leases = await self._query("Slots", "Leases", [para_id], block=block)
        deposits = []
        for lease in _seq(leases):
            lease = value_of(lease)
            if not lease:
                continue
            owner, amount = _seq(lease)[:2]
            if account_of(owner) == who:
                deposits.append(_int(amount, "Slots.Leases amount"))
        return max(deposits, default=0)

    async def bidders_at(self, block: BlockRef) -> List[Bidder]:
        result = await self.substrate.query_map("Auctions", "ReservedAmounts", block_hash=block.hash)
        bidders: List[Bidder] = []
        async for key, reserved in result:
            who_raw, para_raw = _seq(key)[:2]
            who = account_of(who_raw)
            para_id = _int(para_raw, "ReservedAmounts.para_id")
            last = None
            if self.lookup is not None:
                last = await self.lookup.last_accepted_bid_of(who, para_id)
            bidders.append(
                Bidder(
                    who=who,
                    para_id=para_id,
                    reserved=_int(reserved, "ReservedAmounts"),
                    existing_deposit=await self._existing_deposit(block, who, para_id),
                    last_accepted_bid=last,
                )
            )
        return bidders

    async def winning_at(self, block: BlockRef, height: int, ending_period_start_at: int) -> Optional[Winning]:
        sample_length = self._sample_length or await self.auction_sample_length()
        offset = winning_offset_of(height, ending_period_start_at, sample_length)
        raw = await self._query("Auctions", "Winning", [offset], block=block)
        if raw is None:
            return None
        entries = _seq(raw)
        if len(entries) != SLOT_RANGE_COUNT:
            raise ValueError(f"`Auctions.Winning` must hold {SLOT_RANGE_COUNT} entries, got {len(entries)}")
        parsed: List[Optional[Tuple[str, int, int]]] = []
        for e in entries:
            e = value_of(e)
            if not e:
                parsed.append(None)
                continue
            who, para_id, value = _seq(e)[:3]
            parsed.append((account_of(who), _int(para_id, "Winning.para_id"), _int(value, "Winning.value")))
        return winning_of(parsed)

    async def fund_index_at(self, block: BlockRef, para_id: int) -> Optional[int]:
        fund = await self._query("Crowdloan", "Funds", [para_id], block=block)
        if fund is None:
            return None
        return _int(_field(fund, "fund_index", -1), "Crowdloan.Funds.fund_index")

    async def proxies_at(self, block: BlockRef, real: str) -> List[Tuple[str, str]]:
        raw = await self._query("Proxy", "Proxies", [self._ss58(real)], block=block)
        if not raw:
            return []
        definitions = _seq(raw)[0]
        out: List[Tuple[str, str]] = []
        for d in _seq(definitions):
            out.append((account_of(_field(d, "delegate", 0)), _variant_name(_field(d, "proxy_type", 1))))
        return out

    # ---------------------- extrinsics ----------------------

    @property
    def delegate(self) -> Keypair:
        return self.configuration.bid.delegate

    async def _proxied(self, module: str, function: str, params: dict) -> DispatchOutcome:
        inner = await self.substrate.compose_call(call_module=module, call_function=function, call_params=params)
        call = await self.substrate.compose_call(
            call_module="Proxy",
            call_function="proxy",
            call_params={
                "real": self._ss58(self.configuration.bid.real),
                "force_proxy_type": None,
                "call": value_of(inner),
            },
        )
        extrinsic = await self.substrate.create_signed_extrinsic(call=call, keypair=self.delegate)
        receipt = await self.substrate.submit_extrinsic(
            extrinsic, wait_for_inclusion=True, wait_for_finalization=True
        )
        if not await receipt.is_success:
            return DispatchOutcome.failure(str(await receipt.error_message))
        return dispatch_outcome_of(await receipt.triggered_events)

    async def submit_bid(self, auction_index: int, para_id: int, leases: LeaseRange, amount: int) -> DispatchOutcome:
        return await self._proxied("Auctions", "bid", {
            "para": para_id,
            "auction_index": auction_index,
            "first_slot": leases[0],
            "last_slot": leases[1],
            "amount": amount,
        })

    async def submit_contribution(self, para_id: int, amount: int) -> DispatchOutcome:
        return await self._proxied("Crowdloan", "contribute", {
            "index": para_id,
            "value": amount,
            "signature": None,
        })

    # ---------------------- blocks & connection ----------------------

    async def _head(self, mode: BlockSubscriptionMode) -> BlockRef:
        if mode is BlockSubscriptionMode.FINALIZED:
            block_hash = await self.substrate.get_chain_finalised_head()
        else:
            block_hash = await self.substrate.get_chain_head()
        height = await self.substrate.get_block_number(block_hash)
        return BlockRef(height=int(height), hash=str(block_hash))

    async def blocks(self, mode: BlockSubscriptionMode) -> AsyncIterator[BlockRef]:
        """
        Every block from the current head on, strictly increasing by one.
        Heads that jump ahead are back-filled through `get_block_hash`.
        """
        last: Optional[int] = None
        while True:
            head = await self._head(mode)
            if last is None:
                last = head.height
                yield head
                continue
            if head.height <= last:
                await asyncio.sleep(BLOCK_POLL_SECONDS)
                continue
            for height in range(last + 1, head.height):
                yield BlockRef(height=height, hash=str(await self.substrate.get_block_hash(height)))
            last = head.height
            yield head

    async def is_connected(self) -> bool:
        """
        Looks at the existing socket only. Any request would go through the
        library's own reconnect path and report a fresh socket as alive.
        """
        ws = getattr(self.substrate, "ws", None)
        state = getattr(ws, "state", State.CLOSED)
        if state is not State.OPEN:
            log_connection(LogLevel.HIGH, "socket is not open", "substrate", {"state": getattr(state, "name", state)})
            return False
        task = getattr(ws, "_send_recv_task", None)
        if task is None or task.done():
            log_connection(LogLevel.HIGH, "socket handler has stopped", "substrate")
            return False
        return True

    async def close(self) -> None:
        await self.substrate.close()
