# slothunter/chain/graphql.py
"""
Last accepted bid of a bidder, from a Subsquid explorer GraphQL endpoint.

Only used to annotate the bidders log, so every failure degrades to `None`.
"""
from __future__ import annotations

import json
from typing import Any, Dict, Optional

import requests

from slothunter.config import HTTP_TIMEOUT_SECONDS
from slothunter.hunter.logging import HunterPhase, hunter_logger
from slothunter.primitives import AcceptedBid
from slothunter.utils.async_substrate import maybe_async
from slothunter.utils.helpers import safe_int

BID_ACCEPTED = "Auctions.BidAccepted"


def events_query(name: str, limit: int = 1, args_json_contains: Optional[Dict[str, Any]] = None) -> str:
    """GraphQL document selecting the newest *limit* events called *name*."""
    where = f"name_eq:{json.dumps(name)}"
    if args_json_contains is not None:
        contains = json.dumps(args_json_contains, separators=(",", ":"))
        where += f",args_jsonContains:{json.dumps(contains)}"
    return f"{{events(limit:{limit},orderBy:block_id_DESC,where:{{{where}}}){{args,block{{height}}}}}}"


def accepted_bid_from(response: Dict[str, Any]) -> Optional[AcceptedBid]:
    events = ((response or {}).get("data") or {}).get("events") or []
    if not events:
        return None
    e = events[0]
    args = e.get("args") or {}
    at = safe_int((e.get("block") or {}).get("height"))
    amount = safe_int(args.get("amount"))
    first_slot = safe_int(args.get("firstSlot"))
    last_slot = safe_int(args.get("lastSlot"))
    if None in (at, amount, first_slot, last_slot):
        raise ValueError(f"malformed {BID_ACCEPTED} event: {e}")
    return AcceptedBid(at=at, amount=amount, first_slot=first_slot, last_slot=last_slot)


class GraphQLBidLookup:
    def __init__(self, endpoint: str, timeout: float = HTTP_TIMEOUT_SECONDS, session: Optional[requests.Session] = None):
        self.endpoint = endpoint
        self.timeout = timeout
        self.session = session or requests.Session()

    def _post(self, query: str) -> Dict[str, Any]:
        r = self.session.post(self.endpoint, json={"query": query}, timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    async def last_accepted_bid_of(self, who: str, para_id: int) -> Optional[AcceptedBid]:
        query = events_query(BID_ACCEPTED, args_json_contains={"bidder": who, "paraId": para_id})
        try:
            response = await maybe_async(self._post, query)
            return accepted_bid_from(response)
        except (requests.RequestException, ValueError) as e:
            hunter_logger.warning(HunterPhase.AUCTION, "last accepted bid lookup failed", "graphql", {
                "bidder": who, "para_id": para_id, "error": str(e),
            })
            return None
