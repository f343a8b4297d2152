# ------------------------------------------------------------------------
# tests/test_tracker.py
# ------------------------------------------------------------------------
# Auction lifecycle edges and bid-state transitions.
# ------------------------------------------------------------------------

from slothunter.hunter.state import BidPhase, BidState
from slothunter.hunter.tracker import AuctionEdge, AuctionTracker
from slothunter.primitives import AuctionSnapshot

A7 = AuctionSnapshot(index=7, first_lease_period=13, ending_period_start_at=500)
A8 = AuctionSnapshot(index=8, first_lease_period=14, ending_period_start_at=900)


def edges(events):
    return [(e.edge, e.auction.index) for e in events]


def test_closed_to_closed_is_a_noop():
    tracker, events = AuctionTracker().advance(None)
    assert not tracker.is_open
    assert events == []


def test_open_then_close_carries_the_previous_snapshot():
    tracker, events = AuctionTracker().advance(A7)
    assert tracker.is_open and tracker.auction == A7
    assert edges(events) == [(AuctionEdge.OPENED, 7)]
    assert events[0].message == "auction has just been started"

    tracker, events = tracker.advance(A7)
    assert events == []

    tracker, events = tracker.advance(None)
    assert not tracker.is_open
    assert edges(events) == [(AuctionEdge.CLOSED, 7)]
    assert events[0].message == "auction has just been closed"
    assert AuctionTracker.closed_in(events)


def test_index_change_closes_then_opens():
    tracker, _ = AuctionTracker().advance(A7)
    tracker, events = tracker.advance(A8)
    assert edges(events) == [(AuctionEdge.CLOSED, 7), (AuctionEdge.OPENED, 8)]
    assert tracker.auction == A8


def test_bid_state_phases():
    s = BidState()
    assert s.phase is BidPhase.IDLE and not s.has_pending_tender and not s.unaffordable

    s = s.failed().failed()
    assert s.retries == 2 and s.phase is BidPhase.IDLE

    s = s.priced_out()
    assert s.unaffordable and s.retries == 0

    s = s.tendered()
    assert s.has_pending_tender and not s.unaffordable and s.retries == 0

    s = s.settled()
    assert s.phase is BidPhase.IDLE

    assert BidState().with_self_bid(42).self_bid_amount == 42
    assert BidState(phase=BidPhase.UNAFFORDABLE).settled().unaffordable
    assert BidState(phase=BidPhase.UNAFFORDABLE, retries=0).affordable() == BidState()
    assert BidState().tendered().affordable().has_pending_tender
