# ------------------------------------------------------------------------
# tests/test_engine.py
# ------------------------------------------------------------------------
# BidDecisionEngine against a scripted chain.
#
# Scenarios
#   ① no bidders → bare increment is tendered
#   ② nothing sampled yet → wait
#   ③ already winning → summary only
#   ④ outbid → minimum bid + increment is tendered
#   ⑤ ceiling → unaffordable, alerted once by mail
#   ⑥ dispatch failures → retries, mail stops at the limit
#   ⑦ watch-only → amount reported, nothing submitted
#   ⑧ crowdloan → only the top-up over our accepted bid is contributed
#   ⑨ configuration / window guards
# ------------------------------------------------------------------------

import pytest

from slothunter.errors import ConfigurationError
from slothunter.hunter.engine import BidDecisionEngine, HuntContext
from slothunter.hunter.state import BidPhase, BidState, Notify, Tender
from slothunter.primitives import AcceptedBid, Bidder, DispatchOutcome
from slothunter.utils.helpers import crowdloan_id_of

from doubles import REAL, FakeChain, block, grid, open_auction, slot

DOT = 10**10
RIVAL = "0x" + "33" * 32
AUCTION = open_auction(index=7, first_lease_period=13, ending_period_start_at=500)(0)
RIVAL_BIDDER = Bidder(who=RIVAL, para_id=3000, reserved=10 * DOT)


def make_engine(configuration, chain, bidder=REAL):
    ctx = HuntContext(
        bid=configuration.bid,
        token=configuration.token,
        bidder=bidder,
        ending_period=1_000,
    )
    return BidDecisionEngine(chain, ctx)


def rival_chain(**kw):
    """A rival holds our target sub-range (offsets 0..1) at 5 DOT per period."""
    kw.setdefault("bidders", lambda h: [RIVAL_BIDDER])
    kw.setdefault("winning", lambda h: grid(slot(RIVAL, (0, 1), 5 * DOT, para_id=3000)))
    return FakeChain(**kw)


def notifies(actions):
    return [a for a in actions if isinstance(a, Notify)]


def tenders(actions):
    return [a for a in actions if isinstance(a, Tender)]


# ====================================================================== #
# ①
# ====================================================================== #
@pytest.mark.asyncio
async def test_no_bidders_tenders_the_increment(make_configuration):
    chain = FakeChain()
    engine = make_engine(make_configuration(), chain)

    state, actions = await engine.decide(BidState(), AUCTION, block(600))

    assert chain.bids == [(7, 2000, (13, 14), DOT)]
    assert state.phase is BidPhase.TENDERED and state.retries == 0
    [n] = notifies(actions)
    assert n.text == "bid with DOT(1)" and n.mail


# ====================================================================== #
# ②
# ====================================================================== #
@pytest.mark.asyncio
@pytest.mark.parametrize("winning", [None, grid()])
async def test_nothing_sampled_waits(make_configuration, winning):
    chain = FakeChain(bidders=lambda h: [RIVAL_BIDDER], winning=lambda h: winning)
    engine = make_engine(make_configuration(), chain)

    state, actions = await engine.decide(BidState(), AUCTION, block(600))

    assert actions == [] and chain.bids == []
    assert state == BidState()


# ====================================================================== #
# ③
# ====================================================================== #
@pytest.mark.asyncio
async def test_already_winning_only_publishes_the_summary(make_configuration):
    chain = FakeChain(
        bidders=lambda h: [Bidder(who=REAL, para_id=2000, reserved=10 * DOT)],
        winning=lambda h: grid(slot(REAL, (0, 1), 5 * DOT, para_id=2000)),
    )
    engine = make_engine(make_configuration(), chain)

    state, actions = await engine.decide(BidState(), AUCTION, block(600))

    assert chain.bids == []
    [summary] = actions
    assert not summary.mail
    assert summary.payload["block"] == {"height": 600, "hash": block(600).hash}
    assert summary.payload["winners"][0]["who"] == REAL
    assert len(summary.payload["winning"]) == 36


# ====================================================================== #
# ④
# ====================================================================== #
@pytest.mark.asyncio
async def test_outbid_tenders_minimum_plus_increment(make_configuration):
    chain = rival_chain()
    engine = make_engine(make_configuration(), chain)

    state, actions = await engine.decide(BidState(), AUCTION, block(600))

    # threshold 10 DOT over two periods → 5 DOT/period, plus 1 DOT increment
    assert chain.bids == [(7, 2000, (13, 14), 6 * DOT)]
    assert state.has_pending_tender
    summary, outcome = notifies(actions)
    assert not summary.mail and "bidder(" in summary.text
    assert outcome.text == "bid with DOT(6)" and outcome.mail


# ====================================================================== #
# ⑤
# ====================================================================== #
@pytest.mark.asyncio
async def test_unaffordable_is_mailed_once(make_configuration):
    chain = rival_chain()
    engine = make_engine(make_configuration(**{"upper-limit": str(5 * DOT)}), chain)

    state, actions = await engine.decide(BidState(retries=3), AUCTION, block(600))

    assert chain.bids == []
    assert state.unaffordable and state.retries == 0
    [t] = tenders(actions)
    assert t.ok is None
    outcome = notifies(actions)[-1]
    assert outcome.text == "skip bidding DOT(6) because it exceeds the upper limit DOT(5)"
    assert outcome.mail

    state, actions = await engine.decide(state, AUCTION, block(601))
    assert state.unaffordable
    assert not notifies(actions)[-1].mail


@pytest.mark.asyncio
async def test_affordable_again_clears_the_flag(make_configuration):
    chain = rival_chain()
    engine = make_engine(make_configuration(), chain)

    state, actions = await engine.decide(BidState().priced_out(), AUCTION, block(600))

    assert state.phase is BidPhase.TENDERED
    # the first tender after an unaffordable streak is reported to webhooks only
    assert not notifies(actions)[-1].mail


# ====================================================================== #
# ⑥
# ====================================================================== #
@pytest.mark.asyncio
async def test_dispatch_failures_count_retries_and_stop_mailing(make_configuration):
    chain = rival_chain(outcomes=[DispatchOutcome.failure("Auctions.AlreadyBid")] * 6)
    engine = make_engine(make_configuration(), chain)

    state = BidState()
    mails = []
    for h in range(600, 606):
        state, actions = await engine.decide(state, AUCTION, block(h))
        assert state.phase is BidPhase.IDLE
        outcome = notifies(actions)[-1]
        assert outcome.text == "bid failed due to error(Auctions.AlreadyBid)"
        mails.append(outcome.mail)

    assert state.retries == 6
    assert mails == [True, True, True, True, False, False]
    assert len(chain.bids) == 6

    state, _ = await engine.decide(state, AUCTION, block(606))
    assert state.retries == 0 and state.has_pending_tender


# ====================================================================== #
# ⑦
# ====================================================================== #
@pytest.mark.asyncio
async def test_watch_only_reports_without_submitting(make_configuration):
    chain = rival_chain()
    engine = make_engine(make_configuration(**{"watch-only": True}), chain)

    state, actions = await engine.decide(BidState(retries=2), AUCTION, block(600))

    assert chain.bids == [] and chain.contributions == []
    assert state == BidState(retries=2)
    outcome = notifies(actions)[-1]
    assert outcome.text == "slothunter is running under the watch-only mode, bid DOT(6) manually to win"
    assert not outcome.mail


# ====================================================================== #
# ⑧
# ====================================================================== #
@pytest.mark.asyncio
async def test_crowdloan_contributes_the_top_up(make_configuration):
    fund = crowdloan_id_of(3)
    ours = Bidder(
        who=fund, para_id=2000, reserved=2 * DOT,
        last_accepted_bid=AcceptedBid(at=550, amount=2 * DOT, first_slot=13, last_slot=14),
    )
    chain = rival_chain(bidders=lambda h: [RIVAL_BIDDER, ours])
    engine = make_engine(make_configuration(type="crowdloan"), chain, bidder=fund)

    state, actions = await engine.decide(BidState(), AUCTION, block(600))

    assert state.self_bid_amount == 2 * DOT
    assert chain.contributions == [(2000, 4 * DOT)]
    assert chain.bids == []
    assert notifies(actions)[-1].text == "contribute with DOT(4)"


@pytest.mark.asyncio
async def test_crowdloan_already_covered_clears_unaffordable(make_configuration):
    fund = crowdloan_id_of(3)
    ours = Bidder(
        who=fund, para_id=2000, reserved=10 * DOT,
        last_accepted_bid=AcceptedBid(at=550, amount=10 * DOT, first_slot=13, last_slot=14),
    )
    chain = rival_chain(bidders=lambda h: [RIVAL_BIDDER, ours])
    engine = make_engine(make_configuration(type="crowdloan"), chain, bidder=fund)

    # the 6 DOT needed to win is below the 10 DOT already accepted
    state, actions = await engine.decide(BidState().priced_out(), AUCTION, block(600))

    assert not state.unaffordable
    assert state.phase is BidPhase.IDLE
    assert state.self_bid_amount == 10 * DOT
    assert chain.contributions == [] and chain.bids == []
    assert tenders(actions) == []


@pytest.mark.asyncio
async def test_crowdloan_watch_only_reports_the_top_up(make_configuration):
    fund = crowdloan_id_of(3)
    ours = Bidder(
        who=fund, para_id=2000, reserved=2 * DOT,
        last_accepted_bid=AcceptedBid(at=550, amount=2 * DOT, first_slot=13, last_slot=14),
    )
    chain = rival_chain(bidders=lambda h: [ours, RIVAL_BIDDER])
    engine = make_engine(make_configuration(type="crowdloan", **{"watch-only": True}), chain, bidder=fund)

    _, actions = await engine.decide(BidState(), AUCTION, block(600))

    assert notifies(actions)[-1].text.endswith("contribute DOT(4) manually to win")


# ====================================================================== #
# ⑨
# ====================================================================== #
@pytest.mark.asyncio
async def test_leases_outside_the_auction_window_are_fatal(make_configuration):
    engine = make_engine(make_configuration(leases=[10, 11]), FakeChain())

    with pytest.raises(ConfigurationError):
        await engine.decide(BidState(), AUCTION, block(600))


@pytest.mark.asyncio
async def test_after_the_ending_period_nothing_happens(make_configuration):
    def no_reads(h):
        raise AssertionError("bidders must not be read after the ending period")

    engine = make_engine(make_configuration(), FakeChain(bidders=no_reads))

    state, actions = await engine.decide(BidState(retries=1), AUCTION, block(1_500))

    assert actions == [] and state == BidState(retries=1)
