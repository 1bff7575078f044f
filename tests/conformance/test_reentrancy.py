"""
Reentrancy Conformance Tests

INVARIANT: Payment-bearing operations cannot nest.

    ∀ guarded operation O, ∀ guarded operation P invoked from O's payment:
        P fails with ReentrancyError before touching state
        O commits normally if its payment still succeeds

Unguarded operations invoked from a payment join O's transaction.
"""

import pytest
from decimal import Decimal

from shareledger import (
    EVENT_SHARES_PURCHASED, EVENT_SHARES_TRANSFERRED,
    PaymentError, ReentrancyError,
)

from tests.fake_sinks import CallbackSink, ctx, new_exchange, capture_state


def _market(swallow=True):
    sink = CallbackSink(swallow=swallow)
    ex = new_exchange(sink)
    aid = ex.create_asset("Loft", "Lisbon", "m", 100, Decimal("2"), ctx("issuer"))
    ex.buy_shares(aid, 40, ctx("alice", 80))
    ex.list_shares_for_sale(aid, 40, Decimal("3"), ctx("alice"))
    ex.fund_contract(ctx("issuer", 1000))
    return ex, sink, aid


REENTRANT_CALLS = {
    "buy_shares": lambda ex, aid: ex.buy_shares(aid, 1, ctx("mallory", 2)),
    "buy_listed_shares": lambda ex, aid: ex.buy_listed_shares(aid, "alice", 1, ctx("mallory", 3)),
    "sell_shares_buyback": lambda ex, aid: ex.sell_shares_buyback(aid, 1, ctx("alice")),
}

OUTER_CALLS = {
    "buy_shares": lambda ex, aid: ex.buy_shares(aid, 10, ctx("bob", 20)),
    "buy_listed_shares": lambda ex, aid: ex.buy_listed_shares(aid, "alice", 10, ctx("bob", 30)),
    "sell_shares_buyback": lambda ex, aid: ex.sell_shares_buyback(aid, 10, ctx("alice")),
}


class TestReentrancy:

    @pytest.mark.parametrize("outer", sorted(OUTER_CALLS))
    @pytest.mark.parametrize("inner", sorted(REENTRANT_CALLS))
    def test_nested_guarded_call_rejected_outer_commits(self, outer, inner):
        ex, sink, aid = _market()
        sink.callback = lambda recipient, amount: REENTRANT_CALLS[inner](ex, aid)
        sink.errors.clear()
        before_mallory = ex.get_balance(aid, "mallory")

        OUTER_CALLS[outer](ex, aid)

        assert len(sink.errors) == 1
        assert isinstance(sink.errors[0], ReentrancyError)
        assert ex.get_balance(aid, "mallory") == before_mallory
        assert not ex.ledger.guard.locked
        assert ex.ledger.verify_conservation()["valid"]

    def test_outer_effects_visible_after_release(self):
        ex, sink, aid = _market()
        sink.callback = lambda recipient, amount: ex.buy_shares(aid, 1, ctx("mallory", 2))
        ex.buy_shares(aid, 10, ctx("bob", 20))
        assert ex.get_balance(aid, "bob") == 10
        assert sink.balance("issuer") == Decimal("100")
        sink.callback = None
        ex.buy_shares(aid, 1, ctx("mallory", 2))
        assert ex.get_balance(aid, "mallory") == 1

    def test_reentrant_failure_propagating_aborts_outer(self):
        ex, sink, aid = _market(swallow=False)
        sink.callback = lambda recipient, amount: ex.buy_shares(aid, 1, ctx("mallory", 2))
        before = capture_state(ex.ledger)
        with pytest.raises(PaymentError) as info:
            ex.buy_shares(aid, 10, ctx("bob", 20))
        assert isinstance(info.value.__cause__, ReentrancyError)
        assert capture_state(ex.ledger) == before
        assert not ex.ledger.guard.locked

    def test_recipient_sees_effects_already_applied(self):
        ex, sink, aid = _market()
        seen = []
        sink.callback = lambda recipient, amount: seen.append(ex.get_balance(aid, "bob"))
        ex.buy_shares(aid, 10, ctx("bob", 20))
        assert seen == [10]

    def test_unguarded_call_joins_outer_transaction(self):
        ex, sink, aid = _market()
        sink.callback = lambda recipient, amount: ex.transfer_shares(aid, "carol", 5, ctx("issuer"))
        ex.buy_shares(aid, 10, ctx("bob", 20))
        assert ex.get_balance(aid, "carol") == 5
        types = [e.event_type for e in ex.events(aid)][-2:]
        assert types == [EVENT_SHARES_PURCHASED, EVENT_SHARES_TRANSFERRED]

    def test_unguarded_call_undone_when_outer_fails(self):
        ex, sink, aid = _market()
        sink.rejecting.add("issuer")
        sink.callback = lambda recipient, amount: ex.transfer_shares(aid, "carol", 5, ctx("issuer"))
        before = capture_state(ex.ledger)
        with pytest.raises(PaymentError):
            ex.buy_shares(aid, 10, ctx("bob", 20))
        assert capture_state(ex.ledger) == before
        assert ex.get_balance(aid, "carol") == 0
