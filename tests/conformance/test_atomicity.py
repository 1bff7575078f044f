"""
Atomicity Conformance Tests

INVARIANT: Operations are all-or-nothing.

    ∀ operation O:
        O succeeds ⟹ all of O's effects and events are applied
        O fails    ⟹ ledger, listings, holder index, pool and event log
                      are identical to the pre-operation state

Failure of the outbound payment leg counts as failure of the operation.
"""

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st
from decimal import Decimal

from shareledger import AccountBook, PaymentError, EVENT_SHARES_TRANSFERRED

from tests.fake_sinks import ExitingSink, ctx, new_exchange, capture_state
from tests.op_driver import ACTORS, ops_strategy, apply_op


class TestAtomicityProperties:
    """Property-based atomicity tests."""

    @given(
        ops=ops_strategy,
        rejecting=st.sets(st.sampled_from(ACTORS)),
    )
    @settings(max_examples=100, deadline=None)
    def test_rejected_operations_leave_no_trace(self, ops, rejecting):
        """
        PROPERTY: A rejected operation, including one whose payment recipient
        refuses delivery, changes nothing observable.
        """
        ex = new_exchange(AccountBook(rejecting=tuple(rejecting)))
        aid = ex.create_asset("Loft", "Lisbon", "m", 500, Decimal("2"), ctx("issuer"))
        for op in ops:
            before = capture_state(ex.ledger)
            if not apply_op(ex, aid, op):
                assert capture_state(ex.ledger) == before
            assert not ex.ledger.in_transaction
            assert not ex.ledger.guard.locked

    @given(ops=ops_strategy)
    @settings(max_examples=50, deadline=None)
    def test_committed_operations_emit_events(self, ops):
        """
        PROPERTY: Every committed operation appends at least one event; every
        rejected one appends none.
        """
        ex = new_exchange()
        aid = ex.create_asset("Loft", "Lisbon", "m", 500, Decimal("2"), ctx("issuer"))
        for op in ops:
            count = len(ex.ledger.event_log)
            committed = apply_op(ex, aid, op)
            grew = len(ex.ledger.event_log) > count
            assert grew == committed


class TestAtomicityExamples:
    """Explicit atomicity examples."""

    def test_primary_sale_payment_failure(self):
        ex = new_exchange(AccountBook(rejecting=("issuer",)))
        aid = ex.create_asset("Loft", "Lisbon", "m", 100, Decimal("2"), ctx("issuer"))
        before = capture_state(ex.ledger)
        with pytest.raises(PaymentError):
            ex.buy_shares(aid, 10, ctx("alice", 20))
        assert capture_state(ex.ledger) == before
        assert ex.get_owners(aid) == ["issuer"]

    def test_secondary_sale_payment_failure(self):
        ex = new_exchange(AccountBook(rejecting=("alice",)))
        aid = ex.create_asset("Loft", "Lisbon", "m", 100, Decimal("2"), ctx("issuer"))
        ex.buy_shares(aid, 50, ctx("alice", 100))
        ex.list_shares_for_sale(aid, 50, Decimal("3"), ctx("alice"))
        before = capture_state(ex.ledger)
        with pytest.raises(PaymentError):
            ex.buy_listed_shares(aid, "alice", 50, ctx("bob", 150))
        assert capture_state(ex.ledger) == before
        assert ex.get_listing(aid, "alice").active

    def test_buyback_payment_failure(self):
        ex = new_exchange(AccountBook(rejecting=("alice",)))
        aid = ex.create_asset("Loft", "Lisbon", "m", 100, Decimal("2"), ctx("issuer"))
        ex.buy_shares(aid, 50, ctx("alice", 100))
        ex.fund_contract(ctx("issuer", 500))
        before = capture_state(ex.ledger)
        with pytest.raises(PaymentError):
            ex.sell_shares_buyback(aid, 50, ctx("alice"))
        assert capture_state(ex.ledger) == before
        assert ex.contract_balance() == Decimal("500")

    def test_exact_payment_failure_leaves_balances(self):
        ex = new_exchange()
        aid = ex.create_asset("Loft", "Lisbon", "m", 100, Decimal("2"), ctx("issuer"))
        before = capture_state(ex.ledger)
        for value in (19, 21):
            with pytest.raises(PaymentError):
                ex.buy_shares(aid, 10, ctx("alice", value))
        assert capture_state(ex.ledger) == before

    @pytest.mark.parametrize("exc", [SystemExit(3), KeyboardInterrupt()])
    def test_base_exception_from_sink_rolls_back(self, exc):
        ex = new_exchange(ExitingSink(exc))
        aid = ex.create_asset("Loft", "Lisbon", "m", 100, Decimal("2"), ctx("issuer"))
        before = capture_state(ex.ledger)
        with pytest.raises(type(exc)):
            ex.buy_shares(aid, 10, ctx("bob", 20))
        assert capture_state(ex.ledger) == before
        assert ex.get_balance(aid, "bob") == 0
        assert not ex.ledger.in_transaction
        assert not ex.ledger.guard.locked

        ex.transfer_shares(aid, "carol", 5, ctx("issuer"))
        assert [e.event_type for e in ex.events(aid)][-1] == EVENT_SHARES_TRANSFERRED
        assert ex.get_balance(aid, "carol") == 5
