"""
conftest.py - Shared pytest fixtures for share ledger tests

Provides common fixtures used across unit, conformance and functional tests:
- Quiet ledgers and exchanges wired to an in-memory AccountBook
- A ready-made asset owned by ISSUER
- A funded market with two buyers and a stocked payout pool
"""

import pytest
from decimal import Decimal

from shareledger import AccountBook, Exchange, ShareLedger

from tests.fake_sinks import ctx


ISSUER = "issuer"
PRICE = Decimal("2")
SUPPLY = 1000


@pytest.fixture
def book():
    """In-memory payment sink."""
    return AccountBook()


@pytest.fixture
def ledger():
    """Quiet, empty ledger."""
    return ShareLedger("test", verbose=False)


@pytest.fixture
def exchange(ledger, book):
    """Exchange over the quiet ledger and the account book."""
    return Exchange(ledger, book)


@pytest.fixture
def asset_id(exchange):
    """1000-share asset priced at 2, issued by ISSUER."""
    return exchange.create_asset(
        "Harbour Loft", "Lisbon", "ipfs://loft", SUPPLY, PRICE, ctx(ISSUER)
    )


@pytest.fixture
def funded(exchange, asset_id):
    """Asset with alice=100, bob=50 and a payout pool of 1000."""
    exchange.buy_shares(asset_id, 100, ctx("alice", 200))
    exchange.buy_shares(asset_id, 50, ctx("bob", 100))
    exchange.fund_contract(ctx("treasury", 1000))
    return asset_id
