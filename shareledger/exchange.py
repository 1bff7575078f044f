"""
exchange.py - Public operation surface.

Exchange binds one ShareLedger to one PaymentSink and exposes every
operation as a method. Mutating methods take the invocation Context
explicitly; reads never need one.

Example:
    book = AccountBook()
    ex = Exchange(ShareLedger("main", verbose=False), book)
    asset_id = ex.create_asset("Loft", "Lisbon", "ipfs://loft", 1000, Decimal("2"),
                               Context("issuer"))
    ex.buy_shares(asset_id, 10, Context("alice", Decimal("20")))
    assert book.balance("issuer") == Decimal("20")
"""

from __future__ import annotations
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from .core import Asset, Context, Identity, LedgerEvent, Listing, PaymentSink
from .ledger import ShareLedger
from .payments import AccountBook
from . import marketplace, ranking, registry, trading


class Exchange:
    """Fractional share market over a single shared ledger."""

    def __init__(self, ledger: Optional[ShareLedger] = None, payments: Optional[PaymentSink] = None):
        """
        Args:
            ledger: The shared store (a fresh verbose ledger if omitted)
            payments: Outbound payment channel (an AccountBook if omitted)
        """
        self.ledger = ledger if ledger is not None else ShareLedger()
        self.payments = payments if payments is not None else AccountBook()

    # ========================================================================
    # ASSETS
    # ========================================================================

    def create_asset(self, name: str, location: str, metadata_ref: str,
                     total_shares: int, price_per_share: Decimal, ctx: Context) -> int:
        return registry.create_asset(
            self.ledger, name, location, metadata_ref, total_shares, price_per_share, ctx
        )

    def set_asset_active(self, asset_id: int, active: bool, ctx: Context) -> None:
        registry.set_asset_active(self.ledger, asset_id, active, ctx)

    # ========================================================================
    # TRADING
    # ========================================================================

    def buy_shares(self, asset_id: int, shares: int, ctx: Context) -> None:
        trading.buy_shares(self.ledger, self.payments, asset_id, shares, ctx)

    def transfer_shares(self, asset_id: int, to: Identity, shares: int, ctx: Context) -> None:
        trading.transfer_shares(self.ledger, asset_id, to, shares, ctx)

    def list_shares_for_sale(self, asset_id: int, shares: int,
                             price_per_share: Decimal, ctx: Context) -> Listing:
        return marketplace.list_shares_for_sale(self.ledger, asset_id, shares, price_per_share, ctx)

    def cancel_listing(self, asset_id: int, ctx: Context) -> None:
        marketplace.cancel_listing(self.ledger, asset_id, ctx)

    def buy_listed_shares(self, asset_id: int, seller: Identity, shares: int, ctx: Context) -> None:
        trading.buy_listed_shares(self.ledger, self.payments, asset_id, seller, shares, ctx)

    def sell_shares_buyback(self, asset_id: int, shares: int, ctx: Context) -> None:
        trading.sell_shares_buyback(self.ledger, self.payments, asset_id, shares, ctx)

    def fund_contract(self, ctx: Context) -> Decimal:
        return trading.fund_contract(self.ledger, ctx)

    # ========================================================================
    # READS
    # ========================================================================

    def get_owners(self, asset_id: int) -> List[Identity]:
        return ranking.get_owners(self.ledger, asset_id)

    def get_top10_beneficiaries(self, asset_id: int) -> Tuple[List[Identity], List[int]]:
        return ranking.get_top10_beneficiaries(self.ledger, asset_id)

    def available_issuer_shares(self, asset_id: int) -> int:
        return registry.available_issuer_shares(self.ledger, asset_id)

    def get_asset_summary(self, asset_id: int) -> Dict[str, Any]:
        return registry.get_asset_summary(self.ledger, asset_id)

    def contract_balance(self) -> Decimal:
        return self.ledger.payout_pool

    def get_balance(self, asset_id: int, holder: Identity) -> int:
        return self.ledger.get_balance(asset_id, holder)

    def get_listing(self, asset_id: int, seller: Identity) -> Listing:
        return marketplace.get_listing(self.ledger, asset_id, seller)

    def list_assets(self) -> List[Asset]:
        return self.ledger.list_assets()

    def events(self, asset_id: Optional[int] = None, event_type: Optional[str] = None) -> List[LedgerEvent]:
        return self.ledger.events(asset_id, event_type)
