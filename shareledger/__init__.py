"""
shareledger - Fractional Share Ledger

A ledger of integer shares in tokenized real-world assets, with primary sale,
secondary listings, and an issuer buyback pool.

Usage:
    from decimal import Decimal
    from shareledger import Exchange, ShareLedger, AccountBook, Context

    book = AccountBook()
    ex = Exchange(ShareLedger("main"), book)

    # Issuer tokenizes an asset: 1000 shares at 2 per share
    asset_id = ex.create_asset("Harbour Loft", "Lisbon", "ipfs://loft",
                               1000, Decimal("2"), Context("issuer"))

    # Primary sale (exact payment), then resale through a listing
    ex.buy_shares(asset_id, 100, Context("alice", Decimal("200")))
    ex.list_shares_for_sale(asset_id, 50, Decimal("3"), Context("alice"))
    ex.buy_listed_shares(asset_id, "alice", 20, Context("bob", Decimal("60")))

    ex.get_top10_beneficiaries(asset_id)
    # (['issuer', 'alice', 'bob'], [900, 80, 20])
"""

# Core types
from .core import (
    Asset,
    Listing,
    Move,
    Context,
    LedgerEvent,
    ShareLedgerView,
    PaymentSink,
    Identity,
    Balances,
    ShareLedgerError,
    ValidationError,
    NotFoundError,
    AuthorizationError,
    StateError,
    InsufficientBalanceError,
    PaymentError,
    FundsError,
    ReentrancyError,
    TOP_BENEFICIARIES,
    EVENT_ASSET_CREATED,
    EVENT_ASSET_STATUS_CHANGED,
    EVENT_SHARES_PURCHASED,
    EVENT_SHARES_TRANSFERRED,
    EVENT_SHARES_LISTED,
    EVENT_LISTING_CANCELLED,
    EVENT_LISTED_SHARES_PURCHASED,
    EVENT_SHARES_SOLD_BACK,
    EVENT_CONTRACT_FUNDED,
)

# Store
from .ledger import ShareLedger
from .holders import HolderIndex
from .guard import ReentrancyGuard

# Payments
from .payments import AccountBook, send_payment

# Operations
from .registry import (
    create_asset, set_asset_active, require_active,
    available_issuer_shares, get_asset_summary,
)
from .marketplace import (
    list_shares_for_sale, cancel_listing, get_listing, get_active_listing,
)
from .trading import (
    buy_shares, transfer_shares, buy_listed_shares, sell_shares_buyback, fund_contract,
)
from .ranking import compute_top_holders, get_owners, get_top10_beneficiaries

# Facade
from .exchange import Exchange


__all__ = [
    # Core
    'Asset', 'Listing', 'Move', 'Context', 'LedgerEvent',
    'ShareLedgerView', 'PaymentSink', 'Identity', 'Balances',
    'TOP_BENEFICIARIES',
    # Events
    'EVENT_ASSET_CREATED', 'EVENT_ASSET_STATUS_CHANGED', 'EVENT_SHARES_PURCHASED',
    'EVENT_SHARES_TRANSFERRED', 'EVENT_SHARES_LISTED', 'EVENT_LISTING_CANCELLED',
    'EVENT_LISTED_SHARES_PURCHASED', 'EVENT_SHARES_SOLD_BACK', 'EVENT_CONTRACT_FUNDED',
    # Exceptions
    'ShareLedgerError', 'ValidationError', 'NotFoundError', 'AuthorizationError',
    'StateError', 'InsufficientBalanceError', 'PaymentError', 'FundsError',
    'ReentrancyError',
    # Store
    'ShareLedger', 'HolderIndex', 'ReentrancyGuard',
    # Payments
    'AccountBook', 'send_payment',
    # Registry
    'create_asset', 'set_asset_active', 'require_active',
    'available_issuer_shares', 'get_asset_summary',
    # Marketplace
    'list_shares_for_sale', 'cancel_listing', 'get_listing', 'get_active_listing',
    # Trading
    'buy_shares', 'transfer_shares', 'buy_listed_shares', 'sell_shares_buyback',
    'fund_contract',
    # Ranking
    'compute_top_holders', 'get_owners', 'get_top10_beneficiaries',
    # Facade
    'Exchange',
]

__version__ = '1.0.0'
