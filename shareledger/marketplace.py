"""
marketplace.py - Secondary market listings.

One listing per (asset, seller). A listing is a claim on the seller's
balance, not an escrow: it is checked against the live balance when created
and again when filled (see trading.buy_listed_shares), never in between.
"""

from __future__ import annotations
from dataclasses import replace
from decimal import Decimal

from .core import (
    Context, Identity, Listing, ShareLedgerView,
    InsufficientBalanceError, NotFoundError, StateError, ValidationError,
    EVENT_SHARES_LISTED, EVENT_LISTING_CANCELLED,
    ZERO, require_shares, to_money,
)
from .ledger import ShareLedger
from .registry import require_active


def list_shares_for_sale(
    ledger: ShareLedger,
    asset_id: int,
    shares: int,
    price_per_share: Decimal,
    ctx: Context,
) -> Listing:
    """
    Offer shares at a fixed price, replacing any previous listing by the caller.

    Raises:
        NotFoundError: If asset_id is unknown
        StateError: If the asset is inactive
        ValidationError: If shares or price are not strictly positive
        InsufficientBalanceError: If the caller holds fewer than shares now
    """
    with ledger.atomic(f"list_shares_for_sale #{asset_id}"):
        require_active(ledger, asset_id)
        require_shares(shares)
        price = to_money(price_per_share, "price_per_share")
        if price <= ZERO:
            raise ValidationError(f"price_per_share must be positive, got {price}")
        held = ledger.get_balance(asset_id, ctx.caller)
        if held < shares:
            raise InsufficientBalanceError(
                f"{ctx.caller} holds {held} of asset {asset_id}, cannot list {shares}",
                required=shares, available=held,
            )
        listing = Listing(asset_id, ctx.caller, shares, price, active=True)
        ledger.put_listing(listing)
        ledger.emit(
            EVENT_SHARES_LISTED, asset_id,
            seller=ctx.caller, shares=shares, price_per_share=price,
        )
    return listing


def cancel_listing(ledger: ShareLedger, asset_id: int, ctx: Context) -> None:
    """
    Withdraw the caller's listing.

    Raises:
        NotFoundError: If the asset or the caller's listing does not exist
        StateError: If the listing is already inactive
    """
    with ledger.atomic(f"cancel_listing #{asset_id}"):
        listing = get_active_listing(ledger, asset_id, ctx.caller)
        ledger.put_listing(replace(listing, active=False))
        ledger.emit(EVENT_LISTING_CANCELLED, asset_id, seller=ctx.caller)


def get_listing(view: ShareLedgerView, asset_id: int, seller: Identity) -> Listing:
    """
    Return the seller's listing, active or not.

    Raises:
        NotFoundError: If the asset is unknown or the seller never listed
    """
    view.get_asset(asset_id)
    listing = view.find_listing(asset_id, seller)
    if listing is None:
        raise NotFoundError(f"No listing by {seller} for asset {asset_id}")
    return listing


def get_active_listing(view: ShareLedgerView, asset_id: int, seller: Identity) -> Listing:
    listing = get_listing(view, asset_id, seller)
    if not listing.active:
        raise StateError(f"Listing by {seller} for asset {asset_id} is not active")
    return listing
