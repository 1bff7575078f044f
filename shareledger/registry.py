"""
registry.py - Asset creation and status.

create_asset() is the only operation that brings shares into existence; it
seeds the issuer with the whole supply exactly once. set_asset_active() lets
the issuer freeze and unfreeze trading. Custody (plain transfer) is never
frozen.
"""

from __future__ import annotations
from decimal import Decimal
from typing import Any, Dict

from .core import (
    Asset, Context, ShareLedgerView,
    AuthorizationError, StateError, ValidationError,
    EVENT_ASSET_CREATED, EVENT_ASSET_STATUS_CHANGED,
    ZERO, require_shares, to_money,
)
from .ledger import ShareLedger


def create_asset(
    ledger: ShareLedger,
    name: str,
    location: str,
    metadata_ref: str,
    total_shares: int,
    price_per_share: Decimal,
    ctx: Context,
) -> int:
    """
    Tokenize an asset and seed its issuer with the full supply.

    Args:
        ledger: The share ledger
        name: Asset name (non-empty)
        location: Asset location (non-empty)
        metadata_ref: Opaque metadata reference
        total_shares: Fixed supply (positive int)
        price_per_share: Nominal price for primary sale and buyback (positive)
        ctx: Invocation context; ctx.caller becomes the issuer

    Returns:
        The new asset id

    Raises:
        ValidationError: On empty name/location or non-positive supply/price
    """
    with ledger.atomic(f"create_asset {name!r}"):
        if not isinstance(name, str) or not name.strip():
            raise ValidationError("Asset name cannot be empty")
        if not isinstance(location, str) or not location.strip():
            raise ValidationError("Asset location cannot be empty")
        require_shares(total_shares)
        price = to_money(price_per_share, "price_per_share")
        if price <= ZERO:
            raise ValidationError(f"price_per_share must be positive, got {price}")

        asset = ledger.add_asset(
            name, location, metadata_ref or "", total_shares, price, ctx.caller
        )
        ledger.emit(
            EVENT_ASSET_CREATED, asset.asset_id,
            issuer=ctx.caller, name=name, total_shares=total_shares, price_per_share=price,
        )
    return asset.asset_id


def set_asset_active(ledger: ShareLedger, asset_id: int, active: bool, ctx: Context) -> None:
    """
    Enable or disable trading of an asset. Issuer only.

    Raises:
        NotFoundError: If asset_id is unknown
        AuthorizationError: If the caller is not the issuer
    """
    with ledger.atomic(f"set_asset_active #{asset_id}"):
        asset = ledger.get_asset(asset_id)
        if ctx.caller != asset.issuer:
            raise AuthorizationError(
                f"{ctx.caller} is not the issuer of asset {asset_id}"
            )
        ledger.set_active(asset_id, active)
        ledger.emit(EVENT_ASSET_STATUS_CHANGED, asset_id, active=bool(active))


def require_active(view: ShareLedgerView, asset_id: int) -> Asset:
    """
    Return the asset if it is open for trading.

    Raises:
        NotFoundError: If asset_id is unknown
        StateError: If the asset is inactive
    """
    asset = view.get_asset(asset_id)
    if not asset.active:
        raise StateError(f"Asset {asset_id} is inactive")
    return asset


def available_issuer_shares(view: ShareLedgerView, asset_id: int) -> int:
    """Shares the issuer still holds, i.e. what the primary market can sell."""
    asset = view.get_asset(asset_id)
    return view.get_balance(asset_id, asset.issuer)


def get_asset_summary(view: ShareLedgerView, asset_id: int) -> Dict[str, Any]:
    """Describe an asset together with its live issuer balance and owner count."""
    asset = view.get_asset(asset_id)
    return {
        'asset_id': asset.asset_id,
        'name': asset.name,
        'location': asset.location,
        'metadata_ref': asset.metadata_ref,
        'total_shares': asset.total_shares,
        'price_per_share': asset.price_per_share,
        'issuer': asset.issuer,
        'active': asset.active,
        'available_issuer_shares': view.get_balance(asset_id, asset.issuer),
        'owner_count': len(view.get_balances(asset_id)),
    }
