"""
trading.py - Money-moving share operations.

Every payment-bearing operation follows the same order:
    1. Validate (activity, quantities, exact payment, balances)
    2. Apply ledger effects (moves, listing decrement, pool debit)
    3. Send the outbound payment through the PaymentSink

Effects are applied before the payment so a recipient that calls back into
the exchange only ever sees a consistent ledger. Steps 1-3 run inside
ledger.guard (reentrant calls fail with ReentrancyError) and ledger.atomic()
(a failed payment undoes step 2).

=== OPERATIONS ===

    buy_shares          buyer pays issuer, issuer -> buyer at the asset price
    transfer_shares     holder -> recipient, no payment, works on inactive assets
    buy_listed_shares   buyer pays seller, seller -> buyer at the listing price
    sell_shares_buyback holder -> issuer, payout from the funded pool
    fund_contract       anyone tops up the payout pool
"""

from __future__ import annotations
from dataclasses import replace
from decimal import Decimal

from .core import (
    Context, Identity, PaymentSink,
    InsufficientBalanceError, PaymentError, FundsError, ValidationError,
    EVENT_SHARES_PURCHASED, EVENT_SHARES_TRANSFERRED,
    EVENT_LISTED_SHARES_PURCHASED, EVENT_SHARES_SOLD_BACK, EVENT_CONTRACT_FUNDED,
    ZERO, require_identity, require_shares,
)
from .ledger import ShareLedger
from .marketplace import get_active_listing
from .payments import send_payment
from .registry import require_active


def _require_exact_payment(ctx: Context, cost: Decimal) -> None:
    if ctx.value != cost:
        raise PaymentError(
            f"Exact payment required: cost is {cost}, attached {ctx.value}",
            required=cost, supplied=ctx.value,
        )


def _require_holding(ledger: ShareLedger, asset_id: int, holder: Identity, shares: int) -> None:
    held = ledger.get_balance(asset_id, holder)
    if held < shares:
        raise InsufficientBalanceError(
            f"{holder} holds {held} of asset {asset_id}, needs {shares}",
            required=shares, available=held,
        )


def buy_shares(
    ledger: ShareLedger,
    payments: PaymentSink,
    asset_id: int,
    shares: int,
    ctx: Context,
) -> None:
    """
    Primary sale: buy shares from the issuer at the asset's nominal price.

    Raises:
        ReentrancyError: If another guarded operation is in flight
        NotFoundError: If asset_id is unknown
        StateError: If the asset is inactive
        ValidationError: If shares is not a positive int
        PaymentError: If ctx.value != shares * price, or forwarding to the issuer fails
        InsufficientBalanceError: If the issuer has fewer than shares left
    """
    with ledger.guard, ledger.atomic(f"buy_shares #{asset_id} x{shares}"):
        asset = require_active(ledger, asset_id)
        require_shares(shares)
        cost = asset.cost_of(shares)
        _require_exact_payment(ctx, cost)
        _require_holding(ledger, asset_id, asset.issuer, shares)

        ledger.move(asset_id, asset.issuer, ctx.caller, shares)
        ledger.emit(
            EVENT_SHARES_PURCHASED, asset_id,
            buyer=ctx.caller, issuer=asset.issuer, shares=shares, cost=cost,
        )

        send_payment(payments, asset.issuer, ctx.value)


def transfer_shares(
    ledger: ShareLedger,
    asset_id: int,
    to: Identity,
    shares: int,
    ctx: Context,
) -> None:
    """
    Give shares to another identity. Allowed while the asset is inactive.

    Raises:
        NotFoundError: If asset_id is unknown
        ValidationError: If to is empty or shares is not positive
        InsufficientBalanceError: If the caller holds fewer than shares
    """
    with ledger.atomic(f"transfer_shares #{asset_id} x{shares}"):
        ledger.get_asset(asset_id)
        require_identity(to, "recipient")
        ledger.move(asset_id, ctx.caller, to, shares)
        ledger.emit(
            EVENT_SHARES_TRANSFERRED, asset_id,
            source=ctx.caller, dest=to, shares=shares,
        )


def buy_listed_shares(
    ledger: ShareLedger,
    payments: PaymentSink,
    asset_id: int,
    seller: Identity,
    shares: int,
    ctx: Context,
) -> None:
    """
    Secondary sale: fill (part of) a seller's listing at the listing price.

    The seller's live balance is re-checked here because the listing does
    not reserve shares.

    Raises:
        ReentrancyError: If another guarded operation is in flight
        NotFoundError: If the asset is unknown or the seller never listed
        StateError: If the asset or the listing is inactive
        ValidationError: If shares is not a positive int
        InsufficientBalanceError: If the listing or the seller's balance is short
        PaymentError: If ctx.value != shares * listing price, or paying the seller fails
    """
    with ledger.guard, ledger.atomic(f"buy_listed_shares #{asset_id} from {seller} x{shares}"):
        require_active(ledger, asset_id)
        require_shares(shares)
        listing = get_active_listing(ledger, asset_id, seller)
        if listing.shares < shares:
            raise InsufficientBalanceError(
                f"Listing by {seller} has {listing.shares} shares left, requested {shares}",
                required=shares, available=listing.shares,
            )
        _require_holding(ledger, asset_id, seller, shares)
        cost = listing.cost_of(shares)
        _require_exact_payment(ctx, cost)

        remaining = listing.shares - shares
        ledger.put_listing(replace(listing, shares=remaining, active=remaining > 0))
        ledger.move(asset_id, seller, ctx.caller, shares)
        ledger.emit(
            EVENT_LISTED_SHARES_PURCHASED, asset_id,
            buyer=ctx.caller, seller=seller, shares=shares, cost=cost, remaining=remaining,
        )

        send_payment(payments, seller, ctx.value)


def sell_shares_buyback(
    ledger: ShareLedger,
    payments: PaymentSink,
    asset_id: int,
    shares: int,
    ctx: Context,
) -> None:
    """
    Buyback: return shares to the issuer for shares * price from the payout pool.

    Raises:
        ReentrancyError: If another guarded operation is in flight
        NotFoundError: If asset_id is unknown
        StateError: If the asset is inactive
        ValidationError: If shares is not a positive int
        InsufficientBalanceError: If the caller holds fewer than shares
        FundsError: If the payout pool cannot cover the payout
        PaymentError: If paying the caller fails
    """
    with ledger.guard, ledger.atomic(f"sell_shares_buyback #{asset_id} x{shares}"):
        asset = require_active(ledger, asset_id)
        require_shares(shares)
        _require_holding(ledger, asset_id, ctx.caller, shares)
        payout = asset.cost_of(shares)
        if ledger.payout_pool < payout:
            raise FundsError(
                f"Payout pool holds {ledger.payout_pool}, buyback needs {payout}",
                required=payout, available=ledger.payout_pool,
            )

        ledger.move(asset_id, ctx.caller, asset.issuer, shares)
        ledger.debit_pool(payout)
        ledger.emit(
            EVENT_SHARES_SOLD_BACK, asset_id,
            seller=ctx.caller, issuer=asset.issuer, shares=shares, payout=payout,
        )

        send_payment(payments, ctx.caller, payout)


def fund_contract(ledger: ShareLedger, ctx: Context) -> Decimal:
    """
    Add ctx.value to the buyback payout pool.

    Returns:
        The pool balance after funding

    Raises:
        ValidationError: If ctx.value is zero
    """
    with ledger.atomic("fund_contract"):
        if ctx.value == ZERO:
            raise ValidationError("Funding requires a non-zero attached value")
        pool = ledger.credit_pool(ctx.value)
        ledger.emit(EVENT_CONTRACT_FUNDED, None, funder=ctx.caller, amount=ctx.value)
    return pool
