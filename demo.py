#!/usr/bin/env python3
"""
demo.py - Interactive Tutorial: Learn the Share Ledger Step by Step

A pedagogical walk through fractional ownership of a tokenized asset.
Each step builds on the previous one. Press Enter to advance.

WHAT YOU'LL LEARN:
  1-3:   Foundation   - The empty ledger, issuing an asset, primary sale
  4-6:   Marketplace  - Listings, partial fills, transfers
  7-9:   Safety       - Rejections, atomic payments, reentrancy
  10-12: Lifecycle    - Buyback pool, deactivation, ranking and audit

Run:
    python demo.py           # Interactive mode (press Enter for each step)
    python demo.py --quick   # Run all steps without pausing
"""

from dataclasses import dataclass
from decimal import Decimal
import sys

from shareledger import (
    Exchange, ShareLedger, AccountBook, Context,
    ShareLedgerError,
)


# ============================================================================
# CONFIGURATION
# ============================================================================

@dataclass
class DemoConfig:
    """Configuration for the tutorial. Modify these to experiment."""
    asset_name: str = "Harbour Loft"
    asset_location: str = "Lisbon"
    metadata_ref: str = "ipfs://harbour-loft"
    total_shares: int = 1000
    price_per_share: Decimal = Decimal("2.00")

    alice_primary: int = 300
    bob_primary: int = 100
    alice_listing: int = 100
    alice_ask: Decimal = Decimal("2.50")

    pool_funding: Decimal = Decimal("500.00")


CONFIG = DemoConfig()

QUICK_MODE = "--quick" in sys.argv


def wait_for_enter():
    """Pause for user input unless in quick mode."""
    if not QUICK_MODE:
        input("\n[Press Enter to continue...]")


def step_header(number: int, title: str, objective: str):
    """Print a step header with learning objective."""
    print(f"\n{'='*70}")
    print(f"STEP {number}: {title}")
    print(f"{'='*70}")
    print(f"\nObjective: {objective}\n")


def section_header(text: str):
    """Print a section header within a step."""
    print(f"\n--- {text} ---\n")


def show_holders(ex: Exchange, asset_id: int):
    for holder in ex.get_owners(asset_id):
        print(f"  {holder:<10} {ex.get_balance(asset_id, holder):>6} shares")


# ============================================================================
# PHASE 1: FOUNDATION (Steps 1-3)
# ============================================================================

def step_01_empty_ledger():
    """Create an empty exchange."""
    step_header(1, "The Empty Ledger",
        "A share ledger starts with no assets and an empty payout pool.")

    print("""
    The share ledger tracks three things:

    1. ASSETS   - tokenized real-world property, split into integer shares
    2. BALANCES - how many shares each holder owns, per asset
    3. POOL     - money the issuer sets aside to buy shares back

    Payments leave the ledger through an AccountBook. Every mutation prints
    APPLIED or REJECTED because the ledger runs with verbose=True.
    """)

    print(">>> ex = Exchange(ShareLedger('tutorial'), AccountBook())")
    ex = Exchange(ShareLedger("tutorial", verbose=True), AccountBook())

    section_header("Initial State")
    print(f"Assets:      {ex.list_assets()}")
    print(f"Payout pool: {ex.contract_balance()}")
    print(f"Events:      {len(ex.events())}")
    return ex


def step_02_create_asset(ex: Exchange):
    """Issue an asset."""
    step_header(2, "Issuing an Asset",
        "The caller of create_asset becomes the issuer and holds every share.")

    print(f'>>> ex.create_asset("{CONFIG.asset_name}", "{CONFIG.asset_location}", ..., '
          f'{CONFIG.total_shares}, Decimal("{CONFIG.price_per_share}"), Context("issuer"))')
    asset_id = ex.create_asset(
        CONFIG.asset_name, CONFIG.asset_location, CONFIG.metadata_ref,
        CONFIG.total_shares, CONFIG.price_per_share, Context("issuer"),
    )

    section_header("Asset")
    print(ex.ledger.get_asset(asset_id))
    show_holders(ex, asset_id)
    return ex, asset_id


def step_03_primary_sale(ex: Exchange, asset_id: int):
    """Buy from the issuer at the fixed price."""
    step_header(3, "Primary Sale",
        "Buyers pay exactly shares x price; the issuer is paid immediately.")

    cost = CONFIG.alice_primary * CONFIG.price_per_share
    print(f'>>> ex.buy_shares(asset_id, {CONFIG.alice_primary}, Context("alice", Decimal("{cost}")))')
    ex.buy_shares(asset_id, CONFIG.alice_primary, Context("alice", cost))

    cost = CONFIG.bob_primary * CONFIG.price_per_share
    print(f'>>> ex.buy_shares(asset_id, {CONFIG.bob_primary}, Context("bob", Decimal("{cost}")))')
    ex.buy_shares(asset_id, CONFIG.bob_primary, Context("bob", cost))

    section_header("Holders")
    show_holders(ex, asset_id)
    print(f"\nIssuer received: {ex.payments.balance('issuer')}")
    return ex


# ============================================================================
# PHASE 2: MARKETPLACE (Steps 4-6)
# ============================================================================

def step_04_listing(ex: Exchange, asset_id: int):
    """Offer shares for resale."""
    step_header(4, "Listing Shares",
        "A listing is an offer; the shares stay with the seller until bought.")

    print(f'>>> ex.list_shares_for_sale(asset_id, {CONFIG.alice_listing}, '
          f'Decimal("{CONFIG.alice_ask}"), Context("alice"))')
    listing = ex.list_shares_for_sale(asset_id, CONFIG.alice_listing, CONFIG.alice_ask, Context("alice"))
    print(f"\nListing: {listing}")
    print(f"Alice still holds: {ex.get_balance(asset_id, 'alice')}")
    return ex


def step_05_partial_fills(ex: Exchange, asset_id: int):
    """Fill a listing in two pieces."""
    step_header(5, "Partial Fills",
        "Each purchase reduces the listing; it closes when it reaches zero.")

    first = CONFIG.alice_listing * 3 // 5
    second = CONFIG.alice_listing - first
    for buyer, shares in (("carol", first), ("dave", second)):
        cost = shares * CONFIG.alice_ask
        print(f'>>> ex.buy_listed_shares(asset_id, "alice", {shares}, Context("{buyer}", Decimal("{cost}")))')
        ex.buy_listed_shares(asset_id, "alice", shares, Context(buyer, cost))
        print(f"    listing now: {ex.get_listing(asset_id, 'alice')}")

    section_header("Closed Listing")
    try:
        ex.buy_listed_shares(asset_id, "alice", 1, Context("erin", CONFIG.alice_ask))
    except ShareLedgerError as e:
        print(f"Buying from a closed listing fails: {type(e).__name__}: {e}")
    return ex


def step_06_transfer(ex: Exchange, asset_id: int):
    """Gift shares without payment."""
    step_header(6, "Transfers",
        "transfer_shares moves shares between holders with no money involved.")

    print('>>> ex.transfer_shares(asset_id, "erin", 25, Context("bob"))')
    ex.transfer_shares(asset_id, "erin", 25, Context("bob"))
    show_holders(ex, asset_id)
    return ex


# ============================================================================
# PHASE 3: SAFETY (Steps 7-9)
# ============================================================================

def step_07_rejections(ex: Exchange, asset_id: int):
    """Watch invalid operations bounce."""
    step_header(7, "Rejected Operations",
        "Invalid operations raise and leave no trace on the ledger.")

    attempts = [
        ("Underpayment", lambda: ex.buy_shares(asset_id, 10, Context("frank", Decimal("1")))),
        ("Overdraft", lambda: ex.transfer_shares(asset_id, "frank", 10_000, Context("bob"))),
        ("Non-issuer deactivation", lambda: ex.set_asset_active(asset_id, False, Context("bob"))),
        ("Zero shares", lambda: ex.buy_shares(asset_id, 0, Context("frank"))),
    ]
    events_before = len(ex.events())
    for label, attempt in attempts:
        try:
            attempt()
        except ShareLedgerError as e:
            print(f"  {label:<25} -> {type(e).__name__}")
    print(f"\nEvents appended by rejections: {len(ex.events()) - events_before}")
    return ex


def step_08_atomic_payments(ex: Exchange, asset_id: int):
    """A refused payment undoes the whole operation."""
    step_header(8, "Atomic Payments",
        "If the recipient refuses the money, the share movement is undone too.")

    ex.payments.rejecting.add("issuer")
    before = ex.get_balance(asset_id, "issuer")
    try:
        ex.buy_shares(asset_id, 10, Context("frank", 10 * CONFIG.price_per_share))
    except ShareLedgerError as e:
        print(f"Payment refused: {type(e).__name__}: {e}")
    ex.payments.rejecting.discard("issuer")
    print(f"Issuer shares before/after: {before} / {ex.get_balance(asset_id, 'issuer')}")
    print(f"Frank shares:               {ex.get_balance(asset_id, 'frank')}")
    return ex


def step_09_reentrancy(ex: Exchange, asset_id: int):
    """Show the guard flag."""
    step_header(9, "Reentrancy Guard",
        "Payment-bearing operations cannot be re-entered while one is in flight.")

    print(f"Guard locked outside an operation: {ex.ledger.guard.locked}")
    print("""
    buy_shares, buy_listed_shares and sell_shares_buyback take the guard
    before touching state. A recipient that calls back into any of them
    during its payment gets ReentrancyError; the outer operation is
    unaffected unless the recipient propagates that error.
    """)
    return ex


# ============================================================================
# PHASE 4: LIFECYCLE (Steps 10-12)
# ============================================================================

def step_10_buyback(ex: Exchange, asset_id: int):
    """Fund the pool and sell back."""
    step_header(10, "Buyback Pool",
        "Holders sell to the issuer at the fixed price, paid from the pool.")

    print(f'>>> ex.fund_contract(Context("issuer", Decimal("{CONFIG.pool_funding}")))')
    ex.fund_contract(Context("issuer", CONFIG.pool_funding))
    print('>>> ex.sell_shares_buyback(asset_id, 50, Context("bob"))')
    ex.sell_shares_buyback(asset_id, 50, Context("bob"))
    print(f"\nPool balance: {ex.contract_balance()}")
    print(f"Bob received: {ex.payments.balance('bob')}")
    return ex


def step_11_deactivation(ex: Exchange, asset_id: int):
    """Freeze markets, keep custody."""
    step_header(11, "Deactivation",
        "An inactive asset blocks trading but still allows transfers.")

    ex.set_asset_active(asset_id, False, Context("issuer"))
    try:
        ex.buy_shares(asset_id, 1, Context("gina", CONFIG.price_per_share))
    except ShareLedgerError as e:
        print(f"Primary sale while inactive: {type(e).__name__}")
    ex.transfer_shares(asset_id, "gina", 5, Context("carol"))
    print(f"Transfer while inactive: gina holds {ex.get_balance(asset_id, 'gina')}")
    ex.set_asset_active(asset_id, True, Context("issuer"))
    return ex


def step_12_ranking_and_audit(ex: Exchange, asset_id: int):
    """Top holders and the conservation check."""
    step_header(12, "Ranking and Audit",
        "Rank the largest holders and prove no share was created or lost.")

    ids, bals = ex.get_top10_beneficiaries(asset_id)
    section_header("Top Beneficiaries")
    for rank, (holder, balance) in enumerate(zip(ids, bals), 1):
        print(f"  {rank:>2}. {holder:<10} {balance:>6}")

    section_header("Summary")
    for key, value in ex.get_asset_summary(asset_id).items():
        print(f"  {key:<24} {value}")

    section_header("Conservation")
    result = ex.ledger.verify_conservation()
    print(f"Valid: {result['valid']}  Supplies: {result['supplies']}")

    section_header("Payments")
    print(f"Paid out through the account book: {ex.payments.total_paid()}")

    section_header("Event Log")
    for event in ex.events(asset_id):
        print(f"  #{event.sequence:<3} {event.event_type:<24} {event.params_dict}")
    return ex


def main():
    """Run the complete tutorial."""
    print("=" * 70)
    print("       SHARE LEDGER - INTERACTIVE TUTORIAL")
    print("=" * 70)

    if QUICK_MODE:
        print("Running in QUICK mode (no pauses)")
    else:
        print("Running in INTERACTIVE mode (press Enter to advance)")
    wait_for_enter()

    ex = step_01_empty_ledger()
    wait_for_enter()

    ex, asset_id = step_02_create_asset(ex)
    wait_for_enter()

    steps = [
        step_03_primary_sale, step_04_listing, step_05_partial_fills,
        step_06_transfer, step_07_rejections, step_08_atomic_payments,
        step_09_reentrancy, step_10_buyback, step_11_deactivation,
        step_12_ranking_and_audit,
    ]
    for step in steps:
        ex = step(ex, asset_id)
        wait_for_enter()

    print("""
    WHAT YOU LEARNED

      - Shares are integers and are conserved per asset
      - Every operation is all-or-nothing, payment included
      - Listings are offers, filled partially until exhausted
      - Deactivation freezes markets, never custody

    Run tests: pytest tests/
    """)


if __name__ == "__main__":
    main()
