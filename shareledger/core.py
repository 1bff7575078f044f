"""
Core types and pure functions for the fractional share ledger.

This module provides the foundational data structures and protocols:
1. Protocols: ShareLedgerView for read-only access, PaymentSink for outbound money
2. Immutable data structures: Asset, Listing, Move, Context, LedgerEvent
3. Exceptions: ShareLedgerError and the typed failure taxonomy
4. Type aliases: Balances, Identity
5. Validation helpers: share and money coercion

Nothing in this module mutates ledger state.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_EVEN, getcontext, InvalidOperation
from typing import Any, Dict, List, Optional, Protocol, Tuple, runtime_checkable


# ============================================================================
# DECIMAL CONTEXT CONFIGURATION
# ============================================================================
#
# Money amounts (prices, attached value, payouts) are Decimal and must compare
# exactly. Shares are plain ints and never touch this context.
#
# PRECONDITION: No other code should modify the global Decimal context.
#
_LEDGER_DECIMAL_CONTEXT = getcontext()
_LEDGER_DECIMAL_CONTEXT.prec = 50
_LEDGER_DECIMAL_CONTEXT.rounding = ROUND_HALF_EVEN


# ============================================================================
# CONSTANTS
# ============================================================================

# Size of the beneficiary ranking buffer.
TOP_BENEFICIARIES = 10

ZERO = Decimal("0")

# Event type constants (strings, not enum, matching the rest of the ledger).
EVENT_ASSET_CREATED = "ASSET_CREATED"
EVENT_ASSET_STATUS_CHANGED = "ASSET_STATUS_CHANGED"
EVENT_SHARES_PURCHASED = "SHARES_PURCHASED"
EVENT_SHARES_TRANSFERRED = "SHARES_TRANSFERRED"
EVENT_SHARES_LISTED = "SHARES_LISTED"
EVENT_LISTING_CANCELLED = "LISTING_CANCELLED"
EVENT_LISTED_SHARES_PURCHASED = "LISTED_SHARES_PURCHASED"
EVENT_SHARES_SOLD_BACK = "SHARES_SOLD_BACK"
EVENT_CONTRACT_FUNDED = "CONTRACT_FUNDED"


# ============================================================================
# TYPE ALIASES
# ============================================================================

# Opaque holder identity (an address, account name, ...).
Identity = str

# Mapping from holder identity to share count for a single asset.
Balances = Dict[Identity, int]


# ============================================================================
# EXCEPTIONS
# ============================================================================

class ShareLedgerError(Exception):
    """Base exception for all share ledger errors."""
    pass


class ValidationError(ShareLedgerError):
    """Raised for malformed, zero, or empty input."""
    pass


class NotFoundError(ShareLedgerError):
    """Raised when an asset or listing does not exist."""
    pass


class AuthorizationError(ShareLedgerError):
    """Raised when the caller lacks the required role (e.g. is not the issuer)."""
    pass


class StateError(ShareLedgerError):
    """Raised when the asset is inactive or a listing is no longer active."""
    pass


class InsufficientBalanceError(ShareLedgerError):
    """Raised when a holder's balance or a listing's remaining shares fall short."""

    def __init__(self, message: str, required: int = 0, available: int = 0):
        super().__init__(message)
        self.required = required
        self.available = available


class PaymentError(ShareLedgerError):
    """
    Raised when attached value differs from the exact cost, or when an
    outbound payment could not be delivered.
    """

    def __init__(self, message: str, required: Optional[Decimal] = None,
                 supplied: Optional[Decimal] = None):
        super().__init__(message)
        self.required = required
        self.supplied = supplied


class FundsError(ShareLedgerError):
    """Raised when the payout pool cannot cover a buyback."""

    def __init__(self, message: str, required: Decimal = ZERO, available: Decimal = ZERO):
        super().__init__(message)
        self.required = required
        self.available = available


class ReentrancyError(ShareLedgerError):
    """Raised when a guarded operation is invoked while another is in flight."""
    pass


# ============================================================================
# VALIDATION HELPERS
# ============================================================================

def to_money(value: Any, what: str = "amount") -> Decimal:
    """
    Convert a money value to Decimal.

    Accepts Decimal, int and numeric strings. Floats go through str() so that
    0.1 becomes Decimal("0.1") rather than its binary expansion.

    Raises:
        ValidationError: If the value is not numeric, not finite, or negative.
    """
    if isinstance(value, bool):
        raise ValidationError(f"{what} must be numeric, got bool")
    if not isinstance(value, Decimal):
        try:
            value = Decimal(str(value))
        except InvalidOperation:
            raise ValidationError(f"{what} must be numeric, got {value!r}") from None
    if not value.is_finite():
        raise ValidationError(f"{what} must be finite, got {value}")
    if value < ZERO:
        raise ValidationError(f"{what} cannot be negative, got {value}")
    return value


def require_shares(shares: Any) -> int:
    """Return shares if it is a strictly positive int, else raise ValidationError."""
    if isinstance(shares, bool) or not isinstance(shares, int):
        raise ValidationError(f"shares must be an integer, got {shares!r}")
    if shares <= 0:
        raise ValidationError(f"shares must be positive, got {shares}")
    return shares


def require_identity(identity: Any, what: str = "identity") -> Identity:
    """Return identity if it is a non-blank string, else raise ValidationError."""
    if not isinstance(identity, str) or not identity.strip():
        raise ValidationError(f"{what} cannot be empty")
    return identity


# ============================================================================
# CORE DATA STRUCTURES
# ============================================================================

@dataclass(frozen=True, slots=True)
class Context:
    """
    Invocation context supplied by the caller's environment.

    Attributes:
        caller: Identity invoking the operation.
        value: Money attached to the invocation (zero for non-payment calls).
    """
    caller: Identity
    value: Decimal = ZERO

    def __post_init__(self):
        require_identity(self.caller, "caller")
        object.__setattr__(self, 'value', to_money(self.value, "attached value"))


@dataclass(frozen=True, slots=True)
class Asset:
    """
    A tokenized real-world asset.

    Attributes:
        asset_id: Sequential identifier, starting at 1.
        name: Human-readable name.
        location: Where the underlying asset is.
        metadata_ref: Opaque reference to off-ledger metadata (URI, hash, ...).
        total_shares: Fixed supply, seeded to the issuer at creation.
        price_per_share: Primary sale and buyback reference price.
        issuer: Identity that created the asset.
        active: Gates trading operations; plain transfers ignore it.

    Only ``active`` ever changes, and only through dataclasses.replace.
    """
    asset_id: int
    name: str
    location: str
    metadata_ref: str
    total_shares: int
    price_per_share: Decimal
    issuer: Identity
    active: bool = True

    def __post_init__(self):
        if not self.name or not self.name.strip():
            raise ValidationError("Asset name cannot be empty")
        if not self.location or not self.location.strip():
            raise ValidationError("Asset location cannot be empty")
        require_shares(self.total_shares)
        price = to_money(self.price_per_share, "price_per_share")
        if price <= ZERO:
            raise ValidationError(f"price_per_share must be positive, got {price}")
        object.__setattr__(self, 'price_per_share', price)
        require_identity(self.issuer, "issuer")

    def cost_of(self, shares: int) -> Decimal:
        """Nominal value of a share quantity."""
        return self.price_per_share * shares

    def __repr__(self) -> str:
        status = "active" if self.active else "inactive"
        return f"Asset(#{self.asset_id} {self.name}: {self.total_shares} @ {self.price_per_share}, {status})"


@dataclass(frozen=True, slots=True)
class Listing:
    """
    A seller's standing offer. A claim on the seller's balance, not an escrow.
    """
    asset_id: int
    seller: Identity
    shares: int
    price_per_share: Decimal
    active: bool = True

    def cost_of(self, shares: int) -> Decimal:
        return self.price_per_share * shares


@dataclass(frozen=True, slots=True)
class Move:
    """
    A transfer of shares of one asset between two holders.

    Supply-neutral by construction: the only way to create shares is asset
    creation, which seeds the issuer directly. source == dest is allowed and
    leaves the balance unchanged.
    """
    asset_id: int
    source: Identity
    dest: Identity
    shares: int

    def __post_init__(self):
        require_identity(self.source, "Move source")
        require_identity(self.dest, "Move dest")
        require_shares(self.shares)

    def __repr__(self) -> str:
        return f"Move({self.shares} x #{self.asset_id}: {self.source}→{self.dest})"


@dataclass(frozen=True, slots=True)
class LedgerEvent:
    """
    Committed, append-only record of an operation.

    Attributes:
        sequence: Monotonic position in the ledger's event log.
        event_type: One of the EVENT_* constants.
        asset_id: Asset concerned (None for pool funding).
        params: Frozen tuple of (key, value) pairs.
    """
    sequence: int
    event_type: str
    asset_id: Optional[int]
    params: Tuple[Tuple[str, Any], ...] = field(default_factory=tuple)

    @property
    def params_dict(self) -> Dict[str, Any]:
        """Get params as a dictionary for convenience."""
        return dict(self.params)

    def __repr__(self) -> str:
        params = ", ".join(f"{k}={v}" for k, v in self.params)
        return f"LedgerEvent[{self.sequence}]({self.event_type}, asset={self.asset_id}, {params})"


# ============================================================================
# PROTOCOLS
# ============================================================================

@runtime_checkable
class ShareLedgerView(Protocol):
    """
    Read-only interface to ledger state.

    Functions accepting a ShareLedgerView declare their read-only intent. The
    ShareLedger implements this protocol but also provides mutation methods.
    """

    def get_asset(self, asset_id: int) -> Asset:
        """Return the asset, raising NotFoundError if unknown."""
        ...

    def get_balance(self, asset_id: int, holder: Identity) -> int:
        """Return the holder's share count (0 when never held)."""
        ...

    def get_balances(self, asset_id: int) -> Balances:
        """Return all non-zero balances for an asset."""
        ...

    def holder_history(self, asset_id: int) -> List[Identity]:
        """Return every identity that ever held the asset, in first-acquisition order."""
        ...

    def find_listing(self, asset_id: int, seller: Identity) -> Optional['Listing']:
        """Return the seller's listing for the asset, or None."""
        ...


@runtime_checkable
class PaymentSink(Protocol):
    """
    Outbound money channel to externally controlled recipients.

    ``pay`` returns True when delivery succeeded. Returning False or raising
    means delivery failed. Implementations may call back into the exchange
    while ``pay`` is running.
    """

    def pay(self, recipient: Identity, amount: Decimal) -> bool:
        ...
