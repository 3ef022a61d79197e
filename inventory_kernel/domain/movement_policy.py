"""
Movement Type Policy -- the closed sign convention of the stock ledger.

Responsibility:
    Declares every movement type the ledger accepts and the sign rule that
    governs its quantity.  Callers pass a magnitude and the policy decides
    whether it increases or decreases stock.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.  Imported by the
    Movement model (for the enum), the LedgerWriter (sign check) and every
    caller that builds MovementParams.

Invariants enforced:
    - Exhaustive rule table: importing this module fails if any
      MovementType lacks a MovementTypeRule.
    - DAMAGE, LOST, STORE_USE, PROMOTION and ORDER_PLACED always decrease
      stock, whatever sign the caller supplied.
    - RETURN, PURCHASE, INITIAL_INTAKE, RESTOCK_RECEIVED, INITIAL_MIGRATION
      and ORDER_CANCELLED always increase stock.
    - MANUAL_ADJUSTMENT passes the caller's sign through verbatim.
    - System types (ORDER_PLACED, ORDER_CANCELLED, RESTOCK_RECEIVED,
      INITIAL_MIGRATION) are never accepted from user-facing adjustments.

Failure modes:
    - UnknownMovementTypeError: value outside the enumeration.
    - ZeroQuantityError: magnitude of zero.
    - DisallowedMovementTypeError: type not permitted on the calling path.
    - MovementSignError: already-normalized quantity with the wrong sign.
"""

from dataclasses import dataclass
from enum import Enum

from inventory_kernel.exceptions import (
    DisallowedMovementTypeError,
    MovementSignError,
    UnknownMovementTypeError,
    ZeroQuantityError,
)


class MovementType(str, Enum):
    """Every kind of stock change the ledger records."""

    ORDER_PLACED = "ORDER_PLACED"
    ORDER_CANCELLED = "ORDER_CANCELLED"
    MANUAL_ADJUSTMENT = "MANUAL_ADJUSTMENT"
    INITIAL_MIGRATION = "INITIAL_MIGRATION"
    RETURN = "RETURN"
    DAMAGE = "DAMAGE"
    LOST = "LOST"
    PROMOTION = "PROMOTION"
    PURCHASE = "PURCHASE"
    INITIAL_INTAKE = "INITIAL_INTAKE"
    RESTOCK_RECEIVED = "RESTOCK_RECEIVED"
    STORE_USE = "STORE_USE"


class SignRule(str, Enum):
    """How the applied quantity's sign is derived from the caller's input."""

    FORCED_POSITIVE = "forced_positive"
    FORCED_NEGATIVE = "forced_negative"
    CALLER_CONTROLLED = "caller_controlled"


@dataclass(frozen=True)
class MovementTypeRule:
    """Policy entry for one movement type."""

    sign: SignRule
    label: str
    user_adjustable: bool = False
    batch_intake: bool = False


MOVEMENT_TYPE_RULES: dict[MovementType, MovementTypeRule] = {
    MovementType.ORDER_PLACED: MovementTypeRule(
        SignRule.FORCED_NEGATIVE, "Customer order"
    ),
    MovementType.ORDER_CANCELLED: MovementTypeRule(
        SignRule.FORCED_POSITIVE, "Order cancelled"
    ),
    MovementType.MANUAL_ADJUSTMENT: MovementTypeRule(
        SignRule.CALLER_CONTROLLED, "Manual adjustment",
        user_adjustable=True, batch_intake=True,
    ),
    MovementType.INITIAL_MIGRATION: MovementTypeRule(
        SignRule.FORCED_POSITIVE, "Initial migration"
    ),
    MovementType.RETURN: MovementTypeRule(
        SignRule.FORCED_POSITIVE, "Return", user_adjustable=True,
    ),
    MovementType.DAMAGE: MovementTypeRule(
        SignRule.FORCED_NEGATIVE, "Damage", user_adjustable=True,
    ),
    MovementType.LOST: MovementTypeRule(
        SignRule.FORCED_NEGATIVE, "Lost", user_adjustable=True,
    ),
    MovementType.PROMOTION: MovementTypeRule(
        SignRule.FORCED_NEGATIVE, "Promotion / gift", user_adjustable=True,
    ),
    MovementType.PURCHASE: MovementTypeRule(
        SignRule.FORCED_POSITIVE, "Purchase",
        user_adjustable=True, batch_intake=True,
    ),
    MovementType.INITIAL_INTAKE: MovementTypeRule(
        SignRule.FORCED_POSITIVE, "Initial intake",
        user_adjustable=True, batch_intake=True,
    ),
    MovementType.RESTOCK_RECEIVED: MovementTypeRule(
        SignRule.FORCED_POSITIVE, "Restock received"
    ),
    MovementType.STORE_USE: MovementTypeRule(
        SignRule.FORCED_NEGATIVE, "Store use", user_adjustable=True,
    ),
}

_missing = set(MovementType) - set(MOVEMENT_TYPE_RULES)
if _missing:
    raise RuntimeError(
        f"Movement types without a sign rule: {sorted(t.value for t in _missing)}"
    )

MOVEMENT_TYPE_LABELS: dict[MovementType, str] = {
    t: rule.label for t, rule in MOVEMENT_TYPE_RULES.items()
}

USER_ADJUSTABLE_TYPES: tuple[MovementType, ...] = tuple(
    t for t, rule in MOVEMENT_TYPE_RULES.items() if rule.user_adjustable
)

BATCH_INTAKE_TYPES: tuple[MovementType, ...] = tuple(
    t for t, rule in MOVEMENT_TYPE_RULES.items() if rule.batch_intake
)


def parse_movement_type(value: "MovementType | str") -> MovementType:
    """Coerce a raw value into a MovementType or raise UnknownMovementTypeError."""
    if isinstance(value, MovementType):
        return value
    try:
        return MovementType(value)
    except ValueError:
        raise UnknownMovementTypeError(value) from None


def rule_for(movement_type: "MovementType | str") -> MovementTypeRule:
    return MOVEMENT_TYPE_RULES[parse_movement_type(movement_type)]


def normalize_quantity(movement_type: "MovementType | str", magnitude: int) -> int:
    """
    Apply the sign rule of ``movement_type`` to a caller-supplied quantity.

    Preconditions:
        - ``magnitude`` is a non-zero int (its sign only matters for
          MANUAL_ADJUSTMENT).

    Postconditions:
        - Forced-negative types return ``-abs(magnitude)``.
        - Forced-positive types return ``abs(magnitude)``.
        - MANUAL_ADJUSTMENT returns ``magnitude`` unchanged.

    Raises:
        UnknownMovementTypeError: ``movement_type`` is not a MovementType.
        ZeroQuantityError: ``magnitude`` is zero.
    """
    mtype = parse_movement_type(movement_type)
    if isinstance(magnitude, bool) or not isinstance(magnitude, int):
        raise TypeError(f"quantity must be an int, got {type(magnitude).__name__}")
    if magnitude == 0:
        raise ZeroQuantityError(mtype.value)

    sign = MOVEMENT_TYPE_RULES[mtype].sign
    if sign == SignRule.FORCED_NEGATIVE:
        return -abs(magnitude)
    elif sign == SignRule.FORCED_POSITIVE:
        return abs(magnitude)
    else:
        return magnitude


def normalize_adjustment(movement_type: "MovementType | str", magnitude: int) -> int:
    """User-facing adjustment path: only USER_ADJUSTABLE_TYPES are accepted."""
    mtype = parse_movement_type(movement_type)
    if not MOVEMENT_TYPE_RULES[mtype].user_adjustable:
        raise DisallowedMovementTypeError(
            mtype.value, tuple(t.value for t in USER_ADJUSTABLE_TYPES)
        )
    return normalize_quantity(mtype, magnitude)


def normalize_batch_intake(movement_type: "MovementType | str", magnitude: int) -> int:
    """
    Batch stock intake (spreadsheet import, product batch creation).

    Intake lines always add stock, so the magnitude is taken as absolute even
    for MANUAL_ADJUSTMENT.
    """
    mtype = parse_movement_type(movement_type)
    if not MOVEMENT_TYPE_RULES[mtype].batch_intake:
        raise DisallowedMovementTypeError(
            mtype.value, tuple(t.value for t in BATCH_INTAKE_TYPES)
        )
    return normalize_quantity(mtype, abs(magnitude))


def check_sign(movement_type: MovementType, quantity: int) -> None:
    """Reject an already-normalized quantity whose sign contradicts the policy."""
    sign = MOVEMENT_TYPE_RULES[movement_type].sign
    if sign == SignRule.FORCED_NEGATIVE and quantity > 0:
        raise MovementSignError(movement_type.value, quantity, "negative")
    if sign == SignRule.FORCED_POSITIVE and quantity < 0:
        raise MovementSignError(movement_type.value, quantity, "positive")
