"""
Pure domain layer.

Movement policy, DTOs and the injectable clock.  Nothing in here touches
the ORM session, the database or the network.
"""

from inventory_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from inventory_kernel.domain.dtos import (
    BatchFailure,
    BatchOutcome,
    MigrationError,
    MigrationResult,
    MovementParams,
    MovementRecord,
    SoldLine,
    SoldOrder,
)
from inventory_kernel.domain.movement_policy import (
    BATCH_INTAKE_TYPES,
    MOVEMENT_TYPE_LABELS,
    MOVEMENT_TYPE_RULES,
    USER_ADJUSTABLE_TYPES,
    MovementType,
    MovementTypeRule,
    SignRule,
    normalize_adjustment,
    normalize_batch_intake,
    normalize_quantity,
)

__all__ = [
    "BATCH_INTAKE_TYPES",
    "BatchFailure",
    "BatchOutcome",
    "Clock",
    "DeterministicClock",
    "MOVEMENT_TYPE_LABELS",
    "MOVEMENT_TYPE_RULES",
    "MigrationError",
    "MigrationResult",
    "MovementParams",
    "MovementRecord",
    "MovementType",
    "MovementTypeRule",
    "SignRule",
    "SoldLine",
    "SoldOrder",
    "SystemClock",
    "USER_ADJUSTABLE_TYPES",
    "normalize_adjustment",
    "normalize_batch_intake",
    "normalize_quantity",
]
