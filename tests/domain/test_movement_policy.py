"""
Tests for the movement type sign policy.

Pure functions, no database.
"""

import pytest

from inventory_kernel.domain.movement_policy import (
    BATCH_INTAKE_TYPES,
    MOVEMENT_TYPE_LABELS,
    MOVEMENT_TYPE_RULES,
    USER_ADJUSTABLE_TYPES,
    MovementType,
    SignRule,
    check_sign,
    normalize_adjustment,
    normalize_batch_intake,
    normalize_quantity,
    parse_movement_type,
    rule_for,
)
from inventory_kernel.exceptions import (
    DisallowedMovementTypeError,
    MovementSignError,
    UnknownMovementTypeError,
    ZeroQuantityError,
)

DECREASING = [
    MovementType.DAMAGE,
    MovementType.LOST,
    MovementType.STORE_USE,
    MovementType.PROMOTION,
    MovementType.ORDER_PLACED,
]

INCREASING = [
    MovementType.RETURN,
    MovementType.PURCHASE,
    MovementType.INITIAL_INTAKE,
    MovementType.RESTOCK_RECEIVED,
    MovementType.INITIAL_MIGRATION,
    MovementType.ORDER_CANCELLED,
]

SYSTEM_TYPES = [
    MovementType.ORDER_PLACED,
    MovementType.ORDER_CANCELLED,
    MovementType.RESTOCK_RECEIVED,
    MovementType.INITIAL_MIGRATION,
]


class TestRuleTable:

    def test_every_type_has_a_rule_and_label(self):
        assert set(MOVEMENT_TYPE_RULES) == set(MovementType)
        assert set(MOVEMENT_TYPE_LABELS) == set(MovementType)

    def test_sign_partition_is_complete(self):
        caller_controlled = [
            t for t, r in MOVEMENT_TYPE_RULES.items() if r.sign == SignRule.CALLER_CONTROLLED
        ]
        assert caller_controlled == [MovementType.MANUAL_ADJUSTMENT]
        assert set(DECREASING) | set(INCREASING) | {MovementType.MANUAL_ADJUSTMENT} == set(MovementType)

    def test_system_types_not_user_adjustable(self):
        for mtype in SYSTEM_TYPES:
            assert mtype not in USER_ADJUSTABLE_TYPES

    def test_batch_intake_types(self):
        assert set(BATCH_INTAKE_TYPES) == {
            MovementType.PURCHASE,
            MovementType.INITIAL_INTAKE,
            MovementType.MANUAL_ADJUSTMENT,
        }

    def test_rule_for_accepts_strings(self):
        assert rule_for("DAMAGE").sign == SignRule.FORCED_NEGATIVE


class TestParse:

    def test_parses_value(self):
        assert parse_movement_type("RETURN") is MovementType.RETURN

    def test_passes_enum_through(self):
        assert parse_movement_type(MovementType.LOST) is MovementType.LOST

    @pytest.mark.parametrize("raw", ["TELEPORT", "damage", "", None])
    def test_unknown_rejected(self, raw):
        with pytest.raises(UnknownMovementTypeError):
            parse_movement_type(raw)


class TestNormalizeQuantity:

    @pytest.mark.parametrize("mtype", DECREASING)
    @pytest.mark.parametrize("magnitude", [3, -3])
    def test_forced_negative(self, mtype, magnitude):
        assert normalize_quantity(mtype, magnitude) == -3

    @pytest.mark.parametrize("mtype", INCREASING)
    @pytest.mark.parametrize("magnitude", [5, -5])
    def test_forced_positive(self, mtype, magnitude):
        assert normalize_quantity(mtype, magnitude) == 5

    @pytest.mark.parametrize("magnitude", [4, -4])
    def test_manual_adjustment_passes_sign_through(self, magnitude):
        assert normalize_quantity(MovementType.MANUAL_ADJUSTMENT, magnitude) == magnitude

    def test_zero_rejected(self):
        with pytest.raises(ZeroQuantityError) as exc_info:
            normalize_quantity(MovementType.DAMAGE, 0)
        assert exc_info.value.movement_type == "DAMAGE"

    @pytest.mark.parametrize("bad", [1.5, "3", True])
    def test_non_integer_rejected(self, bad):
        with pytest.raises(TypeError):
            normalize_quantity(MovementType.PURCHASE, bad)

    def test_damage_example(self):
        """DAMAGE with caller magnitude 3 becomes -3."""
        assert normalize_quantity("DAMAGE", 3) == -3


class TestUserAndBatchPaths:

    @pytest.mark.parametrize("mtype", SYSTEM_TYPES)
    def test_adjustment_rejects_system_types(self, mtype):
        with pytest.raises(DisallowedMovementTypeError):
            normalize_adjustment(mtype, 1)

    def test_adjustment_accepts_user_types(self):
        assert normalize_adjustment(MovementType.RETURN, -2) == 2
        assert normalize_adjustment(MovementType.MANUAL_ADJUSTMENT, -2) == -2

    def test_batch_intake_always_adds(self):
        assert normalize_batch_intake(MovementType.MANUAL_ADJUSTMENT, -7) == 7
        assert normalize_batch_intake(MovementType.PURCHASE, 7) == 7

    def test_batch_intake_rejects_decrements(self):
        with pytest.raises(DisallowedMovementTypeError):
            normalize_batch_intake(MovementType.DAMAGE, 1)


class TestCheckSign:

    def test_wrong_sign_for_decrease(self):
        with pytest.raises(MovementSignError):
            check_sign(MovementType.DAMAGE, 3)

    def test_wrong_sign_for_increase(self):
        with pytest.raises(MovementSignError):
            check_sign(MovementType.RESTOCK_RECEIVED, -3)

    def test_manual_adjustment_any_sign(self):
        check_sign(MovementType.MANUAL_ADJUSTMENT, -3)
        check_sign(MovementType.MANUAL_ADJUSTMENT, 3)
