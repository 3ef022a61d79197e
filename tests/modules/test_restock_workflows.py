"""
Tests for the restock order state machine.
"""

import pytest

from inventory_kernel.exceptions import InvalidStatusTransitionError
from inventory_modules.restock.models import RestockOrderStatus
from inventory_modules.restock.workflows import (
    DELETABLE_STATES,
    EDITABLE_STATES,
    RECEIVABLE_STATES,
    RESTOCK_ORDER_WORKFLOW,
    find_transition,
    require_transition,
)

S = RestockOrderStatus


class TestRestockOrderWorkflow:

    def test_states_cover_enum(self):
        assert set(RESTOCK_ORDER_WORKFLOW.states) == {s.value for s in S}
        assert RESTOCK_ORDER_WORKFLOW.initial_state == S.DRAFT.value

    def test_transitions_use_declared_states(self):
        states = set(RESTOCK_ORDER_WORKFLOW.states)
        for t in RESTOCK_ORDER_WORKFLOW.transitions:
            assert t.from_state in states
            assert t.to_state in states

    @pytest.mark.parametrize(
        "from_state,to_state,action",
        [
            (S.DRAFT, S.ORDERED, "place"),
            (S.DRAFT, S.CANCELLED, "cancel"),
            (S.ORDERED, S.CANCELLED, "cancel"),
            (S.ORDERED, S.PARTIALLY_RECEIVED, "receive"),
            (S.ORDERED, S.COMPLETED, "receive"),
            (S.PARTIALLY_RECEIVED, S.COMPLETED, "receive"),
        ],
    )
    def test_declared_transitions(self, from_state, to_state, action):
        transition = find_transition(RESTOCK_ORDER_WORKFLOW, from_state.value, to_state.value)
        assert transition is not None
        assert transition.action == action
        assert transition.moves_stock == (action == "receive")

    @pytest.mark.parametrize(
        "from_state,to_state",
        [
            (S.COMPLETED, S.ORDERED),
            (S.COMPLETED, S.CANCELLED),
            (S.PARTIALLY_RECEIVED, S.CANCELLED),
            (S.CANCELLED, S.ORDERED),
            (S.ORDERED, S.DRAFT),
            (S.DRAFT, S.COMPLETED),
        ],
    )
    def test_undeclared_transitions_rejected(self, from_state, to_state):
        with pytest.raises(InvalidStatusTransitionError) as exc_info:
            require_transition("order-1", from_state.value, to_state.value)
        assert exc_info.value.from_status == from_state.value
        assert exc_info.value.to_status == to_state.value

    def test_status_sets(self):
        assert EDITABLE_STATES == {S.DRAFT.value}
        assert DELETABLE_STATES == {S.DRAFT.value, S.CANCELLED.value}
        assert RECEIVABLE_STATES == {S.ORDERED.value, S.PARTIALLY_RECEIVED.value, S.COMPLETED.value}
