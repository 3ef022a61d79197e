"""
Restock Workflows.

State machine for supplier purchase orders, from draft through receipt.
"""

from dataclasses import dataclass

from inventory_kernel.exceptions import InvalidStatusTransitionError
from inventory_kernel.logging_config import get_logger
from inventory_modules.restock.models import RestockOrderStatus

logger = get_logger("modules.restock.workflows")


@dataclass(frozen=True)
class Guard:
    """A condition for a transition."""
    name: str
    description: str


@dataclass(frozen=True)
class Transition:
    """A valid state transition."""
    from_state: str
    to_state: str
    action: str
    guard: Guard | None = None
    moves_stock: bool = False


@dataclass(frozen=True)
class Workflow:
    """A state machine definition."""
    name: str
    description: str
    initial_state: str
    states: tuple[str, ...]
    transitions: tuple[Transition, ...]


# -----------------------------------------------------------------------------
# Guards
# -----------------------------------------------------------------------------

HAS_ITEMS = Guard(
    name="has_items",
    description="Order has at least one item",
)

ALL_ITEMS_RECEIVED = Guard(
    name="all_items_received",
    description="Every item has quantity_received >= quantity",
)

SOME_ITEMS_RECEIVED = Guard(
    name="some_items_received",
    description="At least one item has quantity_received > 0",
)

logger.info(
    "restock_workflow_guards_defined",
    extra={
        "guards": [
            HAS_ITEMS.name,
            ALL_ITEMS_RECEIVED.name,
            SOME_ITEMS_RECEIVED.name,
        ],
    },
)


# -----------------------------------------------------------------------------
# Restock Order Workflow
# -----------------------------------------------------------------------------

_DRAFT = RestockOrderStatus.DRAFT.value
_ORDERED = RestockOrderStatus.ORDERED.value
_PARTIAL = RestockOrderStatus.PARTIALLY_RECEIVED.value
_COMPLETED = RestockOrderStatus.COMPLETED.value
_CANCELLED = RestockOrderStatus.CANCELLED.value

RESTOCK_ORDER_WORKFLOW = Workflow(
    name="restock_order",
    description="Supplier purchase order from draft to receipt",
    initial_state=_DRAFT,
    states=(_DRAFT, _ORDERED, _PARTIAL, _COMPLETED, _CANCELLED),
    transitions=(
        Transition(_DRAFT, _ORDERED, action="place", guard=HAS_ITEMS),
        Transition(_DRAFT, _CANCELLED, action="cancel"),
        Transition(_ORDERED, _CANCELLED, action="cancel"),
        Transition(
            _ORDERED, _PARTIAL, action="receive",
            guard=SOME_ITEMS_RECEIVED, moves_stock=True,
        ),
        Transition(
            _ORDERED, _COMPLETED, action="receive",
            guard=ALL_ITEMS_RECEIVED, moves_stock=True,
        ),
        Transition(
            _PARTIAL, _COMPLETED, action="receive",
            guard=ALL_ITEMS_RECEIVED, moves_stock=True,
        ),
    ),
)

logger.info(
    "restock_order_workflow_registered",
    extra={
        "workflow_name": RESTOCK_ORDER_WORKFLOW.name,
        "state_count": len(RESTOCK_ORDER_WORKFLOW.states),
        "transition_count": len(RESTOCK_ORDER_WORKFLOW.transitions),
        "initial_state": RESTOCK_ORDER_WORKFLOW.initial_state,
    },
)


# -----------------------------------------------------------------------------
# Status sets used by the service
# -----------------------------------------------------------------------------

# Items and supplier may only change while the order is a draft
EDITABLE_STATES = frozenset({_DRAFT})

DELETABLE_STATES = frozenset({_DRAFT, _CANCELLED})

RECEIVABLE_STATES = frozenset({_ORDERED, _PARTIAL, _COMPLETED})


def find_transition(
    workflow: Workflow,
    from_state: str,
    to_state: str,
) -> Transition | None:
    for transition in workflow.transitions:
        if transition.from_state == from_state and transition.to_state == to_state:
            return transition
    return None


def require_transition(
    order_id: str,
    from_state: str,
    to_state: str,
    workflow: Workflow = RESTOCK_ORDER_WORKFLOW,
) -> Transition:
    """Return the declared transition or raise InvalidStatusTransitionError."""
    transition = find_transition(workflow, from_state, to_state)
    if transition is None:
        logger.warning(
            "restock_transition_rejected",
            extra={
                "order_id": order_id,
                "from_status": from_state,
                "to_status": to_state,
            },
        )
        raise InvalidStatusTransitionError(order_id, from_state, to_state)
    return transition
