"""Conversation stage enumeration and transition graph."""
from enum import Enum
from typing import Dict, FrozenSet


class OrderStage(str, Enum):
    """Stages of the phone ordering dialogue."""

    INITIAL_ORDER = "INITIAL_ORDER"  # Greeted, waiting for the first items
    CUSTOMIZATION = "CUSTOMIZATION"  # Asking about extras for bar items
    UPSELL = "UPSELL"  # Offering a complementary item
    UPSELL_FINAL = "UPSELL_FINAL"  # "Anything else?"
    PAYMENT = "PAYMENT"  # Payment method (informational only)
    CONFIRMATION = "CONFIRMATION"  # Order read back with total, awaiting yes/no
    IDENTIFICATION = "IDENTIFICATION"  # Asking for the customer's name
    FINALIZED = "FINALIZED"  # Order written, call ends

    def __str__(self) -> str:
        """Return the string value of the stage."""
        return self.value


# Stages after which the assistant must have read the total to the caller.
TOTAL_ANNOUNCEMENT_STAGES = frozenset({OrderStage.CONFIRMATION, OrderStage.FINALIZED})

_FORWARD_EDGES: Dict[OrderStage, FrozenSet[OrderStage]] = {
    OrderStage.INITIAL_ORDER: frozenset({OrderStage.CUSTOMIZATION, OrderStage.UPSELL, OrderStage.UPSELL_FINAL}),
    OrderStage.CUSTOMIZATION: frozenset({OrderStage.UPSELL, OrderStage.UPSELL_FINAL}),
    OrderStage.UPSELL: frozenset({OrderStage.UPSELL_FINAL, OrderStage.CUSTOMIZATION}),
    OrderStage.UPSELL_FINAL: frozenset({OrderStage.CONFIRMATION, OrderStage.CUSTOMIZATION}),
    # Negative confirmation goes back to re-ask the order
    OrderStage.CONFIRMATION: frozenset({
        OrderStage.PAYMENT,
        OrderStage.IDENTIFICATION,
        OrderStage.FINALIZED,
        OrderStage.INITIAL_ORDER,
        OrderStage.CUSTOMIZATION,
    }),
    OrderStage.PAYMENT: frozenset({OrderStage.IDENTIFICATION, OrderStage.FINALIZED}),
    OrderStage.IDENTIFICATION: frozenset({OrderStage.FINALIZED}),
    OrderStage.FINALIZED: frozenset(),
}

# Every non-terminal stage may loop on itself when a turn is inconclusive.
STAGE_TRANSITIONS: Dict[OrderStage, FrozenSet[OrderStage]] = {
    stage: edges | ({stage} if stage != OrderStage.FINALIZED else frozenset())
    for stage, edges in _FORWARD_EDGES.items()
}


def is_allowed_transition(current: OrderStage, target: OrderStage) -> bool:
    """Check whether moving from ``current`` to ``target`` follows the stage graph."""
    return target in STAGE_TRANSITIONS.get(current, frozenset())


def is_terminal(stage: OrderStage) -> bool:
    """Return True for stages that end the call."""
    return stage == OrderStage.FINALIZED
