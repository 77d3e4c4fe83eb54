"""Per-call order state."""
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, model_validator

from cafe_ordering.services.agent.constants import ANONYMOUS_CUSTOMER
from cafe_ordering.services.agent.stages import OrderStage
from cafe_ordering.services.ordering.models import OrderLine, PreparationArea
from cafe_ordering.services.ordering.pricing import format_money, round_money


def dedupe_lines(lines: List[OrderLine]) -> List[OrderLine]:
    """Drop repeated item names (case-insensitive), keeping the first occurrence."""
    seen = set()
    unique = []
    for line in lines:
        key = line.name.strip().lower()
        if key in seen:
            continue
        seen.add(key)
        unique.append(line)
    return unique


class OrderStatePatch(BaseModel):
    """Partial update for an OrderState.

    Only the fields declared here can be merged. ``total`` is derived from the
    items and is rejected.
    """

    model_config = ConfigDict(extra="forbid")

    stage: Optional[OrderStage] = None
    items: Optional[List[OrderLine]] = None
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    pending_transcript: Optional[str] = None
    transcript: Optional[List[str]] = None


class OrderState(BaseModel):
    """Order state for a single active call."""

    call_id: str
    caller_phone: str = ""
    customer_phone: str = ""
    customer_name: str = ANONYMOUS_CUSTOMER
    stage: OrderStage = OrderStage.INITIAL_ORDER
    items: List[OrderLine] = []
    pending_transcript: Optional[str] = None
    transcript: List[str] = []  # "Role: text" turns

    @model_validator(mode="after")
    def _defaults(self) -> "OrderState":
        if not self.customer_phone:
            self.customer_phone = self.caller_phone
        self.items = dedupe_lines(self.items)
        return self

    @property
    def total(self) -> Decimal:
        """Sum of item prices and their customizations, rounded to cents."""
        return round_money(sum((line.line_total() for line in self.items), Decimal("0")))

    def apply(self, patch: OrderStatePatch) -> "OrderState":
        """Return a new state with ``patch`` shallow-merged into this one."""
        changes = patch.model_dump(exclude_unset=True)
        if "items" in changes:
            changes["items"] = dedupe_lines(list(patch.items or []))
        if "transcript" in changes:
            changes["transcript"] = list(patch.transcript or [])
        return self.model_copy(update=changes, deep=True)

    def with_turn(self, role: str, text: str) -> "OrderState":
        """Return a new state with one more transcript turn."""
        return self.apply(OrderStatePatch(transcript=[*self.transcript, f"{role}: {text}"]))

    def has_named_customer(self) -> bool:
        """True once the caller has given a name."""
        name = self.customer_name.strip()
        return bool(name) and name != ANONYMOUS_CUSTOMER

    def get_transcript_text(self) -> str:
        """Get full transcript as text."""
        return "\n".join(self.transcript)

    def get_order_summary(self) -> str:
        """Get a text summary of the current order."""
        if not self.items:
            return "Sin productos todavía."
        lines = [f"- {line.describe()} ({line.preparation_area}) ${format_money(line.line_total())}" for line in self.items]
        lines.append(f"Total: ${format_money(self.total)}")
        return "\n".join(lines)

    def items_by_area(self) -> Dict[PreparationArea, List[OrderLine]]:
        """Group lines by preparation area, preserving order."""
        grouped: Dict[PreparationArea, List[OrderLine]] = {}
        for line in self.items:
            grouped.setdefault(line.preparation_area, []).append(line)
        return grouped
