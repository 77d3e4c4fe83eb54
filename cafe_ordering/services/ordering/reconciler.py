"""Merges extractor output into the running order."""
import logging
import re
from typing import List, Optional, Tuple

from cafe_ordering.services.agent.constants import TOTAL_STATEMENT
from cafe_ordering.services.agent.oracle import OracleItem, OracleResult
from cafe_ordering.services.agent.stages import (
    TOTAL_ANNOUNCEMENT_STAGES,
    OrderStage,
    is_allowed_transition,
)
from cafe_ordering.services.agent.state import OrderState, OrderStatePatch, dedupe_lines
from cafe_ordering.services.menu.base import Menu
from cafe_ordering.services.ordering.models import OrderLine, PreparationArea
from cafe_ordering.services.ordering.pricing import ExtrasPriceTable, format_money

logger = logging.getLogger(__name__)


class Reconciler:
    """Turns an OracleResult into the next OrderState and the caller-facing message.

    Pure apart from logging: the input state is never mutated.
    """

    def __init__(self, extras: Optional[ExtrasPriceTable] = None):
        self.extras = extras or ExtrasPriceTable()

    def reconcile(self, state: OrderState, result: OracleResult, menu: Menu) -> Tuple[OrderState, str]:
        """Apply ``result`` to ``state``.

        Returns:
            Tuple of (new state, utterance to speak)
        """
        items = self.resolve_items(state.call_id, result.items, menu)

        customer_name = _non_blank(result.customer_name) or state.customer_name
        customer_phone = _non_blank(result.customer_phone) or state.customer_phone

        new_state = state.apply(
            OrderStatePatch(
                items=items,
                customer_name=customer_name,
                customer_phone=customer_phone,
            )
        )

        stage = result.next_stage
        # An order is never finalized for an anonymous customer
        if stage == OrderStage.FINALIZED and not new_state.has_named_customer():
            logger.info(
                f"[RECONCILER] CallSid: {state.call_id} - FINALIZED requested without a customer name, "
                f"moving to IDENTIFICATION"
            )
            stage = OrderStage.IDENTIFICATION

        if not is_allowed_transition(state.stage, stage):
            logger.warning(
                f"[RECONCILER] CallSid: {state.call_id} - Off-graph transition "
                f"{state.stage.value} -> {stage.value} proposed by the extractor"
            )
        elif state.stage != stage:
            logger.info(f"[RECONCILER] CallSid: {state.call_id} - Stage changed: {state.stage.value} -> {stage.value}")

        new_state = new_state.apply(OrderStatePatch(stage=stage))

        utterance = result.response_text
        if stage in TOTAL_ANNOUNCEMENT_STAGES:
            utterance = with_total_statement(utterance, format_money(new_state.total))

        logger.info(
            f"[RECONCILER] CallSid: {state.call_id} - Items: {[line.describe() for line in new_state.items]}, "
            f"Total: ${format_money(new_state.total)}"
        )
        return new_state, utterance

    def resolve_items(self, call_id: str, proposed: List[OracleItem], menu: Menu) -> List[OrderLine]:
        """Validate proposed items against the menu and price their customizations."""
        lines = []
        for item in proposed:
            menu_item = menu.find(item.name)
            if menu_item is None:
                logger.warning(f"[RECONCILER] CallSid: {call_id} - Dropping unknown menu item '{item.name}'")
                continue

            customizations = []
            if item.customizations:
                if menu_item.preparation_area == PreparationArea.BAR:
                    customizations = self._price_customizations(item.customizations)
                else:
                    logger.warning(
                        f"[RECONCILER] CallSid: {call_id} - Ignoring customizations {item.customizations} "
                        f"on {menu_item.preparation_area.value} item '{menu_item.name}'"
                    )

            lines.append(
                OrderLine(
                    name=menu_item.name,
                    unit_price=menu_item.price,
                    preparation_area=menu_item.preparation_area,
                    customizations=customizations,
                )
            )
        return dedupe_lines(lines)

    def _price_customizations(self, names: List[str]):
        priced = []
        seen = set()
        for name in names:
            key = name.lower()
            if key in seen:
                continue
            seen.add(key)
            priced.append(self.extras.lookup(name))
        return priced


def with_total_statement(utterance: str, total_text: str) -> str:
    """Append "El total es de $X.XX." unless the utterance already states the total."""
    if states_amount(utterance, total_text):
        return utterance
    statement = TOTAL_STATEMENT.format(total=total_text)
    separator = "" if not utterance or utterance.endswith(" ") else " "
    return f"{utterance}{separator}{statement}"


def _non_blank(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def states_amount(utterance: str, amount_text: str) -> bool:
    """True if ``utterance`` mentions ``amount_text`` ("3.50" or "3,50") as a whole number."""
    whole, _, cents = amount_text.partition(".")
    pattern = rf"(?<![\d.,]){re.escape(whole)}[.,]{re.escape(cents)}(?!\d)"
    return re.search(pattern, utterance) is not None
