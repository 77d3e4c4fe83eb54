"""Bar/kitchen notifications for finalized orders."""
import logging
from typing import List

from cafe_ordering.services.agent.state import OrderState
from cafe_ordering.services.ordering.models import OrderLine, PreparationArea

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """Sends each preparation area the part of an order it has to make.

    Fire-and-forget: a failing area is logged and the rest are still notified.
    """

    async def dispatch(self, order_id: int, customer_name: str, state: OrderState) -> List[PreparationArea]:
        """Notify every area that has items. Returns the areas notified successfully."""
        notified = []
        for area, lines in state.items_by_area().items():
            try:
                await self.notify(area, order_id, customer_name, lines)
                notified.append(area)
            except Exception as e:
                logger.error(
                    f"[NOTIFY {area.value.upper()}] Failed to notify order #{order_id}: {type(e).__name__}: {e}",
                    exc_info=True,
                )
        return notified

    async def notify(
        self, area: PreparationArea, order_id: int, customer_name: str, lines: List[OrderLine]
    ) -> None:
        """Deliver one area's items. Default delivery is the application log."""
        logger.info(f"[NOTIFY {area.value.upper()}] New order #{order_id} for {customer_name}.")
        logger.info(f"[NOTIFY {area.value.upper()}] Details: {' | '.join(line.describe() for line in lines)}")
