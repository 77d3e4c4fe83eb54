"""Order persistence service."""
import logging
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel
from sqlalchemy import delete, desc, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from cafe_ordering.db.models import Order, OrderItem, OrderStatus
from cafe_ordering.services.agent.state import OrderState
from cafe_ordering.services.ordering.models import OrderLine
from cafe_ordering.services.ordering.pricing import format_money

logger = logging.getLogger(__name__)


class OrderDraft(BaseModel):
    """Everything needed to write a finalized order."""

    call_sid: Optional[str] = None
    items: List[OrderLine]
    customer_phone: str
    customer_name: str
    total: Decimal

    @classmethod
    def from_state(cls, state: OrderState) -> "OrderDraft":
        """Build a draft from the final conversation state."""
        return cls(
            call_sid=state.call_id,
            items=list(state.items),
            customer_phone=state.customer_phone,
            customer_name=state.customer_name,
            total=state.total,
        )

    def summary(self) -> str:
        """One-line description stored with the order."""
        names = ", ".join(line.describe() for line in self.items)
        return (
            f"Pedido de {self.customer_name} ({self.customer_phone}). "
            f"Total: ${format_money(self.total)}. Items: {names}."
        )


class OrderPersistenceService:
    """Service for persisting order data."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def write_order(self, draft: OrderDraft) -> Order:
        """Write an order and its items in a single transaction."""
        order = Order(
            call_sid=draft.call_sid,
            customer_phone=draft.customer_phone,
            customer_name=draft.customer_name,
            summary=draft.summary(),
            total=draft.total,
            status=OrderStatus.RECEIVED,
        )
        order.items = [
            OrderItem(
                item_name=line.name,
                preparation_area=line.preparation_area.value,
                unit_price=Decimal(str(line.unit_price)),
                customizations=[
                    {"name": c.display_name, "price": c.price} for c in line.customizations
                ],
            )
            for line in draft.items
        ]
        self.db.add(order)
        try:
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        logger.info(f"[ORDERS] Order #{order.id} written for {draft.customer_name} - Total: ${format_money(draft.total)}")
        return order

    async def get_order_by_id(self, order_id: int) -> Optional[Order]:
        """Get order by ID with items."""
        result = await self.db.execute(
            select(Order)
            .where(Order.id == order_id)
            .options(selectinload(Order.items))
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_active_orders(self) -> List[Order]:
        """Orders that are not completed yet, newest first."""
        result = await self.db.execute(
            select(Order)
            .where(Order.status != OrderStatus.COMPLETED)
            .options(selectinload(Order.items))
            .order_by(desc(Order.created_at), desc(Order.id))
        )
        return list(result.scalars().all())

    async def update_status(self, order_id: int, status: str) -> Order:
        """Set the status of an order.

        Raises:
            ValueError: if the status is unknown
            LookupError: if the order does not exist
        """
        if status not in OrderStatus.ALL:
            raise ValueError(f"Unknown order status '{status}'")
        order = await self.get_order_by_id(order_id)
        if not order:
            raise LookupError(f"Order {order_id} not found")
        order.status = status
        await self.db.commit()
        return order

    async def advance_status(self, order_id: int) -> Order:
        """Move an order to the next status in its lifecycle."""
        order = await self.get_order_by_id(order_id)
        if not order:
            raise LookupError(f"Order {order_id} not found")
        return await self.update_status(order_id, OrderStatus.NEXT[order.status])

    async def reset_orders(self) -> int:
        """Delete every order and its items. Returns the number of orders removed."""
        count_result = await self.db.execute(select(Order.id))
        count = len(count_result.scalars().all())
        await self.db.execute(delete(OrderItem))
        await self.db.execute(delete(Order))
        await self.db.commit()
        logger.info(f"[ORDERS] Reset: {count} orders deleted")
        return count
