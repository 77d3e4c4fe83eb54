"""Order admin API endpoints."""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from cafe_ordering.api.auth import require_admin_key
from cafe_ordering.db.database import get_db
from cafe_ordering.db.models import Order
from cafe_ordering.services.persistence.orders import OrderPersistenceService

router = APIRouter()
logger = logging.getLogger(__name__)


class OrderItemResponse(BaseModel):
    """Order item response model."""
    id: int
    item_name: str
    preparation_area: str
    unit_price: float
    customizations: list[dict] = []


class OrderResponse(BaseModel):
    """Order response model."""
    id: int
    customer_name: str
    customer_phone: str
    summary: Optional[str] = None
    total: float
    status: str
    created_at: str
    items: List[OrderItemResponse] = []


class StatusUpdateRequest(BaseModel):
    """Status update request model."""
    status: str


class ResetResponse(BaseModel):
    """Reset response model."""
    orders_deleted: int


def to_order_response(order: Order) -> OrderResponse:
    """Convert an Order row to its response model."""
    return OrderResponse(
        id=order.id,
        customer_name=order.customer_name,
        customer_phone=order.customer_phone,
        summary=order.summary,
        total=float(order.total),
        status=order.status,
        created_at=order.created_at.isoformat() if order.created_at else "",
        items=[
            OrderItemResponse(
                id=item.id,
                item_name=item.item_name,
                preparation_area=item.preparation_area,
                unit_price=float(item.unit_price),
                customizations=item.customizations or [],
            )
            for item in order.items
        ],
    )


@router.get("/api/orders/active", response_model=List[OrderResponse])
async def get_active_orders(request: Request, db: AsyncSession = Depends(get_db)):
    """Orders the bar and kitchen still have to work on."""
    logger.info(
        f"[ORDERS] Active orders requested - Client: {request.client.host if request.client else 'unknown'}"
    )
    orders = await OrderPersistenceService(db).get_active_orders()
    logger.info(f"[ORDERS] Found {len(orders)} active orders")
    return [to_order_response(order) for order in orders]


@router.put(
    "/api/orders/{order_id}/status",
    response_model=OrderResponse,
    dependencies=[Depends(require_admin_key)],
)
async def update_order_status(
    order_id: int,
    payload: StatusUpdateRequest,
    db: AsyncSession = Depends(get_db),
):
    """Set the status of an order."""
    service = OrderPersistenceService(db)
    try:
        order = await service.update_status(order_id, payload.status)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    logger.info(f"[ORDERS] Order #{order_id} status set to {order.status}")
    return to_order_response(order)


@router.post(
    "/api/orders/{order_id}/advance",
    response_model=OrderResponse,
    dependencies=[Depends(require_admin_key)],
)
async def advance_order_status(order_id: int, db: AsyncSession = Depends(get_db)):
    """Move an order to its next status."""
    try:
        order = await OrderPersistenceService(db).advance_status(order_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    logger.info(f"[ORDERS] Order #{order_id} advanced to {order.status}")
    return to_order_response(order)


@router.post(
    "/api/orders/reset",
    response_model=ResetResponse,
    dependencies=[Depends(require_admin_key)],
)
async def reset_orders(db: AsyncSession = Depends(get_db)):
    """Delete every order. The menu is not affected."""
    deleted = await OrderPersistenceService(db).reset_orders()
    return ResetResponse(orders_deleted=deleted)
