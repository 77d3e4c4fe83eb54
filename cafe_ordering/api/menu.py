"""Menu API endpoints."""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from cafe_ordering.core.dependencies import get_menu_repository
from cafe_ordering.services.menu.repository import MenuRepository

router = APIRouter()
logger = logging.getLogger(__name__)


class MenuItemResponse(BaseModel):
    """Menu item response model."""
    name: str
    price: float
    preparation_area: str
    description: Optional[str] = None


class MenuResponse(BaseModel):
    """Menu response model."""
    items: List[MenuItemResponse]


@router.get("/api/menu", response_model=MenuResponse)
async def get_menu(
    request: Request,
    menu_repository: MenuRepository = Depends(get_menu_repository),
):
    """Get the full menu."""
    logger.info(
        f"[MENU] Request received - Client: {request.client.host if request.client else 'unknown'}"
    )
    menu = await menu_repository.get_menu()
    logger.info(f"[MENU] Menu loaded - {len(menu.items)} items")
    return MenuResponse(
        items=[
            MenuItemResponse(
                name=item.name,
                price=item.price,
                preparation_area=item.preparation_area.value,
                description=item.description,
            )
            for item in menu.items
        ]
    )
