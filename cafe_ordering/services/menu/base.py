"""Menu provider interface."""
from abc import ABC, abstractmethod
from typing import List, Optional

from pydantic import BaseModel

from cafe_ordering.services.ordering.models import PreparationArea


class MenuItem(BaseModel):
    """Menu item model."""

    name: str
    price: float
    preparation_area: PreparationArea
    description: Optional[str] = None


class Menu(BaseModel):
    """Menu model."""

    items: List[MenuItem]

    def find(self, item_name: str) -> Optional[MenuItem]:
        """Case-insensitive lookup by exact name."""
        item_name_lower = item_name.lower().strip()
        for item in self.items:
            if item.name.lower() == item_name_lower:
                return item
        return None


class MenuProvider(ABC):
    """Abstract base class for menu providers."""

    @abstractmethod
    async def get_menu(self) -> Menu:
        """Get the full menu."""
        pass
