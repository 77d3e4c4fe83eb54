"""Order line models."""
from decimal import Decimal
from enum import Enum
from typing import List

from pydantic import BaseModel


class PreparationArea(str, Enum):
    """Station that prepares an item."""

    BAR = "bar"
    KITCHEN = "kitchen"

    def __str__(self) -> str:
        return self.value


class Customization(BaseModel):
    """Priced extra attached to a bar item (e.g. almond milk)."""

    id: str
    display_name: str
    price: float = 0.0


class OrderLine(BaseModel):
    """A single distinct item in the running order."""

    name: str
    unit_price: float
    preparation_area: PreparationArea
    customizations: List[Customization] = []

    def line_total(self) -> Decimal:
        """Unit price plus every attached customization."""
        total = Decimal(str(self.unit_price))
        for customization in self.customizations:
            total += Decimal(str(customization.price))
        return total

    def describe(self) -> str:
        """Short spoken description, e.g. "Latte (leche de avena)"."""
        if not self.customizations:
            return self.name
        extras = ", ".join(c.display_name for c in self.customizations)
        return f"{self.name} ({extras})"
