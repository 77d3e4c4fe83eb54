"""In-memory menu provider."""
import logging
from pathlib import Path
from typing import Optional

import yaml

from cafe_ordering.services.menu.base import Menu, MenuItem, MenuProvider
from cafe_ordering.services.ordering.models import PreparationArea

logger = logging.getLogger(__name__)


DEFAULT_MENU = Menu(
    items=[
        MenuItem(name="Capuchino", price=3.50, preparation_area=PreparationArea.BAR),
        MenuItem(name="Latte", price=3.75, preparation_area=PreparationArea.BAR),
        MenuItem(name="Café Americano", price=2.50, preparation_area=PreparationArea.BAR),
        MenuItem(name="Brownie", price=2.75, preparation_area=PreparationArea.BAR),
        MenuItem(name="Sándwich de pavo", price=6.50, preparation_area=PreparationArea.KITCHEN),
        MenuItem(name="Ensalada César", price=7.25, preparation_area=PreparationArea.KITCHEN),
    ]
)


class InMemoryMenuProvider(MenuProvider):
    """In-memory menu provider using YAML configuration."""

    def __init__(self, menu_file: Optional[str] = None):
        """Initialize with optional menu file path."""
        if menu_file is None:
            menu_file = Path(__file__).parent / "data" / "menu.yaml"
        self.menu_file = Path(menu_file)
        self._menu: Optional[Menu] = None

    async def _load_menu(self) -> Menu:
        """Load menu from YAML file."""
        if self._menu is None:
            if not self.menu_file.exists():
                logger.info(f"[MENU] {self.menu_file} not found, using built-in cafe menu")
                self._menu = DEFAULT_MENU.model_copy(deep=True)
            else:
                with open(self.menu_file, "r", encoding="utf-8") as f:
                    data = yaml.safe_load(f) or {}
                items = [MenuItem(**item) for item in data.get("items", [])]
                self._menu = Menu(items=items)
        return self._menu

    async def get_menu(self) -> Menu:
        """Get the full menu."""
        return await self._load_menu()
