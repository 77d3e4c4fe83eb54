"""Menu repository."""
from cafe_ordering.services.menu.base import Menu, MenuProvider
from cafe_ordering.services.ordering.models import PreparationArea
from cafe_ordering.services.ordering.pricing import format_money


class MenuRepository:
    """Repository for menu operations."""

    def __init__(self, provider: MenuProvider):
        self.provider = provider

    async def get_menu(self) -> Menu:
        """Get the full menu."""
        return await self.provider.get_menu()


def format_menu_text(menu: Menu) -> str:
    """Menu grouped by preparation area, one line per item with its price."""
    lines = ["Menú:"]
    for area in PreparationArea:
        area_items = [item for item in menu.items if item.preparation_area == area]
        if not area_items:
            continue
        lines.append(f"\n{area.value.upper()}:")
        for item in area_items:
            desc_str = f" - {item.description}" if item.description else ""
            lines.append(f"  - {item.name} ${format_money(item.price)}{desc_str}")
    return "\n".join(lines)
