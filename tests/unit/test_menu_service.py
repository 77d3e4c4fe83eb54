"""Unit tests for menu service and repository."""
import pytest
from cafe_ordering.services.menu.repository import MenuRepository, format_menu_text
from cafe_ordering.services.menu.in_memory_menu import DEFAULT_MENU, InMemoryMenuProvider
from cafe_ordering.services.ordering.models import PreparationArea


class TestMenuService:
    """Test menu repository and provider."""

    @pytest.mark.asyncio
    async def test_load_menu_from_yaml(self, test_menu_repository):
        """Test loading menu from YAML file."""
        menu = await test_menu_repository.get_menu()

        # Verify items parsed correctly
        assert len(menu.items) == 6
        assert menu.items[0].name == "Capuchino"
        assert menu.items[0].price == 3.50
        assert menu.items[0].preparation_area == PreparationArea.BAR
        assert menu.items[4].preparation_area == PreparationArea.KITCHEN

    @pytest.mark.asyncio
    async def test_missing_file_falls_back_to_default_menu(self, tmp_path):
        """Test the built-in cafe menu is used when the YAML file is absent."""
        repository = MenuRepository(InMemoryMenuProvider(menu_file=str(tmp_path / "nope.yaml")))
        menu = await repository.get_menu()

        assert [item.name for item in menu.items] == [item.name for item in DEFAULT_MENU.items]

    @pytest.mark.asyncio
    async def test_packaged_menu(self):
        """Test the packaged menu file loads."""
        menu = await MenuRepository(InMemoryMenuProvider()).get_menu()
        assert menu.find("Latte") is not None

    @pytest.mark.asyncio
    async def test_find_item(self, test_menu_repository):
        """Test Menu.find returns the canonical MenuItem."""
        menu = await test_menu_repository.get_menu()
        item = menu.find("sándwich de pavo")

        assert item is not None
        assert item.name == "Sándwich de pavo"
        assert item.price == 6.50
        assert item.preparation_area == PreparationArea.KITCHEN

    @pytest.mark.asyncio
    async def test_find_item_case_insensitive(self, test_menu_repository):
        """Test Menu.find ignores case and surrounding spaces."""
        menu = await test_menu_repository.get_menu()

        assert menu.find("LATTE").name == "Latte"
        assert menu.find("café americano").name == "Café Americano"
        assert menu.find("  Latte ").name == "Latte"

    @pytest.mark.asyncio
    async def test_find_item_not_found(self, test_menu_repository):
        """Test Menu.find returns None for non-existent item."""
        menu = await test_menu_repository.get_menu()
        assert menu.find("Pizza") is None

    @pytest.mark.asyncio
    async def test_format_menu_text(self, test_menu_repository):
        """Test menu text groups items by preparation area with prices."""
        menu_text = format_menu_text(await test_menu_repository.get_menu())

        assert "BAR:" in menu_text
        assert "KITCHEN:" in menu_text
        assert "Capuchino $3.50 - Espresso con leche espumada" in menu_text
        assert "Ensalada César $7.25" in menu_text
        assert menu_text.index("Brownie") < menu_text.index("KITCHEN:")
