"""In-memory menu provider."""
import logging
import yaml
from pathlib import Path
from typing import Optional
from app.services.menu.base import AddOn, Menu, MenuItem, MenuProvider

logger = logging.getLogger(__name__)


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
                logger.warning(f"[MENU] Menu file {self.menu_file} not found, using an empty menu")
                self._menu = Menu(items=[])
            else:
                with open(self.menu_file, "r") as f:
                    data = yaml.safe_load(f) or {}
                items = [MenuItem(**item) for item in data.get("items", [])]
                categories = data.get("categories") or list(
                    dict.fromkeys(item.category for item in items)
                )
                self._menu = Menu(
                    items=items,
                    categories=categories,
                    addons=[AddOn(**addon) for addon in data.get("addons", [])],
                    sweetness_levels=data.get("sweetness_levels", []),
                    ice_levels=data.get("ice_levels", []),
                )
        return self._menu

    async def get_menu(self) -> Menu:
        """Get the full menu."""
        return await self._load_menu()

    async def validate_item(self, item_name: str) -> bool:
        """Check if an item exists in the menu."""
        return await self.get_item_by_name(item_name) is not None

    async def get_item_by_name(self, item_name: str) -> Optional[MenuItem]:
        """Get a menu item by name."""
        menu = await self._load_menu()
        item_name_lower = item_name.lower().strip()
        for item in menu.items:
            if item.name.lower() == item_name_lower:
                return item
        return None
