"""Menu repository."""
from typing import Optional
from app.services.menu.base import Menu, MenuItem, MenuProvider


class MenuRepository:
    """Repository for menu operations."""

    def __init__(self, provider: MenuProvider):
        self.provider = provider

    async def get_menu(self) -> Menu:
        """Get the full menu."""
        return await self.provider.get_menu()

    async def validate_item(self, item_name: str) -> bool:
        """Check if an item exists."""
        return await self.provider.validate_item(item_name)

    async def get_item_by_name(self, item_name: str) -> Optional[MenuItem]:
        """Get item by name."""
        return await self.provider.get_item_by_name(item_name)

    async def menu_price(self, item_name: str, size: Optional[str] = None) -> Optional[float]:
        """Base price of an item in a size, or None if the item or price is unknown."""
        item = await self.get_item_by_name(item_name)
        return item.price_for(size) if item else None

    async def get_menu_text(self) -> str:
        """Get menu as formatted text for the cashier model's context."""
        menu = await self.get_menu()
        lines = ["Menu:"]
        for category in menu.categories:
            lines.append(f"\n{category.title()}:")
            for item in menu.items:
                if item.category != category:
                    continue
                if item.sizes:
                    price_str = " " + ", ".join(f"{size} ${price:.2f}" for size, price in item.sizes.items())
                elif item.price is not None:
                    price_str = f" ${item.price:.2f}"
                else:
                    price_str = ""
                temps_str = f" ({'/'.join(item.temperatures)})" if item.temperatures else ""
                desc_str = f" - {item.description}" if item.description else ""
                lines.append(f"  - {item.name}{temps_str}{price_str}{desc_str}")

        if menu.addons:
            lines.append("\nAdd-ons:")
            for addon in menu.addons:
                lines.append(f"  - {addon.name} +${addon.price:.2f}")
        if menu.sweetness_levels:
            lines.append(f"\nSweetness: {', '.join(menu.sweetness_levels)}")
        if menu.ice_levels:
            lines.append(f"Ice: {', '.join(menu.ice_levels)}")
        return "\n".join(lines)
