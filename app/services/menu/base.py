"""Menu provider interface."""
from abc import ABC, abstractmethod
from typing import Dict, List, Optional
from pydantic import BaseModel


class MenuItem(BaseModel):
    """Menu item model."""

    name: str
    category: str
    description: Optional[str] = None
    sizes: Dict[str, float] = {}  # Size name -> price, for drinks
    price: Optional[float] = None  # Flat price, for pastries
    temperatures: List[str] = []

    def price_for(self, size: Optional[str] = None) -> Optional[float]:
        """Base price for a size, or the flat price."""
        if size and size in self.sizes:
            return self.sizes[size]
        return self.price


class AddOn(BaseModel):
    """Add-on or substitution with its surcharge."""

    name: str
    price: float = 0.0
    category: str


class Menu(BaseModel):
    """Menu model."""

    items: List[MenuItem]
    categories: List[str] = []
    addons: List[AddOn] = []
    sweetness_levels: List[str] = []
    ice_levels: List[str] = []


class MenuProvider(ABC):
    """Abstract base class for menu providers."""

    @abstractmethod
    async def get_menu(self) -> Menu:
        """Get the full menu."""
        pass

    @abstractmethod
    async def validate_item(self, item_name: str) -> bool:
        """Check if an item exists in the menu."""
        pass

    @abstractmethod
    async def get_item_by_name(self, item_name: str) -> Optional[MenuItem]:
        """Get a menu item by name."""
        pass
