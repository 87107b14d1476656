"""Live cart reconciliation."""
from decimal import Decimal
from typing import List, Optional

from app.services.ordering.models import CartItem
from app.services.ordering.pricing import round_money


class CartReconciler:
    """Keeps the current cart in step with the cashier's snapshots.

    Every snapshot is the complete cart as of its turn, so a new snapshot
    replaces the previous cart wholesale; nothing is merged or accumulated.
    """

    @staticmethod
    def update(
        previous_cart: List[CartItem], snapshot: Optional[List[CartItem]]
    ) -> List[CartItem]:
        """Return the cart after a turn that may or may not carry a snapshot."""
        if snapshot is None:
            return list(previous_cart)
        return [item.model_copy() for item in snapshot]

    @staticmethod
    def subtotal(cart: List[CartItem]) -> float:
        """Sum of unit price times quantity, rounded to cents."""
        return round_money(
            sum((Decimal(str(item.unit_price)) * item.quantity for item in cart), Decimal("0"))
        )
