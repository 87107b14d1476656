"""Order status enumeration and transitions."""
from enum import Enum


class OrderStatus(str, Enum):
    """Statuses an order moves through in the barista queue."""

    PENDING = "pending"  # Submitted, waiting for a barista
    IN_PROGRESS = "in_progress"  # Being prepared
    COMPLETED = "completed"  # Handed to the customer
    CANCELLED = "cancelled"  # Dropped by staff, optionally with a reason

    def __str__(self) -> str:
        """Return the string value of the status."""
        return self.value

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED})

ALLOWED_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.IN_PROGRESS, OrderStatus.COMPLETED, OrderStatus.CANCELLED},
    OrderStatus.IN_PROGRESS: {OrderStatus.COMPLETED, OrderStatus.CANCELLED},
    OrderStatus.COMPLETED: set(),
    OrderStatus.CANCELLED: set(),
}


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    """Whether an order in ``current`` may move to ``target``."""
    return OrderStatus(target) in ALLOWED_TRANSITIONS[OrderStatus(current)]
