"""Ordering error types.

Errors carry a ``retryable`` flag so the customer-facing layer can decide
whether to invite the customer to re-send the same turn.
"""
from typing import Any, Dict, Optional


class OrderingError(Exception):
    """Base class for ordering errors."""

    retryable: bool = False

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a dict suitable for an API response."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }


class OrderValidationError(OrderingError):
    """A confirmed order draft cannot be submitted as-is (e.g. no items)."""


class OrderSubmissionError(OrderingError):
    """The order store rejected or failed the insert.

    The session stays open, so the same draft can be submitted again.
    """

    retryable = True


class InvalidStatusTransitionError(OrderingError):
    """Requested order status change is not allowed from the current status."""

    def __init__(self, current: str, target: str):
        super().__init__(
            f"Cannot change order status from '{current}' to '{target}'",
            details={"current": current, "target": target},
        )
        self.current = current
        self.target = target
