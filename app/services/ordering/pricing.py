"""Order pricing."""
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional

from app.core.config import settings
from app.services.ordering.models import OrderLine

CENT = Decimal("0.01")


def _to_decimal(value) -> Decimal:
    # str() avoids binary float artefacts such as 0.1 -> 0.1000000000000000055...
    return value if isinstance(value, Decimal) else Decimal(str(value))


def round_money(value) -> float:
    """Round half-up to two decimals."""
    return float(_to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class OrderPricing:
    """Canonical totals for an order."""

    subtotal: float
    tax: float
    total: float


def calculate_pricing(items: Iterable[OrderLine], tax_rate: Optional[float] = None) -> OrderPricing:
    """
    Compute subtotal, tax and total for order lines.

    Each step is rounded once and the next step starts from the rounded
    value: subtotal = round(sum(total_price * quantity)), tax =
    round(subtotal * rate), total = round(subtotal + tax).
    """
    rate = _to_decimal(settings.tax_rate if tax_rate is None else tax_rate)

    subtotal = sum(
        (_to_decimal(item.total_price) * item.quantity for item in items),
        Decimal("0"),
    ).quantize(CENT, rounding=ROUND_HALF_UP)
    tax = (subtotal * rate).quantize(CENT, rounding=ROUND_HALF_UP)
    total = (subtotal + tax).quantize(CENT, rounding=ROUND_HALF_UP)

    return OrderPricing(subtotal=float(subtotal), tax=float(tax), total=float(total))
