"""Side-channel block extraction from cashier turns.

The cashier model answers in free text and, when it has something structured
to report, appends fenced blocks labelled ``cart``, ``analytics`` or ``json``
(the confirmed order)::

    Great choice! Anything else?

    ```cart
    [{"name": "Latte", "size": "Large", "quantity": 1, "unitPrice": 5.0}]
    ```

Each block is parsed independently. A block that cannot be parsed is reported
as malformed and never affects the others or the conversational text.
"""
import json
import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Generic, List, Optional, Tuple, TypeVar

from pydantic import TypeAdapter, ValidationError

from app.core.config import settings
from app.services.ordering.models import AnalyticsEvent, CartItem, OrderDraft

logger = logging.getLogger(__name__)

T = TypeVar("T")

CART = "cart"
ANALYTICS = "analytics"
ORDER = "order"

_ORDER_CONFIRMATION_KEYS = ("order_confirmed", "orderConfirmed", "confirmed")

_cart_adapter = TypeAdapter(List[CartItem])


class SegmentStatus(str, Enum):
    """Outcome of parsing one side-channel block."""

    PRESENT = "present"
    ABSENT = "absent"
    MALFORMED = "malformed"

    def __str__(self) -> str:
        return self.value


@dataclass
class Segment(Generic[T]):
    """Parsed block: present with a payload, absent, or malformed with an error."""

    status: SegmentStatus
    payload: Optional[T] = None
    error: Optional[str] = None
    truncated: bool = False

    @property
    def is_present(self) -> bool:
        return self.status == SegmentStatus.PRESENT

    @classmethod
    def present(cls, payload: T, truncated: bool = False) -> "Segment[T]":
        return cls(SegmentStatus.PRESENT, payload=payload, truncated=truncated)

    @classmethod
    def absent(cls) -> "Segment[T]":
        return cls(SegmentStatus.ABSENT)

    @classmethod
    def malformed(cls, error: str, truncated: bool = False) -> "Segment[T]":
        return cls(SegmentStatus.MALFORMED, error=error, truncated=truncated)


@dataclass
class ExtractedTurn:
    """A cashier turn split into display text and side-channel blocks."""

    conversational_text: str
    cart: Segment[List[CartItem]]
    analytics: Segment[AnalyticsEvent]
    order: Segment[OrderDraft]


class BlockExtractor:
    """Splits raw cashier text into conversational text and typed blocks."""

    def __init__(
        self,
        cart_label: Optional[str] = None,
        analytics_label: Optional[str] = None,
        order_label: Optional[str] = None,
    ):
        self._kinds: Dict[str, str] = {
            (cart_label or settings.cart_block_label).lower(): CART,
            (analytics_label or settings.analytics_block_label).lower(): ANALYTICS,
            (order_label or settings.order_block_label).lower(): ORDER,
        }
        labels = "|".join(re.escape(label) for label in self._kinds)
        # A label only opens a block when the line ends or the JSON starts
        # right after it, so "``` Cart updated" is prose after a closing fence.
        label_end = r"\b(?=[ \t]*(?:\r?\n|[\[{]|\Z))"
        labelled = r"[ \t]*(?:" + labels + r")" + label_end
        opener = r"```" + labelled
        # A block ends at its closing fence, at the next recognised opener
        # (closing fence lost) or at end of text (turn cut off).
        self._fence = re.compile(
            r"```[ \t]*(?P<label>" + labels + r")" + label_end + r"(?P<body>.*?)"
            r"(?P<close>```(?!" + labelled + r")|(?=" + opener + r")|\Z)[ \t]*",
            re.DOTALL | re.IGNORECASE,
        )

    def extract(self, raw_text: Optional[str]) -> ExtractedTurn:
        """Extract blocks from one cashier turn. Never raises."""
        text = raw_text or ""
        bodies: Dict[str, Tuple[str, bool]] = {}

        for match in self._fence.finditer(text):
            kind = self._kinds[match.group("label").lower()]
            truncated = not match.group("close")
            if kind in bodies:
                logger.debug(f"[EXTRACTOR] Ignoring repeated {kind} block")
                continue
            bodies[kind] = (match.group("body"), truncated)
            if truncated:
                logger.info(f"[EXTRACTOR] {kind} block has no closing fence, parsing best-effort")

        conversational_text = self._collapse_whitespace(self._fence.sub("\n\n", text))

        return ExtractedTurn(
            conversational_text=conversational_text,
            cart=self._parse(CART, bodies.get(CART), self._to_cart),
            analytics=self._parse(ANALYTICS, bodies.get(ANALYTICS), self._to_analytics),
            order=self._parse(ORDER, bodies.get(ORDER), self._to_order),
        )

    def _parse(self, kind: str, found: Optional[Tuple[str, bool]], convert) -> Segment:
        if found is None:
            return Segment.absent()
        body, truncated = found
        try:
            data = self._load_json(body, truncated)
            payload = convert(data)
        except (ValueError, ValidationError) as e:
            logger.warning(
                f"[EXTRACTOR] Malformed {kind} block (truncated={truncated}) - "
                f"Error: {type(e).__name__}: {str(e)}"
            )
            return Segment.malformed(str(e), truncated=truncated)
        if payload is None:
            return Segment.absent()
        return Segment.present(payload, truncated=truncated)

    @staticmethod
    def _load_json(body: str, truncated: bool) -> Any:
        body = body.strip()
        if truncated:
            # The turn may have been cut inside the closing fence
            body = body.rstrip("`").rstrip()
        # raw_decode tolerates stray text after the JSON value
        data, _ = json.JSONDecoder().raw_decode(body)
        return data

    @staticmethod
    def _to_cart(data: Any) -> List[CartItem]:
        return _cart_adapter.validate_python(data)

    @staticmethod
    def _to_analytics(data: Any) -> AnalyticsEvent:
        if not isinstance(data, dict):
            raise ValueError("analytics block must be a JSON object")
        return AnalyticsEvent.model_validate(data)

    @staticmethod
    def _to_order(data: Any) -> Optional[OrderDraft]:
        if not isinstance(data, dict):
            raise ValueError("order block must be a JSON object")
        if not any(data.get(key) is True for key in _ORDER_CONFIRMATION_KEYS):
            logger.debug("[EXTRACTOR] Order block without explicit confirmation, ignoring")
            return None
        return OrderDraft.model_validate(data)

    @staticmethod
    def _collapse_whitespace(text: str) -> str:
        text = re.sub(r"[ \t]+\n", "\n", text)
        text = re.sub(r"\n{3,}", "\n\n", text)
        return text.strip()
