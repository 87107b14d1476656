"""Owner dashboard analytics over stored conversations."""
from collections import Counter
from typing import Iterable, List

from pydantic import BaseModel

from app.db.models import Conversation


class OffMenuItemCount(BaseModel):
    """How many conversations asked for an item we don't sell."""

    name: str
    count: int


class UpsellItemStats(BaseModel):
    """Upsell attempts and successes for one item."""

    name: str
    attempts: int
    successes: int
    success_rate: float


class AnalyticsSummary(BaseModel):
    """Conversion and upsell figures for a set of conversations."""

    total_conversations: int = 0
    converted_conversations: int = 0
    conversion_rate: float = 0.0
    off_menu_items: List[OffMenuItemCount] = []
    upsell_items: List[UpsellItemStats] = []
    total_upsell_attempts: int = 0
    total_upsell_successes: int = 0
    overall_upsell_rate: float = 0.0


def _percent(part: int, whole: int) -> float:
    return (part / whole) * 100 if whole > 0 else 0.0


def summarize_conversations(conversations: Iterable[Conversation]) -> AnalyticsSummary:
    """
    Aggregate analytics across conversations.

    Every conversation counts an item at most once per category, since the
    stored arrays are already deduplicated.
    """
    conversations = list(conversations)
    total = len(conversations)
    converted = sum(1 for c in conversations if c.converted)

    off_menu = Counter()
    attempts = Counter()
    successes = Counter()
    for conversation in conversations:
        off_menu.update(set(conversation.off_menu_requests or []))
        attempts.update(set(conversation.upsell_attempts or []))
        successes.update(set(conversation.upsell_successes or []))

    off_menu_items = [
        OffMenuItemCount(name=name, count=count)
        for name, count in sorted(off_menu.items(), key=lambda kv: (-kv[1], kv[0]))
    ]
    upsell_items = [
        UpsellItemStats(
            name=name,
            attempts=count,
            successes=successes[name],
            success_rate=_percent(successes[name], count),
        )
        for name, count in sorted(attempts.items(), key=lambda kv: (-kv[1], kv[0]))
    ]

    total_attempts = sum(attempts.values())
    total_successes = sum(successes.values())

    return AnalyticsSummary(
        total_conversations=total,
        converted_conversations=converted,
        conversion_rate=_percent(converted, total),
        off_menu_items=off_menu_items,
        upsell_items=upsell_items,
        total_upsell_attempts=total_attempts,
        total_upsell_successes=total_successes,
        overall_upsell_rate=_percent(total_successes, total_attempts),
    )
