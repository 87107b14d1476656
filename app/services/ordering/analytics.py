"""Analytics event deduplication."""
from typing import Iterable, Optional, Set

from app.services.ordering.models import AnalyticsEvent, AnalyticsState

CATEGORIES = ("off_menu_requests", "upsell_attempts", "upsell_successes")


def normalize_item_name(name: str) -> Optional[str]:
    """Collapse whitespace and lower-case; blank names become None."""
    if not isinstance(name, str):
        return None
    normalized = " ".join(name.split()).lower()
    return normalized or None


def _normalized(names: Iterable[str]) -> Set[str]:
    return {n for n in (normalize_item_name(name) for name in names) if n}


class AnalyticsDeduplicator:
    """Folds incremental analytics events into a conversation's sets.

    Each category is a plain set union, so re-reporting a name is a no-op,
    delivery order does not matter and merging the same event twice gives the
    same result as merging it once. Categories are independent: a name may be
    both an off-menu request and an upsell attempt.
    """

    @staticmethod
    def merge(existing: AnalyticsState, event: AnalyticsEvent) -> AnalyticsState:
        """Return the union of the existing sets and the event's names."""
        return AnalyticsState(
            **{
                category: _normalized(getattr(existing, category))
                | _normalized(getattr(event, category))
                for category in CATEGORIES
            }
        )

    @staticmethod
    def from_lists(
        off_menu_requests: Optional[Iterable[str]] = None,
        upsell_attempts: Optional[Iterable[str]] = None,
        upsell_successes: Optional[Iterable[str]] = None,
    ) -> AnalyticsState:
        """Build a state from stored JSON arrays, which may be null."""
        return AnalyticsState(
            off_menu_requests=_normalized(off_menu_requests or []),
            upsell_attempts=_normalized(upsell_attempts or []),
            upsell_successes=_normalized(upsell_successes or []),
        )
