"""Per-turn orchestration of extraction, cart, analytics and finalization."""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from app.core.exceptions import OrderingError
from app.db.models import Order
from app.services.conversation.models import ConversationSession, Speaker
from app.services.ordering.analytics import AnalyticsDeduplicator
from app.services.ordering.cart import CartReconciler
from app.services.ordering.extractor import BlockExtractor
from app.services.ordering.finalizer import OrderFinalizer
from app.services.ordering.models import AnalyticsEvent, AnalyticsState, CartItem
from app.services.persistence.conversations import ConversationPersistenceService

logger = logging.getLogger(__name__)


@dataclass
class TurnResult:
    """What the customer-facing layer needs after one cashier turn."""

    display_text: str
    cart: List[CartItem]
    cart_subtotal: float
    analytics: AnalyticsState
    analytics_changed: bool = False
    order: Optional[Order] = None
    order_created: bool = False
    finalized: bool = False
    error: Optional[Dict[str, Any]] = None
    segments: Dict[str, str] = field(default_factory=dict)


class ConversationOrchestrator:
    """Runs one cashier turn through the ordering pipeline.

    Open sessions may place an order; finalized sessions ignore further order
    blocks but keep updating the cart and analytics.
    """

    def __init__(
        self,
        extractor: BlockExtractor,
        finalizer: OrderFinalizer,
        conversation_store: Optional[ConversationPersistenceService] = None,
    ):
        self.extractor = extractor
        self.finalizer = finalizer
        self.conversation_store = conversation_store

    async def handle_turn(
        self,
        session: ConversationSession,
        raw_assistant_text: str,
        customer_text: Optional[str] = None,
    ) -> TurnResult:
        """Process the cashier's reply (and the customer message that prompted it)."""
        turns_before = len(session.turns)
        if customer_text:
            session.add_turn(Speaker.CUSTOMER, customer_text)
        session.add_turn(Speaker.CASHIER, raw_assistant_text)

        extracted = self.extractor.extract(raw_assistant_text)

        session.cart = CartReconciler.update(
            session.cart, extracted.cart.payload if extracted.cart.is_present else None
        )

        analytics_changed = False
        if extracted.analytics.is_present:
            analytics_changed = await self._merge_analytics(session, extracted.analytics.payload)

        result = TurnResult(
            display_text=extracted.conversational_text,
            cart=list(session.cart),
            cart_subtotal=CartReconciler.subtotal(session.cart),
            analytics=session.analytics,
            analytics_changed=analytics_changed,
            segments={
                "cart": str(extracted.cart.status),
                "analytics": str(extracted.analytics.status),
                "order": str(extracted.order.status),
            },
        )

        if extracted.order.is_present:
            try:
                outcome = await self.finalizer.finalize(session, extracted.order.payload)
                result.order = outcome.order
                result.order_created = outcome.created
            except OrderingError as e:
                logger.warning(
                    f"[ORCHESTRATOR] Order not placed - Session: {session.id}, "
                    f"Error: {type(e).__name__}: {e.message}"
                )
                result.error = e.to_dict()
                # Leave the history as it was so the same turn can be sent again
                del session.turns[turns_before:]

        result.finalized = session.finalized
        return result

    async def _merge_analytics(self, session: ConversationSession, event: AnalyticsEvent) -> bool:
        merged = AnalyticsDeduplicator.merge(session.analytics, event)
        if merged == session.analytics:
            return False
        session.analytics = merged

        if self.conversation_store:
            try:
                await self.conversation_store.merge_analytics(session.id, event)
            except Exception as e:
                logger.error(
                    f"[ORCHESTRATOR] Failed to persist analytics - Session: {session.id}, "
                    f"Error: {type(e).__name__}: {str(e)}",
                    exc_info=True,
                )
        return True
