"""Order finalization."""
import logging
from dataclasses import dataclass
from typing import Optional

from app.core.exceptions import OrderSubmissionError, OrderValidationError
from app.db.models import Order
from app.services.conversation.models import ConversationSession
from app.services.menu.repository import MenuRepository
from app.services.ordering.models import OrderDraft
from app.services.ordering.pricing import calculate_pricing
from app.services.persistence.conversations import ConversationPersistenceService
from app.services.persistence.orders import OrderPersistenceService

logger = logging.getLogger(__name__)


@dataclass
class FinalizeResult:
    """Order linked to the session, and whether this call created the link."""

    order: Optional[Order]
    created: bool


class OrderFinalizer:
    """Turns a confirmed draft into at most one stored order per session."""

    def __init__(
        self,
        order_store: OrderPersistenceService,
        conversation_store: Optional[ConversationPersistenceService] = None,
        menu_repository: Optional[MenuRepository] = None,
        tax_rate: Optional[float] = None,
    ):
        self.order_store = order_store
        self.conversation_store = conversation_store
        self.menu_repository = menu_repository
        self.tax_rate = tax_rate

    async def finalize(self, session: ConversationSession, draft: OrderDraft) -> FinalizeResult:
        """
        Validate, price and submit a confirmed order for the session.

        A session that is already finalized is left alone and its existing
        order is returned, however many times the confirmation is seen.

        Raises:
            OrderValidationError: the draft has no items
            OrderSubmissionError: the order store failed; the session stays open
        """
        if session.finalized:
            logger.info(
                f"[FINALIZER] Session {session.id} already finalized with order "
                f"{session.linked_order_id}, ignoring repeated confirmation"
            )
            return FinalizeResult(order=await self._lookup(session.linked_order_id), created=False)

        if not draft.items:
            logger.warning(f"[FINALIZER] Rejecting empty order draft - Session: {session.id}")
            raise OrderValidationError("Order must contain at least one item")

        await self._check_menu(draft)
        pricing = calculate_pricing(draft.items, self.tax_rate)

        try:
            order, created = await self.order_store.insert_order(
                draft, pricing, conversation_id=session.id
            )
        except Exception as e:
            logger.error(
                f"[FINALIZER] Order submission failed - Session: {session.id}, "
                f"Error: {type(e).__name__}: {str(e)}",
                exc_info=True,
            )
            raise OrderSubmissionError(
                "We couldn't place your order just now. Please try again.",
                details={"cause": type(e).__name__},
            ) from e

        session.mark_finalized(order.id)
        if created:
            logger.info(
                f"[FINALIZER] Order #{order.order_number} placed - Session: {session.id}, "
                f"Items: {len(draft.items)}, Subtotal: {pricing.subtotal:.2f}, "
                f"Tax: {pricing.tax:.2f}, Total: {pricing.total:.2f}"
            )
        else:
            logger.info(
                f"[FINALIZER] Session {session.id} linked to stored order #{order.order_number}"
            )

        await self._record_conversion(session.id, order.id)
        return FinalizeResult(order=order, created=created)

    async def _lookup(self, order_id: Optional[str]) -> Optional[Order]:
        if not order_id:
            return None
        try:
            return await self.order_store.get_order(order_id)
        except Exception as e:
            logger.warning(
                f"[FINALIZER] Could not load linked order {order_id} - "
                f"Error: {type(e).__name__}: {str(e)}"
            )
            return None

    async def _check_menu(self, draft: OrderDraft) -> None:
        if not self.menu_repository:
            return
        # Mismatches are logged, never rejected
        for line in draft.items:
            if not await self.menu_repository.validate_item(line.name):
                logger.warning(f"[FINALIZER] Confirmed item '{line.name}' is not on the menu")
                continue
            menu_price = await self.menu_repository.menu_price(line.name, line.size)
            if menu_price is not None and abs(menu_price - line.base_price) >= 0.005:
                logger.warning(
                    f"[FINALIZER] Base price {line.base_price:.2f} for '{line.name}' "
                    f"({line.size or 'no size'}) differs from menu price {menu_price:.2f}"
                )

    async def _record_conversion(self, session_id: str, order_id: str) -> None:
        if not self.conversation_store:
            return
        try:
            await self.conversation_store.mark_converted(session_id, order_id)
        except Exception as e:
            logger.error(
                f"[FINALIZER] Failed to mark conversation {session_id} converted - "
                f"Error: {type(e).__name__}: {str(e)}",
                exc_info=True,
            )
