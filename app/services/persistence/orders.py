"""Order persistence service."""
import logging
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import desc, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import InvalidStatusTransitionError
from app.db.models import Order, utcnow
from app.services.ordering.models import OrderDraft
from app.services.ordering.pricing import OrderPricing
from app.services.ordering.status import OrderStatus, can_transition

logger = logging.getLogger(__name__)


class OrderPersistenceService:
    """Service for persisting order data."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def insert_order(
        self,
        draft: OrderDraft,
        pricing: OrderPricing,
        conversation_id: Optional[str] = None,
    ) -> Tuple[Order, bool]:
        """
        Insert a priced order, or return the one already stored for the conversation.

        The order number is assigned by the database sequence.

        Returns:
            The order and True if this call inserted it
        """
        if conversation_id:
            existing = await self.get_order_by_conversation(conversation_id)
            if existing:
                logger.info(
                    f"[ORDER STORE] Conversation {conversation_id} already has order "
                    f"#{existing.order_number}, not inserting another"
                )
                return existing, False

        order = Order(
            conversation_id=conversation_id,
            customer_name=draft.customer_name,
            items=[item.model_dump(by_alias=True) for item in draft.items],
            subtotal=pricing.subtotal,
            tax=pricing.tax,
            total=pricing.total,
            status=OrderStatus.PENDING.value,
        )
        self.db.add(order)
        try:
            await self.db.commit()
        except IntegrityError:
            # Lost a race with a concurrent insert for the same conversation
            await self.db.rollback()
            if conversation_id:
                existing = await self.get_order_by_conversation(conversation_id)
                if existing:
                    return existing, False
            raise
        except Exception:
            await self.db.rollback()
            raise
        await self.db.refresh(order)
        return order, True

    async def get_order(self, order_id: str) -> Optional[Order]:
        """Get order by ID."""
        result = await self.db.execute(select(Order).where(Order.id == order_id))
        return result.scalar_one_or_none()

    async def get_order_by_conversation(self, conversation_id: str) -> Optional[Order]:
        """Get the order placed in a conversation, if any."""
        result = await self.db.execute(
            select(Order).where(Order.conversation_id == conversation_id)
        )
        return result.scalar_one_or_none()

    async def update_status(
        self, order_id: str, status: OrderStatus, reason: Optional[str] = None
    ) -> Optional[Order]:
        """
        Move an order to a new status.

        Returns None if the order does not exist. Setting the current status
        again leaves the order untouched.

        Raises:
            InvalidStatusTransitionError: if the transition is not allowed
        """
        status = OrderStatus(status)
        order = await self.get_order(order_id)
        if not order:
            return None

        current = OrderStatus(order.status)
        if current == status:
            return order
        if not can_transition(current, status):
            raise InvalidStatusTransitionError(current.value, status.value)

        order.status = status.value
        if status.is_terminal:
            order.completed_at = utcnow()
        if status == OrderStatus.CANCELLED and reason:
            order.cancel_reason = reason
        try:
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        await self.db.refresh(order)
        return order

    async def list_orders(
        self,
        status: Optional[OrderStatus] = None,
        created_from: Optional[datetime] = None,
        created_to: Optional[datetime] = None,
        limit: int = 100,
    ) -> List[Order]:
        """List orders, newest first."""
        query = select(Order).order_by(desc(Order.created_at), desc(Order.order_number))
        if status:
            query = query.where(Order.status == OrderStatus(status).value)
        if created_from:
            query = query.where(Order.created_at >= created_from)
        if created_to:
            query = query.where(Order.created_at <= created_to)
        result = await self.db.execute(query.limit(limit))
        return list(result.scalars().all())
