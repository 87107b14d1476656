"""Conversation persistence service."""
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models import Conversation
from app.services.ordering.analytics import AnalyticsDeduplicator
from app.services.ordering.models import AnalyticsEvent, AnalyticsState

logger = logging.getLogger(__name__)


def analytics_state_of(conversation: Conversation) -> AnalyticsState:
    """Analytics sets stored on a conversation row."""
    return AnalyticsDeduplicator.from_lists(
        conversation.off_menu_requests,
        conversation.upsell_attempts,
        conversation.upsell_successes,
    )


class ConversationPersistenceService:
    """Service for persisting conversations and their analytics."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_session(self, session_id: Optional[str] = None) -> Conversation:
        """Create a new conversation record."""
        conversation = Conversation(session_id=session_id, converted=False)
        self.db.add(conversation)
        await self._commit()
        await self.db.refresh(conversation)
        return conversation

    async def get_conversation(self, conversation_id: str) -> Optional[Conversation]:
        """Get conversation by ID."""
        result = await self.db.execute(
            select(Conversation).where(Conversation.id == conversation_id)
        )
        return result.scalar_one_or_none()

    async def merge_analytics(
        self, conversation_id: str, event: AnalyticsEvent
    ) -> Optional[Conversation]:
        """Union an analytics event into the stored sets."""
        conversation = await self.get_conversation(conversation_id)
        if not conversation:
            logger.warning(f"[CONVERSATION STORE] Conversation {conversation_id} not found for analytics")
            return None

        existing = analytics_state_of(conversation)
        merged = AnalyticsDeduplicator.merge(existing, event)
        if merged == existing:
            return conversation

        lists = merged.as_lists()
        conversation.off_menu_requests = lists["off_menu_requests"]
        conversation.upsell_attempts = lists["upsell_attempts"]
        conversation.upsell_successes = lists["upsell_successes"]
        await self._commit()
        await self.db.refresh(conversation)
        return conversation

    async def mark_converted(self, conversation_id: str, order_id: str) -> Optional[Conversation]:
        """Record that the conversation produced an order."""
        conversation = await self.get_conversation(conversation_id)
        if conversation:
            conversation.converted = True
            conversation.order_id = order_id
            await self._commit()
            await self.db.refresh(conversation)
        return conversation

    async def list_sessions(
        self,
        started_from: Optional[datetime] = None,
        started_to: Optional[datetime] = None,
    ) -> List[Conversation]:
        """List conversations, newest first."""
        query = select(Conversation).order_by(desc(Conversation.started_at))
        if started_from:
            query = query.where(Conversation.started_at >= started_from)
        if started_to:
            query = query.where(Conversation.started_at <= started_to)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def _commit(self) -> None:
        try:
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
