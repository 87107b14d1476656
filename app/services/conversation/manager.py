"""Conversation session manager."""
import asyncio
import logging
from typing import Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.services.conversation.models import ConversationSession
from app.services.conversation.orchestrator import ConversationOrchestrator, TurnResult
from app.services.menu.repository import MenuRepository
from app.services.ordering.extractor import BlockExtractor
from app.services.ordering.finalizer import OrderFinalizer
from app.services.persistence.conversations import ConversationPersistenceService, analytics_state_of
from app.services.persistence.orders import OrderPersistenceService

logger = logging.getLogger(__name__)

# Module-level session storage (persists across requests)
# In production, use Redis or similar
_sessions: Dict[str, ConversationSession] = {}
_locks: Dict[str, asyncio.Lock] = {}


def _lock_for(session_id: str) -> asyncio.Lock:
    lock = _locks.get(session_id)
    if lock is None:
        lock = _locks[session_id] = asyncio.Lock()
    return lock


class ConversationSessionManager:
    """Manages conversation sessions and runs their turns one at a time."""

    def __init__(
        self,
        db: AsyncSession,
        menu_repository: Optional[MenuRepository] = None,
        extractor: Optional[BlockExtractor] = None,
    ):
        self.db = db
        self.conversation_persistence = ConversationPersistenceService(db)
        self.order_persistence = OrderPersistenceService(db)
        self.finalizer = OrderFinalizer(
            order_store=self.order_persistence,
            conversation_store=self.conversation_persistence,
            menu_repository=menu_repository,
        )
        self.orchestrator = ConversationOrchestrator(
            extractor=extractor or BlockExtractor(),
            finalizer=self.finalizer,
            conversation_store=self.conversation_persistence,
        )

    async def create_session(self, session_id: Optional[str] = None) -> ConversationSession:
        """Create a conversation record and its in-memory session."""
        conversation = await self.conversation_persistence.create_session(session_id)
        session = ConversationSession(id=conversation.id)
        _sessions[session.id] = session
        logger.info(f"[SESSION MANAGER] Conversation {session.id} started")
        return session

    async def get_session(self, conversation_id: str) -> Optional[ConversationSession]:
        """Get a session, restoring it from the conversation store if needed."""
        session = _sessions.get(conversation_id)
        if session:
            return session

        conversation = await self.conversation_persistence.get_conversation(conversation_id)
        if not conversation:
            return None

        finalized = bool(conversation.converted and conversation.order_id)
        session = ConversationSession(
            id=conversation.id,
            analytics=analytics_state_of(conversation),
            finalized=finalized,
            linked_order_id=conversation.order_id if finalized else None,
        )
        _sessions[session.id] = session
        logger.info(
            f"[SESSION MANAGER] Restored conversation {session.id} from store - "
            f"State: {session.state}"
        )
        return session

    async def handle_turn(
        self,
        conversation_id: str,
        assistant_text: str,
        customer_text: Optional[str] = None,
    ) -> Optional[TurnResult]:
        """Process one cashier turn. Returns None for an unknown conversation."""
        async with _lock_for(conversation_id):
            session = await self.get_session(conversation_id)
            if not session:
                _locks.pop(conversation_id, None)
                return None
            return await self.orchestrator.handle_turn(session, assistant_text, customer_text)

    async def end_session(self, conversation_id: str) -> bool:
        """
        Drop a conversation's in-memory session and lock.

        The stored conversation and its order are kept, so a later turn rebuilds
        the session through ``get_session``. Returns False if nothing was held.
        """
        lock = _locks.get(conversation_id)
        if lock is not None:
            # Let an in-flight turn finish first
            async with lock:
                session = _sessions.pop(conversation_id, None)
        else:
            session = _sessions.pop(conversation_id, None)
        _locks.pop(conversation_id, None)

        if session is None:
            return False
        logger.info(
            f"[SESSION MANAGER] Conversation {conversation_id} ended - "
            f"State: {session.state}, Turns: {len(session.turns)}"
        )
        return True
