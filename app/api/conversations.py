"""Conversation and turn API endpoints."""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Response
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.orders import OrderResponse, order_response
from app.core.dependencies import get_session_manager
from app.db.database import get_db
from app.services.conversation.manager import ConversationSessionManager
from app.services.conversation.models import ConversationSession, SessionState, Turn
from app.services.ordering.cart import CartReconciler
from app.services.ordering.models import CartItem
from app.services.persistence.conversations import ConversationPersistenceService


router = APIRouter()
logger = logging.getLogger(__name__)


class ConversationCreateRequest(BaseModel):
    """New conversation request."""
    session_id: Optional[str] = None


class AnalyticsSets(BaseModel):
    """Analytics sets as sorted lists."""
    off_menu_requests: List[str] = []
    upsell_attempts: List[str] = []
    upsell_successes: List[str] = []


class ConversationResponse(BaseModel):
    """Live conversation session view."""
    id: str
    state: SessionState
    finalized: bool
    linked_order_id: Optional[str] = None
    turns: List[Turn] = []
    cart: List[CartItem] = []
    cart_subtotal: float = 0.0
    analytics: AnalyticsSets


class ConversationRecordResponse(BaseModel):
    """Stored conversation record."""
    id: str
    session_id: Optional[str] = None
    started_at: datetime
    converted: bool
    order_id: Optional[str] = None
    off_menu_requests: List[str] = []
    upsell_attempts: List[str] = []
    upsell_successes: List[str] = []

    model_config = ConfigDict(from_attributes=True)


class TurnRequest(BaseModel):
    """A cashier reply, with the customer message that prompted it."""
    assistant_text: str
    customer_text: Optional[str] = None


class TurnResponse(BaseModel):
    """Result of processing one cashier turn."""
    display_text: str
    cart: List[CartItem] = []
    cart_subtotal: float = 0.0
    analytics: AnalyticsSets
    analytics_changed: bool = False
    order: Optional[OrderResponse] = None
    order_created: bool = False
    finalized: bool = False
    error: Optional[Dict[str, Any]] = None
    segments: Dict[str, str] = Field(default_factory=dict)


def conversation_response(session: ConversationSession) -> ConversationResponse:
    """Convert a session to its API model."""
    return ConversationResponse(
        id=session.id,
        state=session.state,
        finalized=session.finalized,
        linked_order_id=session.linked_order_id,
        turns=session.turns,
        cart=session.cart,
        cart_subtotal=CartReconciler.subtotal(session.cart),
        analytics=AnalyticsSets(**session.analytics.as_lists()),
    )


@router.post("/api/conversations", response_model=ConversationResponse, status_code=201)
async def create_conversation(
    payload: Optional[ConversationCreateRequest] = None,
    session_manager: ConversationSessionManager = Depends(get_session_manager),
):
    """Start a conversation for a new customer."""
    try:
        session = await session_manager.create_session(payload.session_id if payload else None)
    except Exception as e:
        logger.error(
            f"[CONVERSATIONS] Error creating conversation - Error: {type(e).__name__}: {str(e)}",
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Failed to create conversation")
    return conversation_response(session)


@router.get("/api/conversations", response_model=List[ConversationRecordResponse])
async def list_conversations(
    started_from: Optional[datetime] = Query(None, alias="from"),
    started_to: Optional[datetime] = Query(None, alias="to"),
    db: AsyncSession = Depends(get_db),
):
    """List stored conversations, newest first."""
    conversations = await ConversationPersistenceService(db).list_sessions(
        started_from=started_from, started_to=started_to
    )
    logger.info(f"[CONVERSATIONS] Found {len(conversations)} conversations")
    return conversations


@router.get("/api/conversations/{conversation_id}", response_model=ConversationResponse)
async def get_conversation(
    conversation_id: str,
    session_manager: ConversationSessionManager = Depends(get_session_manager),
):
    """Get the live view of a conversation."""
    session = await session_manager.get_session(conversation_id)
    if not session:
        raise HTTPException(status_code=404, detail=f"Conversation {conversation_id} not found")
    return conversation_response(session)


@router.delete("/api/conversations/{conversation_id}", status_code=204)
async def end_conversation(
    conversation_id: str,
    session_manager: ConversationSessionManager = Depends(get_session_manager),
):
    """End the live session for a conversation. The stored record is kept."""
    if not await session_manager.end_session(conversation_id):
        conversation = await session_manager.conversation_persistence.get_conversation(conversation_id)
        if not conversation:
            raise HTTPException(status_code=404, detail=f"Conversation {conversation_id} not found")
    logger.info(f"[CONVERSATIONS] Ended conversation {conversation_id}")
    return Response(status_code=204)


@router.post("/api/conversations/{conversation_id}/turns", response_model=TurnResponse)
async def post_turn(
    conversation_id: str,
    turn: TurnRequest,
    session_manager: ConversationSessionManager = Depends(get_session_manager),
):
    """
    Process one cashier turn.

    Order validation and submission failures do not fail the request: they
    come back in ``error`` so the chat client can show a transient notice and
    let the customer re-send.
    """
    logger.info(
        f"[TURN] Received turn - Conversation: {conversation_id}, "
        f"assistant text length: {len(turn.assistant_text)}"
    )
    result = await session_manager.handle_turn(
        conversation_id, turn.assistant_text, customer_text=turn.customer_text
    )
    if result is None:
        raise HTTPException(status_code=404, detail=f"Conversation {conversation_id} not found")

    logger.info(
        f"[TURN] Processed - Conversation: {conversation_id}, segments: {result.segments}, "
        f"cart items: {len(result.cart)}, finalized: {result.finalized}"
    )
    return TurnResponse(
        display_text=result.display_text,
        cart=result.cart,
        cart_subtotal=result.cart_subtotal,
        analytics=AnalyticsSets(**result.analytics.as_lists()),
        analytics_changed=result.analytics_changed,
        order=order_response(result.order) if result.order else None,
        order_created=result.order_created,
        finalized=result.finalized,
        error=result.error,
        segments=result.segments,
    )
