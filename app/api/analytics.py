"""Owner analytics API endpoints."""
import logging
from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.database import get_db
from app.services.analytics.summary import AnalyticsSummary, summarize_conversations
from app.services.persistence.conversations import ConversationPersistenceService


router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/api/analytics", response_model=AnalyticsSummary)
async def get_analytics(
    started_from: Optional[datetime] = Query(None, alias="from"),
    started_to: Optional[datetime] = Query(None, alias="to"),
    db: AsyncSession = Depends(get_db),
):
    """Conversion and upsell summary over conversations started in a time range."""
    logger.info(f"[ANALYTICS] Summary requested - from: {started_from}, to: {started_to}")
    try:
        conversations = await ConversationPersistenceService(db).list_sessions(
            started_from=started_from, started_to=started_to
        )
    except Exception as e:
        logger.error(
            f"[ANALYTICS] Error fetching conversations - Error: {type(e).__name__}: {str(e)}",
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Failed to fetch analytics")

    summary = summarize_conversations(conversations)
    logger.info(
        f"[ANALYTICS] {summary.total_conversations} conversations, "
        f"{summary.converted_conversations} converted"
    )
    return summary
