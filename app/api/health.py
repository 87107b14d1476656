"""Health check endpoint."""
import logging
from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.db.database import check_db, get_db

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health")
async def health_check(request: Request, db: AsyncSession = Depends(get_db)):
    """Service health, including whether the order store is reachable."""
    logger.debug(
        f"[HEALTH] Health check requested - Client: {request.client.host if request.client else 'unknown'}"
    )
    database_ok = await check_db(db)
    return {
        "status": "healthy" if database_ok else "degraded",
        "service": settings.shop_name,
        "database": "ok" if database_ok else "unavailable",
    }
