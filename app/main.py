"""Main FastAPI application."""
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.core.config import settings
from app.core.logging import setup_logging
from app.db.database import dispose_db, init_db
from app.api import analytics, conversations, health, menu, orders


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    setup_logging()
    await init_db()
    yield
    # Shutdown
    await dispose_db()


app = FastAPI(
    title=f"{settings.shop_name} Ordering",
    description="Conversation-to-order pipeline for the coffee shop cashier, barista queue and owner dashboard",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(health.router, tags=["health"])
app.include_router(conversations.router, tags=["conversations"])
app.include_router(orders.router, tags=["orders"])
app.include_router(analytics.router, tags=["analytics"])
app.include_router(menu.router, tags=["menu"])


def run() -> None:
    """Run the API with uvicorn."""
    import uvicorn

    uvicorn.run("app.main:app", host=settings.host, port=settings.port)
