"""Shared test fixtures and configuration."""
import pytest
import os
from pathlib import Path
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

# Set test environment variables before importing app
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SHOP_NAME", "Test Coffee")

from app.main import app
from app.db.database import get_db
from app.db.models import Base
from app.core.dependencies import get_menu_repository
from app.services.conversation import manager as session_manager
from app.services.conversation.models import ConversationSession
from app.services.menu.repository import MenuRepository
from app.services.menu.in_memory_menu import InMemoryMenuProvider
from app.services.ordering.models import OrderDraft, OrderLine
from app.services.persistence.conversations import ConversationPersistenceService
from app.services.persistence.orders import OrderPersistenceService


# Test database URL (in-memory SQLite)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def test_db_engine():
    """Create test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Drop all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def test_db(test_db_engine):
    """Create test database session."""
    async_session = async_sessionmaker(
        test_db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session


@pytest.fixture
def test_menu_path():
    """Return path to test menu YAML file."""
    return Path(__file__).parent / "fixtures" / "test_menu.yaml"


@pytest.fixture
def test_menu_repository(test_menu_path):
    """Create menu repository with test data."""
    provider = InMemoryMenuProvider(menu_file=str(test_menu_path))
    return MenuRepository(provider)


@pytest.fixture
def order_store(test_db):
    """Order persistence service on the test database."""
    return OrderPersistenceService(test_db)


@pytest.fixture
def conversation_store(test_db):
    """Conversation persistence service on the test database."""
    return ConversationPersistenceService(test_db)


@pytest.fixture
async def conversation(conversation_store):
    """A stored conversation record."""
    return await conversation_store.create_session("test-session")


@pytest.fixture
def session(conversation):
    """Open in-memory session for the stored conversation."""
    return ConversationSession(id=conversation.id)


@pytest.fixture
def latte_line():
    """One hot large latte with oat milk."""
    return OrderLine(
        name="Latte",
        size="Large",
        temperature="Hot",
        milk="Oat Milk",
        base_price=5.00,
        modifications_price=0.50,
        quantity=1,
    )


@pytest.fixture
def latte_draft(latte_line):
    """Confirmed order with a single latte."""
    return OrderDraft(confirmed=True, customer_name="Sam", items=[latte_line])


@pytest.fixture(autouse=True)
def clean_conversation_sessions():
    """Clean up in-memory conversation sessions before and after tests."""
    session_manager._sessions.clear()
    session_manager._locks.clear()
    yield
    session_manager._sessions.clear()
    session_manager._locks.clear()


@pytest.fixture
async def client(test_db, test_menu_repository):
    """Async HTTP client against the app with test database and menu."""
    async def _override_get_db():
        yield test_db

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_menu_repository] = lambda: test_menu_repository

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http_client:
        yield http_client

    # Clear overrides
    app.dependency_overrides.clear()
