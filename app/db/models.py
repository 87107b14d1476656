"""Database models."""
import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, JSON, Numeric, String, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def _new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    # Naive UTC, matching the timezone-less DateTime columns
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Order(Base):
    """Order model."""

    __tablename__ = "orders"
    __table_args__ = {"sqlite_autoincrement": True}

    # The integer sequence doubles as the customer-facing ticket number
    order_number = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String(36), unique=True, index=True, nullable=False, default=_new_id)
    conversation_id = Column(String(36), unique=True, index=True, nullable=True)
    customer_name = Column(String, default="Guest", nullable=False)
    items = Column(JSON, nullable=False, default=list)
    subtotal = Column(Numeric(10, 2, asdecimal=False), nullable=False, default=0)
    tax = Column(Numeric(10, 2, asdecimal=False), nullable=False, default=0)
    total = Column(Numeric(10, 2, asdecimal=False), nullable=False, default=0)
    status = Column(String, default="pending", index=True, nullable=False)  # pending, in_progress, completed, cancelled
    cancel_reason = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow, index=True, nullable=False)
    completed_at = Column(DateTime, nullable=True)


class Conversation(Base):
    """Customer conversation with analytics and conversion tracking."""

    __tablename__ = "conversations"

    id = Column(String(36), primary_key=True, default=_new_id)
    session_id = Column(String, nullable=True)
    started_at = Column(DateTime, default=utcnow, index=True, nullable=False)
    converted = Column(Boolean, default=False, index=True, nullable=False)
    order_id = Column(String(36), ForeignKey("orders.id"), nullable=True)
    off_menu_requests = Column(JSON, nullable=False, default=list)
    upsell_attempts = Column(JSON, nullable=False, default=list)
    upsell_successes = Column(JSON, nullable=False, default=list)
