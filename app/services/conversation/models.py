"""Conversation session models."""
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator

from app.services.ordering.models import AnalyticsState, CartItem


class Speaker(str, Enum):
    """Who said a turn."""

    CUSTOMER = "customer"
    CASHIER = "cashier"

    def __str__(self) -> str:
        return self.value


class SessionState(str, Enum):
    """Open sessions accept orders; finalized sessions already have one."""

    OPEN = "open"
    FINALIZED = "finalized"

    def __str__(self) -> str:
        return self.value


class Turn(BaseModel):
    """One turn of the conversation."""

    speaker: Speaker
    text: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ConversationSession(BaseModel):
    """Per-customer ordering session.

    ``linked_order_id`` is set iff ``finalized`` is true, and a finalized
    session never reopens.
    """

    id: str
    turns: List[Turn] = []
    cart: List[CartItem] = []
    analytics: AnalyticsState = Field(default_factory=AnalyticsState)
    finalized: bool = False
    linked_order_id: Optional[str] = None

    @model_validator(mode="after")
    def _check_finalized_link(self) -> "ConversationSession":
        if self.finalized != (self.linked_order_id is not None):
            raise ValueError("linked_order_id must be set exactly when the session is finalized")
        return self

    @property
    def state(self) -> SessionState:
        return SessionState.FINALIZED if self.finalized else SessionState.OPEN

    def add_turn(self, speaker: Speaker, text: str) -> Turn:
        """Append a turn to the conversation."""
        turn = Turn(speaker=speaker, text=text)
        self.turns.append(turn)
        return turn

    def mark_finalized(self, order_id: str) -> None:
        """Link the session to its order. Only ever happens once."""
        if not order_id:
            raise ValueError("order_id is required to finalize a session")
        if self.finalized:
            if self.linked_order_id != order_id:
                raise ValueError(
                    f"Session {self.id} is already finalized with order {self.linked_order_id}"
                )
            return
        self.finalized = True
        self.linked_order_id = order_id
