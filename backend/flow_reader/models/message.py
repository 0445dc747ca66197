"""
Message model for storing chat turns.
"""
import uuid

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import relationship

from flow_reader.core.clock import utcnow
from flow_reader.db.base import Base

ROLE_USER = "user"
ROLE_ASSISTANT = "assistant"
ROLES = (ROLE_USER, ROLE_ASSISTANT)


class Message(Base):
    """
    Represents a single turn in a session transcript.

    Messages are append-only. ``position`` numbers them from 0 within their
    session and is the order they are shown and replayed in.
    """
    __tablename__ = "messages"
    __table_args__ = (
        UniqueConstraint("session_id", "position", name="uq_messages_session_position"),
        CheckConstraint("role IN ('user', 'assistant')", name="ck_messages_role"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    session_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("chat_sessions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    position = Column(Integer, nullable=False)

    # "user" or "assistant"
    role = Column(String(20), nullable=False)

    body = Column(Text, nullable=False)

    created_at = Column(DateTime, nullable=False, default=utcnow)

    # Relationships
    session = relationship("ChatSession", back_populates="messages")
