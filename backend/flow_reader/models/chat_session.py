"""
ChatSession model for anchored conversations.

Each document can have many sessions. A session is pinned to the passage the
user selected when it was created; that anchor text never changes and is not
stored as a message.
"""

import uuid

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Text, Uuid, inspect
from sqlalchemy.orm import relationship, validates

from flow_reader.core.clock import utcnow
from flow_reader.core.exceptions import InvalidAnchorError
from flow_reader.db.base import Base


class ChatSession(Base):
    """
    Represents one anchored conversation about a document.

    ``updated_at`` is bumped on every appended message and is the sort key of
    the session list.
    """

    __tablename__ = "chat_sessions"
    __table_args__ = (
        CheckConstraint(
            "length(trim(anchor_text, ' ' || char(9) || char(10) || char(13))) > 0",
            name="ck_chat_sessions_anchor_text",
        ),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    document_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("documents.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Selected passage, immutable after creation
    anchor_text = Column(Text, nullable=False)

    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, index=True)

    # Relationships
    messages = relationship(
        "Message",
        back_populates="session",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Message.position",
    )
    document = relationship("Document", back_populates="chat_sessions")

    @validates("anchor_text")
    def validate_anchor_text(self, key, value):
        if value is None or not value.strip():
            raise InvalidAnchorError()
        if inspect(self).has_identity:
            raise ValueError("anchor_text cannot be changed once the session exists")
        return value
