"""
Session manager for anchored chat sessions.

A session is created once per "selection -> action" event and is pinned to the
selected passage for its whole life.
"""
import logging
from typing import Dict, List
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from flow_reader.core.clock import utcnow
from flow_reader.core.exceptions import (
    DocumentNotFoundError,
    InvalidAnchorError,
    SessionNotFoundError,
)
from flow_reader.models.chat_session import ChatSession
from flow_reader.models.document import Document
from flow_reader.models.message import Message

logger = logging.getLogger(__name__)


class SessionManager:
    """Create, look up and order chat sessions of a document."""

    def __init__(self, db: Session):
        self.db = db

    def create(self, document_id: UUID, anchor_text: str) -> ChatSession:
        """
        Create a session anchored to ``anchor_text``.

        The anchor is stored exactly as selected.

        Raises:
            InvalidAnchorError: If the anchor is empty or whitespace-only
            DocumentNotFoundError: If the document does not exist
        """
        if anchor_text is None or not anchor_text.strip():
            raise InvalidAnchorError()

        exists = self.db.query(Document.id).filter(Document.id == document_id).first()
        if not exists:
            raise DocumentNotFoundError()

        now = utcnow()
        session = ChatSession(
            document_id=document_id,
            anchor_text=anchor_text,
            created_at=now,
            updated_at=now,
        )
        self.db.add(session)
        self.db.commit()
        self.db.refresh(session)

        logger.info(
            f"Created session {session.id} for document {document_id} "
            f"(anchor length {len(anchor_text)})"
        )
        return session

    def list_by_document(self, document_id: UUID) -> List[ChatSession]:
        """Return the document's sessions, most recently active first."""
        return (
            self.db.query(ChatSession)
            .filter(ChatSession.document_id == document_id)
            .order_by(ChatSession.updated_at.desc(), ChatSession.created_at.desc())
            .all()
        )

    def message_counts(self, session_ids: List[UUID]) -> Dict[UUID, int]:
        """Map session ID to its number of messages."""
        if not session_ids:
            return {}
        rows = (
            self.db.query(Message.session_id, func.count(Message.id))
            .filter(Message.session_id.in_(session_ids))
            .group_by(Message.session_id)
            .all()
        )
        counts = {session_id: 0 for session_id in session_ids}
        counts.update({session_id: count for session_id, count in rows})
        return counts

    def get(self, session_id: UUID) -> ChatSession:
        session = self.db.query(ChatSession).filter(ChatSession.id == session_id).first()
        if not session:
            raise SessionNotFoundError()
        return session

    def touch(self, session_id: UUID) -> None:
        """
        Mark the session as just active.

        Does not commit; the append path commits it together with the message.
        """
        updated = (
            self.db.query(ChatSession)
            .filter(ChatSession.id == session_id)
            .update({"updated_at": utcnow()}, synchronize_session="fetch")
        )
        if not updated:
            raise SessionNotFoundError()

    def delete(self, session_id: UUID) -> None:
        """Delete a session and its messages; sibling sessions are untouched."""
        session = self.get(session_id)
        self.db.delete(session)
        self.db.commit()
        logger.info(f"Deleted session {session_id}")
