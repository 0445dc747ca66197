"""
Transcript append path.

This is the only place messages are written. Appending a message and bumping
the session's ``updated_at`` are committed together, and a transcript always
starts with a user message.
"""
import logging
from typing import List
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from flow_reader.core.clock import utcnow
from flow_reader.core.exceptions import TranscriptOrderError
from flow_reader.models.message import ROLE_ASSISTANT, ROLE_USER, ROLES, Message
from flow_reader.services.session_manager import SessionManager

logger = logging.getLogger(__name__)


class Transcript:
    """Ordered, append-only message log of chat sessions."""

    def __init__(self, db: Session, sessions: SessionManager = None):
        self.db = db
        self.sessions = sessions or SessionManager(db)

    def messages(self, session_id: UUID) -> List[Message]:
        """Return the session's messages in replay order."""
        return (
            self.db.query(Message)
            .filter(Message.session_id == session_id)
            .order_by(Message.position.asc())
            .all()
        )

    def append(self, session_id: UUID, role: str, body: str) -> Message:
        """
        Append one message and touch its session in a single transaction.

        Args:
            session_id: Session to append to
            role: "user" or "assistant"
            body: Literal text of the turn

        Returns:
            The stored Message

        Raises:
            ValueError: If role is not user/assistant
            SessionNotFoundError: If the session does not exist
            TranscriptOrderError: If an assistant message would open the transcript
        """
        if role not in ROLES:
            raise ValueError(f"Invalid message role: {role!r}")

        self.sessions.get(session_id)

        last_position = (
            self.db.query(func.max(Message.position))
            .filter(Message.session_id == session_id)
            .scalar()
        )
        if last_position is None and role == ROLE_ASSISTANT:
            raise TranscriptOrderError(
                "대화의 첫 메시지는 사용자 메시지여야 합니다."
            )
        position = 0 if last_position is None else last_position + 1

        message = Message(
            session_id=session_id,
            position=position,
            role=role,
            body=body,
            created_at=utcnow(),
        )
        try:
            self.db.add(message)
            self.sessions.touch(session_id)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(message)
        logger.debug(f"Appended {role} message #{position} to session {session_id}")
        return message

    def append_user(self, session_id: UUID, body: str) -> Message:
        return self.append(session_id, ROLE_USER, body)

    def append_assistant(self, session_id: UUID, body: str) -> Message:
        return self.append(session_id, ROLE_ASSISTANT, body)
