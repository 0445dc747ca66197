"""
Chat Service.

Runs one conversation turn as a single unit:

1. Append the user message (durable before the provider call)
2. Assemble the anchored conversation from the prior transcript
3. Call the model gateway with the current settings
4. Append the reply, or an error marker message if the turn failed

Failures of a turn are recorded in the transcript itself so the user always
sees something in the thread; they are never raised to the caller.
"""
import logging
from dataclasses import dataclass
from typing import Protocol, Sequence, Union
from uuid import UUID

from sqlalchemy.orm import Session

from flow_reader.core.exceptions import (
    EmptyAnchorError,
    ErrorKind,
    GatewayError,
    TranscriptOrderError,
)
from flow_reader.models.chat_session import ChatSession
from flow_reader.models.message import ROLE_USER, Message
from flow_reader.services.prompt_composer import PromptTurn, assemble
from flow_reader.services.session_manager import SessionManager
from flow_reader.services.settings_store import ModelConfig, load_model_config
from flow_reader.services.transcript import Transcript

logger = logging.getLogger(__name__)

ERROR_PREFIX = "오류: "


class ModelGateway(Protocol):
    async def generate(self, turns: Sequence[PromptTurn], config: ModelConfig) -> str:
        ...


@dataclass(frozen=True)
class Reply:
    text: str


@dataclass(frozen=True)
class Failure:
    kind: ErrorKind
    message: str


TurnOutcome = Union[Reply, Failure]


@dataclass
class TurnResult:
    """Messages written by one turn and how the turn ended."""

    user_message: Message
    assistant_message: Message
    outcome: TurnOutcome

    @property
    def succeeded(self) -> bool:
        return isinstance(self.outcome, Reply)


def render_failure(failure: Failure) -> str:
    """Text stored as the assistant message of a failed turn."""
    return f"{ERROR_PREFIX}{failure.message}"


class ChatService:
    """Composite send operation over the session store and a model gateway."""

    def __init__(self, db: Session, gateway: ModelGateway):
        self.db = db
        self.gateway = gateway
        self.sessions = SessionManager(db)
        self.transcript = Transcript(db, self.sessions)

    async def send_message(self, session_id: UUID, text: str) -> TurnResult:
        """
        Append a user message and generate the assistant reply.

        Raises:
            SessionNotFoundError: If the session does not exist
            ValueError: If ``text`` is empty
        """
        if not text or not text.strip():
            raise ValueError("Message text must not be empty")

        session = self.sessions.get(session_id)
        history = self.transcript.messages(session_id)
        user_message = self.transcript.append_user(session_id, text)

        return await self._complete_turn(session_id, session, history, user_message)

    async def retry_pending_turn(self, session_id: UUID) -> TurnResult:
        """
        Generate a reply for a trailing user message that never got one.

        Raises:
            SessionNotFoundError: If the session does not exist
            TranscriptOrderError: If the last message is not an unanswered user message
        """
        session = self.sessions.get(session_id)
        messages = self.transcript.messages(session_id)
        if not messages or messages[-1].role != ROLE_USER:
            raise TranscriptOrderError("다시 시도할 질문이 없습니다.")

        user_message = messages[-1]
        logger.info(f"Retrying pending turn in session {session_id}")
        return await self._complete_turn(session_id, session, messages[:-1], user_message)

    async def _complete_turn(
        self,
        session_id: UUID,
        session: ChatSession,
        history: Sequence[Message],
        user_message: Message,
    ) -> TurnResult:
        outcome: TurnOutcome
        try:
            turns = assemble(session, history, user_message.body)
            config = load_model_config(self.db)
            reply = await self.gateway.generate(turns, config)
            outcome = Reply(reply)
        except (EmptyAnchorError, GatewayError) as e:
            logger.warning(f"Turn failed in session {session_id}: {e.kind.value}: {e.message}")
            outcome = Failure(e.kind, e.message)

        if isinstance(outcome, Reply):
            body = outcome.text
        else:
            body = render_failure(outcome)
        assistant_message = self.transcript.append_assistant(session_id, body)

        return TurnResult(
            user_message=user_message,
            assistant_message=assistant_message,
            outcome=outcome,
        )
