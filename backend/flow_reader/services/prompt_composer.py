"""
Conversation assembly for anchored sessions.

The provider keeps no state between calls, so every request replays the whole
transcript. The anchor text is attached to the first user turn only, and that
turn is recomposed from the stored plain message on every call; the composed
string is never persisted.
"""
import logging
from dataclasses import dataclass
from typing import List, Sequence

from flow_reader.core.exceptions import EmptyAnchorError
from flow_reader.models.chat_session import ChatSession
from flow_reader.models.message import ROLE_USER, Message

logger = logging.getLogger(__name__)


FIRST_TURN_TEMPLATE = """[참고할 텍스트]
{anchor}

[질문]
{question}

위의 "참고할 텍스트"를 반드시 참고하여 질문에 답변해주세요. 모든 요청(요약, 번역, 질문 등)은 위의 텍스트를 대상으로 합니다. 답변은 한국어로 제공해주세요."""


@dataclass(frozen=True)
class PromptTurn:
    """One role-tagged entry of the outgoing conversation."""

    role: str
    text: str


def compose_first_turn(anchor: str, question: str) -> str:
    """Wrap the first question of a session together with its anchor text."""
    return FIRST_TURN_TEMPLATE.format(anchor=anchor, question=question)


def assemble(
    session: ChatSession,
    history: Sequence[Message],
    new_user_text: str,
) -> List[PromptTurn]:
    """
    Build the turn sequence to send for the next user message.

    Args:
        session: Session whose anchor grounds the conversation
        history: Messages already in the session, in transcript order
        new_user_text: The question being sent now

    Returns:
        Ordered turns: the anchored first user turn, the rest of the history
        verbatim, then ``new_user_text`` verbatim

    Raises:
        EmptyAnchorError: If the session has no anchor text
    """
    anchor = session.anchor_text
    if anchor is None or not anchor.strip():
        logger.error(f"Session {session.id} has no anchor text")
        raise EmptyAnchorError()

    if not history:
        return [PromptTurn(ROLE_USER, compose_first_turn(anchor, new_user_text))]

    first, rest = history[0], history[1:]
    if first.role == ROLE_USER:
        turns = [PromptTurn(ROLE_USER, compose_first_turn(anchor, first.body))]
        turns.extend(PromptTurn(msg.role, msg.body) for msg in rest)
    else:
        # Replay as stored rather than invent an anchored turn
        logger.warning(
            f"Data integrity: session {session.id} transcript starts with a "
            f"{first.role!r} message; replaying history without anchor text"
        )
        turns = [PromptTurn(msg.role, msg.body) for msg in history]

    turns.append(PromptTurn(ROLE_USER, new_user_text))
    return turns
