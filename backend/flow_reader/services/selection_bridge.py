"""
Turns a text selection from the viewer into a new anchored session.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from flow_reader.models.chat_session import ChatSession
from flow_reader.services.session_manager import SessionManager


class SelectionIntent(str, Enum):
    SUMMARIZE = "summarize"
    TRANSLATE = "translate"
    FREEFORM = "freeform"


# First question pre-filled in the chat input (not sent)
PREFILLS = {
    SelectionIntent.SUMMARIZE: "이 텍스트를 요약해주세요.",
    SelectionIntent.TRANSLATE: "이 텍스트를 한국어로 번역해주세요.",
    SelectionIntent.FREEFORM: None,
}


@dataclass
class SelectionResult:
    session: ChatSession
    prefill: Optional[str]


def start_session_from_selection(
    db: Session,
    document_id: UUID,
    selected_text: str,
    intent: SelectionIntent,
) -> SelectionResult:
    """Create a session anchored to the selection and pick the pre-filled question."""
    session = SessionManager(db).create(document_id, selected_text)
    return SelectionResult(session=session, prefill=PREFILLS[SelectionIntent(intent)])
