"""
Chat API endpoints for anchored conversations.

Provides endpoints for:
- Starting sessions from a text selection
- Managing chat sessions (create, list, delete)
- Sending messages and retrying a pending turn
- Retrieving a session's transcript
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from flow_reader.core.deps import get_db, get_model_gateway, parse_uuid
from flow_reader.models.chat_session import ChatSession
from flow_reader.models.message import Message
from flow_reader.schemas.chat import (
    ChatHistoryResponse,
    ChatRequest,
    ChatResponse,
    ChatSessionCreate,
    ChatSessionListResponse,
    ChatSessionResponse,
    MessageOut,
    SelectionRequest,
    SelectionResponse,
    TurnOutcomeOut,
)
from flow_reader.services.chat_service import ChatService, Failure, ModelGateway, TurnResult
from flow_reader.services.documents import get_document
from flow_reader.services.selection_bridge import start_session_from_selection
from flow_reader.services.session_manager import SessionManager
from flow_reader.services.transcript import Transcript

router = APIRouter(prefix="/chat", tags=["chat"])


# =============================================================================
# Helper Functions
# =============================================================================

def session_to_response(session: ChatSession, message_count: int = 0) -> ChatSessionResponse:
    return ChatSessionResponse(
        id=str(session.id),
        document_id=str(session.document_id),
        anchor_text=session.anchor_text,
        message_count=message_count,
        created_at=session.created_at,
        updated_at=session.updated_at,
    )


def message_to_out(msg: Message) -> MessageOut:
    """Convert a Message model to MessageOut schema."""
    return MessageOut(
        id=str(msg.id),
        session_id=str(msg.session_id),
        position=msg.position,
        role=msg.role,
        body=msg.body,
        created_at=msg.created_at,
    )


def turn_to_response(session_id: str, result: TurnResult) -> ChatResponse:
    if isinstance(result.outcome, Failure):
        outcome = TurnOutcomeOut(
            status="failure",
            error_kind=result.outcome.kind.value,
            error_message=result.outcome.message,
        )
    else:
        outcome = TurnOutcomeOut(status="reply")

    return ChatResponse(
        session_id=session_id,
        user_message=message_to_out(result.user_message),
        assistant_message=message_to_out(result.assistant_message),
        outcome=outcome,
    )


# =============================================================================
# Session Management Endpoints
# =============================================================================

@router.post(
    "/selections",
    response_model=SelectionResponse,
    status_code=status.HTTP_201_CREATED,
)
def start_from_selection(
    data: SelectionRequest,
    db: Session = Depends(get_db),
) -> SelectionResponse:
    """
    Create a session from a viewer selection and return the pre-filled question.
    """
    doc_uuid = parse_uuid(data.document_id, "문서 ID")
    result = start_session_from_selection(db, doc_uuid, data.selected_text, data.intent)
    return SelectionResponse(
        session=session_to_response(result.session),
        prefill=result.prefill,
    )


@router.post(
    "/sessions/{document_id}",
    response_model=ChatSessionResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_session(
    document_id: str,
    data: ChatSessionCreate,
    db: Session = Depends(get_db),
) -> ChatSessionResponse:
    """
    Create a new chat session anchored to the given text.
    """
    doc_uuid = parse_uuid(document_id, "문서 ID")
    session = SessionManager(db).create(doc_uuid, data.anchor_text)
    return session_to_response(session)


@router.get("/sessions/{document_id}", response_model=ChatSessionListResponse)
def list_sessions(
    document_id: str,
    db: Session = Depends(get_db),
) -> ChatSessionListResponse:
    """
    List a document's chat sessions, most recently active first.
    """
    doc_uuid = parse_uuid(document_id, "문서 ID")
    get_document(db, doc_uuid)

    manager = SessionManager(db)
    sessions = manager.list_by_document(doc_uuid)
    counts = manager.message_counts([s.id for s in sessions])

    session_responses = [
        session_to_response(session, counts.get(session.id, 0))
        for session in sessions
    ]
    return ChatSessionListResponse(
        sessions=session_responses,
        total=len(session_responses),
    )


@router.delete("/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_session(
    session_id: str,
    db: Session = Depends(get_db),
):
    """
    Delete a chat session and all its messages.
    """
    sess_uuid = parse_uuid(session_id, "세션 ID")
    SessionManager(db).delete(sess_uuid)
    return None


# =============================================================================
# Chat Message Endpoints
# =============================================================================

@router.post("/sessions/{session_id}/messages", response_model=ChatResponse)
async def send_message(
    session_id: str,
    req: ChatRequest,
    db: Session = Depends(get_db),
    gateway: ModelGateway = Depends(get_model_gateway),
) -> ChatResponse:
    """
    Send a question in a session and get the model's reply.

    Provider failures do not fail the request: they are stored as an
    assistant error message and reported in ``outcome``.
    """
    sess_uuid = parse_uuid(session_id, "세션 ID")
    if not req.message.strip():
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="메시지를 입력해주세요.",
        )

    result = await ChatService(db, gateway).send_message(sess_uuid, req.message)
    return turn_to_response(str(sess_uuid), result)


@router.post("/sessions/{session_id}/retry", response_model=ChatResponse)
async def retry_pending_turn(
    session_id: str,
    db: Session = Depends(get_db),
    gateway: ModelGateway = Depends(get_model_gateway),
) -> ChatResponse:
    """
    Generate a reply for the last question if it never received one.
    """
    sess_uuid = parse_uuid(session_id, "세션 ID")
    result = await ChatService(db, gateway).retry_pending_turn(sess_uuid)
    return turn_to_response(str(sess_uuid), result)


@router.get("/history/session/{session_id}", response_model=ChatHistoryResponse)
def get_session_history(
    session_id: str,
    db: Session = Depends(get_db),
) -> ChatHistoryResponse:
    """
    Get the transcript of a session in order.
    """
    sess_uuid = parse_uuid(session_id, "세션 ID")
    manager = SessionManager(db)
    session = manager.get(sess_uuid)
    messages = Transcript(db, manager).messages(sess_uuid)

    return ChatHistoryResponse(
        session_id=str(session.id),
        anchor_text=session.anchor_text,
        messages=[message_to_out(msg) for msg in messages],
        total=len(messages),
    )
