"""
Chat schemas for request/response validation.

Includes anchored session management and turn results.
"""
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from flow_reader.services.selection_bridge import SelectionIntent


# =============================================================================
# Chat Session Schemas
# =============================================================================

class ChatSessionCreate(BaseModel):
    """Request schema for creating an anchored chat session."""
    anchor_text: str = Field(
        ...,
        description="Selected passage the session is pinned to. Must not be blank."
    )


class ChatSessionResponse(BaseModel):
    """Response schema for a chat session."""
    id: str
    document_id: str
    anchor_text: str
    message_count: int = 0
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ChatSessionListResponse(BaseModel):
    """Response schema for listing chat sessions."""
    sessions: List[ChatSessionResponse]
    total: int


# =============================================================================
# Selection Schemas
# =============================================================================

class SelectionRequest(BaseModel):
    """Text selection delivered by the viewer together with the chosen action."""
    document_id: str
    selected_text: str
    intent: SelectionIntent = SelectionIntent.FREEFORM


class SelectionResponse(BaseModel):
    session: ChatSessionResponse
    prefill: Optional[str] = Field(
        None,
        description="Question to pre-fill in the chat input. Not sent yet."
    )


# =============================================================================
# Chat Message Schemas
# =============================================================================

class ChatRequest(BaseModel):
    """Request schema for sending a chat message."""
    message: str = Field(..., min_length=1, max_length=10000)


class MessageOut(BaseModel):
    """Response schema for a single message."""
    id: str
    session_id: str
    position: int
    role: str
    body: str
    created_at: datetime

    class Config:
        from_attributes = True


class TurnOutcomeOut(BaseModel):
    """How a turn ended, so the UI can style error markers differently."""
    status: Literal["reply", "failure"]
    error_kind: Optional[str] = None
    error_message: Optional[str] = None


class ChatResponse(BaseModel):
    """Response schema for a completed (or failed) turn."""
    session_id: str
    user_message: MessageOut
    assistant_message: MessageOut
    outcome: TurnOutcomeOut


class ChatHistoryResponse(BaseModel):
    """Response schema for chat history."""
    session_id: str
    anchor_text: str
    messages: List[MessageOut]
    total: int
