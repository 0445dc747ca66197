from datetime import datetime
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class DocumentCreate(BaseModel):
    """Request schema for registering an imported book."""
    title: str = Field(..., min_length=1, max_length=500)
    author: Optional[str] = Field(None, max_length=255)
    location: str = Field(..., min_length=1, description="Where the viewer stored the file")
    file_type: Literal["pdf", "epub"]
    total_units: Optional[int] = Field(None, ge=1)


class ProgressUpdate(BaseModel):
    """Reading progress reported by the viewer on navigation."""
    position: int = Field(..., ge=1)
    total_units: Optional[int] = Field(None, ge=1)


class DocumentOut(BaseModel):
    id: UUID
    title: str
    author: Optional[str] = None
    location: str
    file_type: str
    last_position: int
    total_units: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
