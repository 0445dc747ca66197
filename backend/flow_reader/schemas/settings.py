"""
Pydantic schemas for the settings API.
"""
from typing import Literal, Optional

from pydantic import BaseModel, Field


class SettingsOut(BaseModel):
    """Settings as shown to the renderer. The API key itself is never returned."""
    has_api_key: bool
    api_key_preview: Optional[str] = Field(None, description="Masked key, last 4 characters visible")
    model: str
    theme: Literal["light", "dark"]


class SettingsUpdate(BaseModel):
    """Partial update; omitted fields keep their stored value."""
    gemini_api_key: Optional[str] = Field(None, max_length=500, description="Empty string clears the key")
    model: Optional[str] = Field(None, min_length=1, max_length=200)
    theme: Optional[Literal["light", "dark"]] = None
