"""
Settings API endpoints for the API key, model and theme.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from flow_reader.core.deps import get_db
from flow_reader.schemas.settings import SettingsOut, SettingsUpdate
from flow_reader.services import settings_store
from flow_reader.services.settings_store import AppSettings

router = APIRouter(prefix="/settings", tags=["settings"])


def _settings_to_response(current: AppSettings) -> SettingsOut:
    return SettingsOut(
        has_api_key=bool(current.gemini_api_key),
        api_key_preview=settings_store.mask_api_key(current.gemini_api_key),
        model=current.model,
        theme=current.theme,
    )


@router.get("", response_model=SettingsOut)
def get_settings(db: Session = Depends(get_db)):
    return _settings_to_response(settings_store.get_settings(db))


@router.put("", response_model=SettingsOut)
def save_settings(data: SettingsUpdate, db: Session = Depends(get_db)):
    """
    Update settings. Only provided fields will be updated.
    """
    current = settings_store.save_settings(
        db,
        gemini_api_key=data.gemini_api_key,
        model=data.model,
        theme=data.theme,
    )
    return _settings_to_response(current)
