"""
User settings kept in the key/value ``settings`` table.

The model gateway reads its credential and model through ``load_model_config``
on every call, so a saved key takes effect on the next turn.
"""
import logging
from dataclasses import dataclass
from typing import Dict, Optional

from sqlalchemy.orm import Session

from flow_reader.core.config import settings as app_settings
from flow_reader.models.setting import Setting

logger = logging.getLogger(__name__)

KEY_API_KEY = "gemini_api_key"
KEY_MODEL = "model"
KEY_THEME = "theme"

DEFAULT_THEME = "light"


@dataclass
class AppSettings:
    gemini_api_key: Optional[str]
    model: str
    theme: str


@dataclass(frozen=True)
class ModelConfig:
    """Credential and model used for one provider call."""

    api_key: Optional[str]
    model: str


def _read_all(db: Session) -> Dict[str, Optional[str]]:
    return {row.key: row.value for row in db.query(Setting).all()}


def get_settings(db: Session) -> AppSettings:
    """Return stored settings with defaults for missing keys."""
    values = _read_all(db)
    return AppSettings(
        gemini_api_key=values.get(KEY_API_KEY) or None,
        model=values.get(KEY_MODEL) or app_settings.DEFAULT_MODEL,
        theme=values.get(KEY_THEME) or DEFAULT_THEME,
    )


def save_settings(
    db: Session,
    gemini_api_key: Optional[str] = None,
    model: Optional[str] = None,
    theme: Optional[str] = None,
) -> AppSettings:
    """
    Upsert the provided settings in one transaction.

    Arguments left as None are not touched. An empty string stores an empty
    value, which clears the API key.
    """
    updates = {
        KEY_API_KEY: gemini_api_key,
        KEY_MODEL: model,
        KEY_THEME: theme,
    }
    try:
        for key, value in updates.items():
            if value is None:
                continue
            row = db.get(Setting, key)
            if row is None:
                db.add(Setting(key=key, value=value))
            else:
                row.value = value
        db.commit()
    except Exception:
        db.rollback()
        raise

    changed = [key for key, value in updates.items() if value is not None]
    logger.info(f"Saved settings: {', '.join(changed) or 'nothing'}")
    return get_settings(db)


def load_model_config(db: Session) -> ModelConfig:
    """Read the current credential and model for a provider call."""
    current = get_settings(db)
    return ModelConfig(api_key=current.gemini_api_key, model=current.model)


def mask_api_key(api_key: Optional[str]) -> Optional[str]:
    """Show only the last four characters of a key."""
    if not api_key:
        return None
    if len(api_key) <= 4:
        return "*" * len(api_key)
    return "*" * (len(api_key) - 4) + api_key[-4:]
