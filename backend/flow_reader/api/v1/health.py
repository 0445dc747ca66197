"""
Health check endpoints for API status and Gemini connectivity.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from flow_reader.core.config import settings
from flow_reader.core.deps import get_db, get_model_gateway
from flow_reader.services.llm_client import LLMClient
from flow_reader.services.settings_store import load_model_config

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def health_check():
    """
    Basic health check endpoint.

    Returns:
        Simple status message indicating the API is running
    """
    return {
        "status": "ok",
        "service": settings.PROJECT_NAME,
    }


@router.get("/llm")
async def llm_health_check(
    db: Session = Depends(get_db),
    gateway: LLMClient = Depends(get_model_gateway),
):
    """
    Check Gemini connectivity with the stored API key and model.
    """
    return await gateway.health_check(load_model_config(db))
