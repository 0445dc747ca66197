"""
Common dependencies for FastAPI endpoints.
"""
from typing import Generator
from uuid import UUID

from fastapi import HTTPException, Request, status
from sqlalchemy.orm import Session

from flow_reader.services.llm_client import LLMClient, get_llm_client


def get_db(request: Request) -> Generator[Session, None, None]:
    """
    Database session dependency.

    Yields a session from the application's Database and ensures it's closed
    after the request.
    """
    database = request.app.state.database
    with database.session() as db:
        yield db


def get_model_gateway() -> LLMClient:
    """Model gateway used by chat endpoints."""
    return get_llm_client()


def parse_uuid(value: str, name: str = "ID") -> UUID:
    """Parse a string to UUID with error handling."""
    try:
        return UUID(value)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"잘못된 {name}입니다.",
        )
