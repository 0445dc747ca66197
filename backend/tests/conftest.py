"""
Pytest configuration and fixtures for the test suite.
"""
import os
from typing import Generator, List, Sequence

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

# Set test environment before importing the app
os.environ["ENV"] = "development"
os.environ["DATABASE_URL"] = "sqlite://"

from flow_reader.core.deps import get_db, get_model_gateway
from flow_reader.core.exceptions import NotConfiguredError
from flow_reader.db.session import Database
from flow_reader.main import create_app
from flow_reader.models.chat_session import ChatSession
from flow_reader.models.document import Document
from flow_reader.services.prompt_composer import PromptTurn
from flow_reader.services.session_manager import SessionManager
from flow_reader.services.settings_store import ModelConfig, save_settings


ANCHOR = "Bergson describes natural science as a partial view of becoming."


class FakeGateway:
    """Records every call and answers with canned replies or errors."""

    def __init__(self, replies: Sequence = ("이 문장은...",)):
        self.replies = list(replies)
        self.calls: List[tuple] = []

    async def generate(self, turns: Sequence[PromptTurn], config: ModelConfig) -> str:
        if not config.api_key:
            raise NotConfiguredError()
        self.calls.append((list(turns), config))
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, Exception):
            raise reply
        return reply

    async def health_check(self, config: ModelConfig) -> dict:
        return {"status": "healthy" if config.api_key else "not_configured", "model": config.model}


@pytest.fixture(scope="function")
def database() -> Generator[Database, None, None]:
    """In-memory store with a fresh schema for each test."""
    database = Database("sqlite://")
    database.init()
    try:
        yield database
    finally:
        database.drop_all()
        database.close()


@pytest.fixture(scope="function")
def db(database: Database) -> Generator[Session, None, None]:
    with database.session() as session:
        yield session


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def make_gateway():
    """Factory for gateways with scripted replies."""
    return FakeGateway


@pytest.fixture(scope="function")
def client(
    database: Database, db: Session, gateway: FakeGateway
) -> Generator[TestClient, None, None]:
    """Create a test client sharing the test session and a fake gateway."""
    app = create_app(database=database)

    def override_get_db_with_session():
        """Return the test database session."""
        yield db

    app.dependency_overrides[get_db] = override_get_db_with_session
    app.dependency_overrides[get_model_gateway] = lambda: gateway
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def test_document(db: Session) -> Document:
    """Create a registered EPUB document."""
    document = Document(
        title="Creative Evolution",
        author="Henri Bergson",
        location="/books/creative-evolution.epub",
        file_type="epub",
        last_position=1,
        total_units=320,
    )
    db.add(document)
    db.commit()
    db.refresh(document)
    return document


@pytest.fixture
def other_document(db: Session) -> Document:
    document = Document(
        title="Matter and Memory",
        author="Henri Bergson",
        location="/books/matter-and-memory.pdf",
        file_type="pdf",
    )
    db.add(document)
    db.commit()
    db.refresh(document)
    return document


@pytest.fixture
def test_session(db: Session, test_document: Document) -> ChatSession:
    return SessionManager(db).create(test_document.id, ANCHOR)


@pytest.fixture
def configured(db: Session) -> None:
    """Store an API key so turns reach the gateway."""
    save_settings(db, gemini_api_key="test-gemini-key-1234", model="gemini-2.5-flash")
