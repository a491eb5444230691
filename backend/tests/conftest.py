"""
Pytest configuration and fixtures for testing.
"""

import os

# Use in-memory SQLite before any application module creates the engine
os.environ["DATABASE_URL"] = "sqlite://"

import httpx
import pytest
from typing import Any, Callable, Dict, Generator, List, Optional, Tuple
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session
from unittest.mock import Mock

from satyashodhak.agents.fact_checker import FactCheckerAgent
from satyashodhak.config import get_settings
from satyashodhak.db.database import Base, SessionLocal, engine, get_db
from satyashodhak.main import app
from satyashodhak.models import comment, profile, verification  # noqa: F401
from satyashodhak.models.profile import Profile
from satyashodhak.services.auth_service import AuthService


@pytest.fixture(scope="session", autouse=True)
def test_settings() -> Any:
    """Override settings for testing."""
    settings = get_settings()
    settings.anthropic_api_key = "test-key"
    settings.fact_check_api_key = ""
    settings.best_effort_persistence = False
    return settings


@pytest.fixture(scope="session")
def test_engine(test_settings: Any) -> Engine:
    """Test database engine bound to in-memory SQLite."""
    assert str(engine.url).startswith("sqlite")
    return engine


@pytest.fixture(scope="function")
def test_db(test_engine: Engine) -> Generator[Session, None, None]:
    """Create a fresh database and session for each test."""
    Base.metadata.drop_all(bind=test_engine)
    Base.metadata.create_all(bind=test_engine)

    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client(test_db: Session) -> Generator[TestClient, None, None]:
    """Create test client with database dependency override."""
    def override_get_db() -> Generator[Session, None, None]:
        try:
            yield test_db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def mock_anthropic_client() -> Mock:
    """Mock Anthropic client for testing."""
    mock_client = Mock()
    mock_response = Mock()
    mock_response.content = [Mock()]
    mock_response.content[0].text = "Test response from Claude"
    mock_response.usage.input_tokens = 100
    mock_response.usage.output_tokens = 50
    mock_client.messages.create.return_value = mock_response
    return mock_client


@pytest.fixture
def make_user(test_db: Session) -> Callable[..., Tuple[Profile, str]]:
    """Factory registering users and returning (profile, bearer token)."""
    counter = {"n": 0}

    def _make_user(full_name: str = None, email: str = None) -> Tuple[Profile, str]:
        counter["n"] += 1
        email = email or f"user{counter['n']}@example.com"
        return AuthService(test_db).create_user(email=email, full_name=full_name)

    return _make_user


@pytest.fixture
def sample_engine_json() -> str:
    """A well-formed engine answer wrapped in a fenced block."""
    return """Here is my analysis:

```json
{
  "verdict": "FALSE",
  "confidence": 99,
  "explanation": "## Key Points\\n- The Earth is an oblate spheroid.",
  "sources": [
    {"title": "NASA", "snippet": "Images of Earth from space", "url": "https://www.nasa.gov/earth"}
  ]
}
```"""


def claude_message_body(text: str) -> Dict[str, Any]:
    """Messages API response body carrying one text block."""
    return {
        "id": "msg_test",
        "type": "message",
        "role": "assistant",
        "model": "claude-sonnet-4-20250514",
        "content": [{"type": "text", "text": text}],
        "stop_reason": "end_turn",
        "stop_sequence": None,
        "usage": {"input_tokens": 120, "output_tokens": 80},
    }


@pytest.fixture
def agent_over_http() -> Callable[..., Tuple[FactCheckerAgent, List[httpx.Request]]]:
    """
    Factory for a FactCheckerAgent whose real Anthropic client talks to a stub transport.

    Returns the agent and the list of requests the transport received.
    """
    def _build(status: int = 200, text: str = "", body: Optional[Dict[str, Any]] = None,
               headers: Optional[Dict[str, str]] = None) -> Tuple[FactCheckerAgent, List[httpx.Request]]:
        sent: List[httpx.Request] = []
        if body is None:
            body = claude_message_body(text) if status == 200 else {
                "type": "error",
                "error": {"type": "api_error", "message": f"upstream status {status}"},
            }

        def handler(request: httpx.Request) -> httpx.Response:
            sent.append(request)
            return httpx.Response(status, json=body, headers=headers or {})

        agent = FactCheckerAgent(http_client=httpx.Client(transport=httpx.MockTransport(handler)))
        return agent, sent

    return _build
