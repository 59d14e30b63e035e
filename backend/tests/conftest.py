"""
Pytest configuration and fixtures for backend tests.
"""

import os
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Add backend directory to path for imports
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

# Set test environment variables before importing config
os.environ["ENVIRONMENT"] = "test"
os.environ["EMAIL_SERVICE"] = "console"
os.environ["EMAIL_USER"] = "owner@example.com"
os.environ["EMAIL_PASS"] = "test-app-password"
os.environ["SENTRY_DSN"] = ""

from models.config import Settings  # noqa: E402
from models.schemas import ContactSubmission  # noqa: E402
from services.email_service import EmailProvider  # noqa: E402


class RecordingProvider(EmailProvider):
    """Email provider that records every send attempt.

    `results` is consumed one entry per send; once exhausted every send
    succeeds. An exception instance in `results` is raised instead.
    """

    def __init__(self, results: list | None = None) -> None:
        self.results = list(results or [])
        self.sent: list[dict] = []

    def send(
        self,
        to_email: str,
        subject: str,
        html_body: str,
        text_body: str,
        reply_to: str | None = None,
    ) -> bool:
        self.sent.append(
            {
                "to_email": to_email,
                "subject": subject,
                "html_body": html_body,
                "text_body": text_body,
                "reply_to": reply_to,
            }
        )
        if self.results:
            result = self.results.pop(0)
            if isinstance(result, Exception):
                raise result
            return result
        return True


@pytest.fixture
def settings() -> Settings:
    """Settings for a test app, independent of the process environment."""
    return Settings(
        ENVIRONMENT="test",
        EMAIL_SERVICE="console",
        EMAIL_USER="owner@example.com",
        EMAIL_PASS="test-app-password",
        OWNER_NAME="Aman Gupta",
        FRONTEND_URL="http://localhost:5500",
        SENTRY_DSN="",
    )


@pytest.fixture
def provider() -> RecordingProvider:
    return RecordingProvider()


@pytest.fixture
def app(settings, provider):
    from main import create_app

    return create_app(settings, email_provider=provider)


@pytest.fixture
def client(app):
    """Test client with a fresh app (and rate limiter) per test."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def valid_payload() -> dict[str, str]:
    return {
        "name": "Jane Doe",
        "email": "jane@example.com",
        "subject": "Project Inquiry",
        "message": "I'd like to discuss a freelance project with you.",
    }


@pytest.fixture
def valid_submission(valid_payload) -> ContactSubmission:
    return ContactSubmission(**valid_payload)
