"""Tests for Sentry SDK configuration and visitor PII scrubbing."""

from typing import Any
from unittest.mock import patch

import pytest

from core.sentry_config import (
    _before_send,
    _before_send_transaction,
    _traces_sampler,
    init_sentry,
)
from models.config import Settings


class TestBeforeSendPIIScrubbing:
    """Tests for PII scrubbing in _before_send."""

    def test_scrubs_email_and_username(self) -> None:
        event: dict[str, Any] = {
            "user": {"id": "123", "email": "jane@example.com", "username": "jane"}
        }
        result = _before_send(event, {})  # type: ignore[arg-type]
        assert result is not None
        assert result["user"] == {"id": "123"}  # type: ignore[typeddict-item]

    def test_anonymizes_ip_address(self) -> None:
        event: dict[str, Any] = {"user": {"ip_address": "192.168.1.100"}}
        result = _before_send(event, {})  # type: ignore[arg-type]
        assert result is not None
        assert result["user"]["ip_address"] == "{{auto}}"  # type: ignore[typeddict-item]

    def test_filters_contact_fields_in_body(self) -> None:
        event: dict[str, Any] = {
            "request": {
                "url": "/api/contact",
                "data": {
                    "name": "Jane Doe",
                    "email": "jane@example.com",
                    "subject": "Project Inquiry",
                    "message": "Call me on 555-0100",
                    "extra": "kept",
                },
            }
        }
        result = _before_send(event, {})  # type: ignore[arg-type]
        assert result is not None
        data = result["request"]["data"]  # type: ignore[typeddict-item, index]
        assert data["name"] == data["email"] == "[Filtered]"
        assert data["subject"] == data["message"] == "[Filtered]"
        assert data["extra"] == "kept"

    def test_raw_body_left_alone(self) -> None:
        event: dict[str, Any] = {"request": {"data": "[Unparsed]"}}
        result = _before_send(event, {})  # type: ignore[arg-type]
        assert result is not None
        assert result["request"]["data"] == "[Unparsed]"  # type: ignore[typeddict-item, index]

    def test_removes_cookies_and_authorization(self) -> None:
        event: dict[str, Any] = {
            "request": {
                "cookies": {"session": "secret"},
                "headers": {
                    "Authorization": "Bearer secret",
                    "Content-Type": "application/json",
                },
            }
        }
        result = _before_send(event, {})  # type: ignore[arg-type]
        assert result is not None
        request = result["request"]  # type: ignore[typeddict-item]
        assert "cookies" not in request
        assert request["headers"]["Authorization"] == "[Filtered]"  # type: ignore[index]
        assert request["headers"]["Content-Type"] == "application/json"  # type: ignore[index]

    def test_handles_bare_event(self) -> None:
        event: dict[str, Any] = {"message": "Test error"}
        assert _before_send(event, {}) == {"message": "Test error"}  # type: ignore[arg-type]


class TestBeforeSendTransaction:
    @pytest.mark.parametrize(
        "transaction",
        ["/api/health", "GET /api/health", "routers.health_router.health_check"],
    )
    def test_filters_health_checks(self, transaction: str) -> None:
        event: dict[str, Any] = {"transaction": transaction}
        assert _before_send_transaction(event, {}) is None  # type: ignore[arg-type]

    def test_keeps_contact_transactions(self) -> None:
        event: dict[str, Any] = {"transaction": "/api/contact"}
        assert _before_send_transaction(event, {}) == event  # type: ignore[arg-type]


class TestTracesSampler:
    def test_never_samples_health_checks(self) -> None:
        assert _traces_sampler({"asgi_scope": {"path": "/api/health"}}) == 0.0

    def test_always_samples_contact(self) -> None:
        assert _traces_sampler({"asgi_scope": {"path": "/api/contact"}}) == 1.0

    def test_default_sampling_rate(self) -> None:
        assert _traces_sampler({"asgi_scope": {"path": "/api/other"}}) == 0.2

    def test_respects_parent_sampling(self) -> None:
        context: dict[str, Any] = {
            "parent_sampled": True,
            "asgi_scope": {"path": "/api/health"},
        }
        assert _traces_sampler(context) == 1.0

    def test_handles_missing_asgi_scope(self) -> None:
        assert _traces_sampler({}) == 0.2


class TestInitSentry:
    def test_without_dsn_does_nothing(self) -> None:
        with patch("sentry_sdk.init") as mock_init:
            assert init_sentry(Settings(SENTRY_DSN="")) is False
        mock_init.assert_not_called()

    def test_with_dsn_initializes(self) -> None:
        settings = Settings(
            SENTRY_DSN="https://test@o0.ingest.sentry.io/0",
            ENVIRONMENT="production",
            SENTRY_RELEASE="1.2.3",
        )
        with patch("sentry_sdk.init") as mock_init:
            assert init_sentry(settings) is True

        kwargs = mock_init.call_args.kwargs
        assert kwargs["dsn"] == "https://test@o0.ingest.sentry.io/0"
        assert kwargs["environment"] == "production"
        assert kwargs["release"] == "1.2.3"
        assert kwargs["send_default_pii"] is False
