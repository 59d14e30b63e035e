"""
Sentry SDK configuration.

Sentry only runs when SENTRY_DSN is configured. Contact submissions carry
visitor names and email addresses, so events are scrubbed before sending.
"""

from typing import TYPE_CHECKING, Any

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.loguru import LoguruIntegration
from sentry_sdk.types import Event, Hint

if TYPE_CHECKING:
    from models.config import Settings

HEALTH_PATHS = (
    "/api/health",
    "GET /api/health",
    "routers.health_router.health_check",
)
CONTACT_FIELDS = ("name", "email", "subject", "message")


def _before_send(event: Event, hint: Hint) -> Event | None:
    """
    Scrub visitor PII before sending to Sentry.

    - Remove email and username from the user block
    - Replace contact form fields in the request body
    - Drop cookies and the authorization header

    Args:
        event: Sentry event.
        hint: Additional context about the event.

    Returns:
        The scrubbed event.
    """
    user = event.get("user")
    if user:
        user.pop("email", None)
        user.pop("username", None)
        if "ip_address" in user:
            user["ip_address"] = "{{auto}}"

    request = event.get("request")
    if request and isinstance(request, dict):
        request.pop("cookies", None)
        headers = request.get("headers")
        if isinstance(headers, dict) and "Authorization" in headers:
            headers["Authorization"] = "[Filtered]"
        data = request.get("data")
        if isinstance(data, dict):
            for field in CONTACT_FIELDS:
                if field in data:
                    data[field] = "[Filtered]"

    return event


def _before_send_transaction(event: Event, hint: Hint) -> Event | None:
    """Drop health check transactions."""
    if event.get("transaction", "") in HEALTH_PATHS:
        return None
    return event


def _traces_sampler(sampling_context: dict[str, Any]) -> float:
    """
    Sample rate per request.

    Args:
        sampling_context: Context about the request being sampled.

    Returns:
        Sample rate between 0.0 and 1.0.
    """
    if sampling_context.get("parent_sampled") is True:
        return 1.0

    path = sampling_context.get("asgi_scope", {}).get("path", "")
    if path == "/api/health":
        return 0.0

    # Contact submissions are rare; trace all of them
    if path == "/api/contact":
        return 1.0

    return 0.2


def init_sentry(settings: "Settings") -> bool:
    """
    Initialize Sentry SDK with FastAPI integration.

    Call this BEFORE creating the FastAPI app instance.

    Returns:
        True if Sentry was initialized, False if disabled.
    """
    if not settings.SENTRY_DSN:
        return False

    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.ENVIRONMENT,
        release=settings.SENTRY_RELEASE,
        send_default_pii=False,
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            LoguruIntegration(),
        ],
        traces_sampler=_traces_sampler,
        sample_rate=1.0,
        before_send=_before_send,
        before_send_transaction=_before_send_transaction,
        attach_stacktrace=True,
        max_breadcrumbs=50,
        ignore_errors=[
            KeyboardInterrupt,
            SystemExit,
        ],
    )
    return True
