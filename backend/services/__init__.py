"""
Services layer for business logic.

This package contains service modules that encapsulate business logic
separate from the API routes.
"""

from .contact_service import ContactMailDispatcher, ContactService
from .email_service import EmailProvider, get_email_provider
from .rate_limit_service import FixedWindowRateLimiter

__all__ = [
    "ContactMailDispatcher",
    "ContactService",
    "EmailProvider",
    "get_email_provider",
    "FixedWindowRateLimiter",
]
