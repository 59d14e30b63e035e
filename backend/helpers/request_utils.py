"""
Request utilities for extracting client information.

The client address keys the contact form rate limit, so proxy headers are
only honoured when the deployment says a trusted proxy sets them.
"""

from typing import Optional

from fastapi import Request

UNKNOWN_CLIENT = "unknown"


def get_forwarded_ip(request: Request) -> Optional[str]:
    """
    Extract the client IP set by a reverse proxy.

    Headers in order of precedence:
    1. CF-Connecting-IP (Cloudflare)
    2. X-Real-IP (nginx)
    3. X-Forwarded-For (standard proxy header, first IP)

    Args:
        request: FastAPI request object

    Returns:
        Client IP address or None if no proxy header is present
    """
    cf_ip = request.headers.get("CF-Connecting-IP")
    if cf_ip and cf_ip.strip():
        return cf_ip.strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip and real_ip.strip():
        return real_ip.strip()

    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        # First IP in the list is the original client
        first_ip = forwarded_for.split(",")[0].strip()
        if first_ip:
            return first_ip

    return None


def get_client_ip(request: Request, trust_proxy_headers: bool = False) -> str:
    """
    Identify the client for rate limiting.

    Args:
        request: FastAPI request object
        trust_proxy_headers: Use proxy headers before the peer address

    Returns:
        Client IP address, or "unknown" when the peer address is unavailable
    """
    if trust_proxy_headers:
        forwarded = get_forwarded_ip(request)
        if forwarded:
            return forwarded

    if request.client and request.client.host:
        return request.client.host

    return UNKNOWN_CLIENT
