"""
Timestamp and log-masking utilities.
"""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def format_iso8601(dt: datetime) -> str:
    """
    Format a datetime as an ISO 8601 UTC string with milliseconds.

    Args:
        dt: The datetime to format (naive values are taken as UTC)

    Returns:
        ISO 8601 formatted string (e.g., "2024-01-15T10:30:00.123Z")
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def mask_ip_address(ip: str | None) -> str | None:
    """
    Mask an IP address for logs (show only first octet for IPv4).

    Args:
        ip: IP address string or None

    Returns:
        Masked IP like "192.x.x.x" for IPv4 or first segments for IPv6
    """
    if ip is None:
        return None

    if ":" in ip:
        # IPv6 - show first two segments
        parts = ip.split(":")
        if len(parts) >= 2:
            return f"{parts[0]}:{parts[1]}:*:*:*:*:*:*"
        return ip

    # IPv4 - show only first octet
    parts = ip.split(".")
    if len(parts) == 4:
        return f"{parts[0]}.x.x.x"

    return ip
