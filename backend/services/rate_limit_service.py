"""
Rate Limit Service - fixed window admission for contact submissions.

Each client identifier (its network address) may submit a limited number of
times per window. The window starts with the identifier's first admitted
request and expires once it has fully elapsed, so a client can burst up to
twice the limit across a window boundary.

Counting and expiry are done by the `limits` package (the engine behind
slowapi). It is called from the service after the form rules pass, so
invalid submissions never touch the counters. State is held in process
memory and is lost on restart; pass a shared `limits` storage (e.g. Redis)
for multiple server instances.
"""

import math
import threading
import time
from dataclasses import dataclass

from limits import RateLimitItemPerSecond
from limits.storage import MemoryStorage, Storage
from limits.strategies import FixedWindowRateLimiter as FixedWindowStrategy
from loguru import logger

from helpers.time_utils import mask_ip_address
from models.exceptions import RateLimitExceededException

NAMESPACE = "contact"


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of one admission check."""

    allowed: bool
    limit: int
    remaining: int
    reset_after: int  # seconds until the window rolls over

    @property
    def retry_after(self) -> int | None:
        return None if self.allowed else self.reset_after


class FixedWindowRateLimiter:
    """Fixed window rate limiter keyed by client identifier."""

    DEFAULT_MAX_REQUESTS = 5
    DEFAULT_WINDOW_SECONDS = 15 * 60

    def __init__(
        self,
        max_requests: int = DEFAULT_MAX_REQUESTS,
        window_seconds: int = DEFAULT_WINDOW_SECONDS,
        storage: Storage | None = None,
    ) -> None:
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window_seconds < 1:
            raise ValueError("window_seconds must be at least 1")

        self.max_requests = max_requests
        self.window_seconds = int(window_seconds)
        self.item = RateLimitItemPerSecond(
            max_requests, self.window_seconds, namespace=NAMESPACE
        )
        self.storage = storage or MemoryStorage()
        self._strategy = FixedWindowStrategy(self.storage)
        # test() then hit() must not interleave for the same identifier
        self._lock = threading.Lock()

    def _reset_after(self, identifier: str) -> int:
        reset_time, _ = self._strategy.get_window_stats(self.item, identifier)
        return max(0, math.ceil(reset_time - time.time()))

    def hit(self, identifier: str) -> RateLimitDecision:
        """
        Check and record one submission for an identifier.

        A rejected request does not count against the window, so the
        remaining quota and reset time only move on admitted requests.

        Args:
            identifier: Client identifier (usually the IP address)

        Returns:
            RateLimitDecision describing whether the request is admitted
        """
        with self._lock:
            allowed = self._strategy.test(self.item, identifier)
            if allowed:
                allowed = self._strategy.hit(self.item, identifier)
            _, remaining = self._strategy.get_window_stats(self.item, identifier)
            reset_after = (
                self._reset_after(identifier)
                if remaining < self.max_requests
                else self.window_seconds
            )

        return RateLimitDecision(
            allowed=allowed,
            limit=self.max_requests,
            remaining=remaining,
            reset_after=reset_after,
        )

    def check(self, identifier: str) -> RateLimitDecision:
        """
        Admit one submission or raise.

        Raises:
            RateLimitExceededException: If the identifier's window is full
        """
        decision = self.hit(identifier)
        if not decision.allowed:
            logger.warning(
                f"Contact rate limit reached for {mask_ip_address(identifier)} "
                f"(retry in {decision.retry_after}s)"
            )
            raise RateLimitExceededException(
                retry_after=decision.retry_after,
                limit=decision.limit,
            )
        return decision

    def remaining(self, identifier: str) -> int:
        """Number of submissions still available to an identifier."""
        return self._strategy.get_window_stats(self.item, identifier).remaining

    def reset(self, identifier: str | None = None) -> None:
        """
        Forget the window of one identifier, or of all identifiers.

        Useful for testing or admin operations.
        """
        with self._lock:
            if identifier is None:
                self.storage.reset()
            else:
                self._strategy.clear(self.item, identifier)
