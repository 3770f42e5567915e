"""
Rate Limiter Service

In-memory rate limiting with sliding window algorithm.
"""

import logging
from collections import defaultdict
from datetime import datetime, timedelta

from fastapi import HTTPException, status

from app.config import settings

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    In-memory rate limiter using sliding window algorithm.

    Tracks requests per key (the requester's wallet address) and enforces
    rate limits.
    """

    def __init__(self, max_requests: int, window_seconds: int):
        """
        Initialize rate limiter.

        Args:
            max_requests: Maximum number of requests allowed in time window
            window_seconds: Time window in seconds
        """
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.requests = defaultdict(list)  # key -> list of timestamps

    def check_rate_limit(self, key: str) -> None:
        """
        Check if key has exceeded rate limit.

        Uses sliding window algorithm:
        1. Remove old requests outside time window
        2. Check if remaining requests exceed limit
        3. Record current request timestamp

        Raises:
            HTTPException: 429 if rate limit exceeded
        """
        now = datetime.now()
        cutoff = now - timedelta(seconds=self.window_seconds)

        self.requests[key] = [
            req_time for req_time in self.requests[key]
            if req_time > cutoff
        ]

        if len(self.requests[key]) >= self.max_requests:
            logger.warning(
                f"Rate limit exceeded for {key}: "
                f"{len(self.requests[key])} requests in window"
            )
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail=(
                    f"Rate limit exceeded. Max {self.max_requests} renders "
                    f"per {self.window_seconds} seconds."
                ),
            )

        self.requests[key].append(now)
        logger.debug(
            f"Rate limit check passed: {key} has "
            f"{len(self.requests[key])} requests in window"
        )

    def reset(self) -> None:
        self.requests.clear()


render_rate_limiter = RateLimiter(
    max_requests=settings.RATE_LIMIT_REQUESTS,
    window_seconds=settings.RATE_LIMIT_WINDOW,
)
