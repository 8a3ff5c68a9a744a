"""Rate-limit-aware retry for remote calls (core domain)."""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Awaitable, Callable, Optional, TypeVar

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_ATTEMPTS = 5

# Wait hints as Telegram/Telethon phrase them, plus the generic transport form.
_RATE_LIMIT_PATTERNS = (
    re.compile(r"FLOOD_WAIT[ _]\(?(\d+)\)?"),
    re.compile(r"A wait of (\d+) seconds is required"),
    re.compile(r"rate limited, retry after (\d+)"),
)


class RetryExhaustedError(RuntimeError):
    """Raised when a rate-limited call still fails after every attempt."""

    def __init__(self, attempts: int, last_error: BaseException) -> None:
        super().__init__(f"gave up after {attempts} attempts: {last_error}")
        self.attempts = attempts
        self.last_error = last_error


def rate_limit_wait(error: BaseException) -> Optional[int]:
    """Return the server's wait hint in seconds, or None if not rate limited."""

    # Telethon's FloodWaitError exposes the hint directly.
    seconds = getattr(error, "seconds", None)
    if isinstance(seconds, int) and not isinstance(seconds, bool):
        return seconds

    text = str(error)
    for pattern in _RATE_LIMIT_PATTERNS:
        found = pattern.search(text)
        if found:
            return int(found.group(1))
    return None


class RequestRetrier:
    """Run remote calls, sleeping and retrying when the server asks us to wait.

    The backoff is the server's hint plus the number of requests issued since
    the last rate limit, so a busy run waits longer than the bare hint.
    """

    def __init__(
        self,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._max_attempts = max_attempts
        self._sleep = sleep
        self.requests_since_limit = 0

    async def execute(self, operation: Callable[[], Awaitable[T]]) -> T:
        """Await ``operation()`` until it succeeds or a non-retryable error occurs."""

        last_error: Optional[BaseException] = None
        for attempt in range(1, self._max_attempts + 1):
            self.requests_since_limit += 1
            try:
                return await operation()
            except Exception as exc:
                wait_hint = rate_limit_wait(exc)
                if wait_hint is None:
                    raise
                last_error = exc
                delay = wait_hint + self.requests_since_limit
                self.requests_since_limit = 0
                if attempt == self._max_attempts:
                    break
                LOGGER.warning(
                    "Rate limited (attempt %s/%s), sleeping %ss", attempt, self._max_attempts, delay
                )
                await self._sleep(delay)

        assert last_error is not None
        raise RetryExhaustedError(self._max_attempts, last_error) from last_error
