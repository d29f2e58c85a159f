"""Retry/backoff policy for remote calls, built on tenacity."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from tenacity import AsyncRetrying, RetryCallState, retry_if_exception_type, stop_after_attempt

from treasurywatch.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)

Backoff = Callable[[int], float]


def exponential_backoff(base: float = 2.0) -> Backoff:
    """Delay before retry ``n`` (1-based) is ``base ** n`` seconds: 2, 4, 8, 16, 32 for base 2."""

    def delay(attempt: int) -> float:
        return base ** attempt

    return delay


@dataclass(frozen=True)
class RetryPolicy:
    max_retries: int = 5
    backoff: Backoff = field(default_factory=exponential_backoff)
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def retrying(self, description: str = "remote call") -> AsyncRetrying:
        """Fresh tenacity controller; retries ExternalServiceError only and re-raises the last one."""

        def _wait(state: RetryCallState) -> float:
            return self.backoff(state.attempt_number)

        def _log(state: RetryCallState) -> None:
            exc = state.outcome.exception() if state.outcome else None
            logger.warning(
                "%s failed (attempt %d/%d), retrying in %.0fs: %s",
                description, state.attempt_number, self.max_attempts,
                state.next_action.sleep if state.next_action else 0, exc,
            )

        return AsyncRetrying(
            retry=retry_if_exception_type(ExternalServiceError),
            stop=stop_after_attempt(self.max_attempts),
            wait=_wait,
            sleep=self.sleep,
            before_sleep=_log,
            reraise=True,
        )

    async def call(self, fn: Callable[[], Awaitable], description: str = "remote call"):
        async for attempt in self.retrying(description):
            with attempt:
                return await fn()
