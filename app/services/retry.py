# app/services/retry.py
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Tuple, Type, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def linear_backoff(step_ms: int) -> Callable[[int], float]:
    """Wait attempt * step_ms milliseconds after failed attempt N (1-based)."""
    def _delay(attempt: int) -> float:
        return attempt * step_ms / 1000.0
    return _delay


@dataclass
class RetryPolicy:
    """
    Run an async operation up to `max_attempts` times, sleeping
    `backoff(attempt)` seconds between attempts. The last error is re-raised
    once attempts are exhausted; exceptions outside `retry_on` propagate
    immediately.
    """
    max_attempts: int = 3
    backoff: Callable[[int], float] = field(default_factory=lambda: linear_backoff(1000))
    retry_on: Tuple[Type[BaseException], ...] = (Exception,)
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep

    async def run(self, operation: Callable[[], Awaitable[T]], label: str = "operation") -> T:
        attempt = 0
        while True:
            attempt += 1
            try:
                return await operation()
            except self.retry_on as exc:
                logger.warning("%s failed (attempt %s/%s): %s", label, attempt, self.max_attempts, exc)
                if attempt >= self.max_attempts:
                    raise
                await self.sleep(self.backoff(attempt))
