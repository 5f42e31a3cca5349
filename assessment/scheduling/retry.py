"""Fixed-delay retry for scheduler work."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Sequence, TypeVar

from loguru import logger

T = TypeVar("T")

DEFAULT_RETRY_DELAYS_MS: tuple[int, ...] = (0, 1000, 3000)


@dataclass
class RetryPolicy:
    """
    Run an async callable once per delay entry until it succeeds.

    Each attempt waits its delay first, so the default (0, 1000, 3000) means
    an immediate try, then retries after 1s and 3s. The last error propagates.
    """

    delays_ms: Sequence[int] = DEFAULT_RETRY_DELAYS_MS
    sleep: Callable[[float], Awaitable[None]] = field(default=asyncio.sleep, repr=False)

    def __post_init__(self) -> None:
        if not self.delays_ms:
            raise ValueError("delays_ms must contain at least one entry")
        if any(delay < 0 for delay in self.delays_ms):
            raise ValueError("delays_ms entries must be >= 0")

    @property
    def max_attempts(self) -> int:
        return len(self.delays_ms)

    async def run(
        self,
        fn: Callable[[], Awaitable[T]],
        on_retry: Callable[[int, Exception], None] | None = None,
    ) -> T:
        """
        Call fn until it succeeds or the attempts run out.

        Args:
            fn: Zero-argument coroutine factory
            on_retry: Called with (attempt number, error) before each retry

        Returns:
            fn's result
        """
        attempt = 0
        while True:
            delay_ms = self.delays_ms[attempt]
            attempt += 1
            if delay_ms > 0:
                await self.sleep(delay_ms / 1000)
            try:
                return await fn()
            except Exception as exc:
                if attempt >= self.max_attempts:
                    raise
                logger.warning("Attempt {}/{} failed: {}", attempt, self.max_attempts, exc)
                if on_retry is not None:
                    on_retry(attempt, exc)
