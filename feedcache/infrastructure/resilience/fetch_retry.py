"""Service for executing content-source calls with automatic retries.

Implements exponential backoff for transient NetworkErrors. Decode errors
and other content-source failures are not retried; they would fail the
same way again.
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Optional, Tuple, Type

from feedcache.domain.exceptions import ContentDecodeError, ContentSourceError, MaxRetryError, NetworkError
from feedcache.domain.models.common import BackoffPolicy

logger = logging.getLogger(__name__)

RETRYABLE_EXCEPTIONS: Tuple[Type[BaseException], ...] = (NetworkError,)
NON_RETRYABLE_EXCEPTIONS: Tuple[Type[BaseException], ...] = (ContentDecodeError, ContentSourceError)

DEFAULT_BACKOFF_POLICY: BackoffPolicy = {"max_retries": 3, "initial_delay": 0.5, "factor": 2.0}

SleepFunc = Callable[[float], Awaitable[Any]]


class FetchRetryService:
    """Runs a coroutine factory, retrying transient failures with backoff."""

    def __init__(
        self,
        max_retries: int = DEFAULT_BACKOFF_POLICY["max_retries"],
        initial_backoff_s: float = DEFAULT_BACKOFF_POLICY["initial_delay"],
        backoff_factor: float = DEFAULT_BACKOFF_POLICY["factor"],
        sleep: Optional[SleepFunc] = None,
    ):
        """Initializes the FetchRetryService.

        Args:
            max_retries: Retries after the first attempt (0 disables retrying).
            initial_backoff_s: Delay in seconds before the first retry.
            backoff_factor: Multiplier for the delay after each retry.
            sleep: Awaitable sleep, injectable for tests (asyncio.sleep by default).
        """
        if max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {max_retries}")
        self.max_retries = max_retries
        self.initial_backoff_s = initial_backoff_s
        self.backoff_factor = backoff_factor
        self._sleep = sleep or asyncio.sleep
        logger.info(
            f"FetchRetryService initialized: max_retries={max_retries}, "
            f"initial_backoff={initial_backoff_s}s, factor={backoff_factor}"
        )

    @classmethod
    def from_policy(cls, policy: BackoffPolicy, sleep: Optional[SleepFunc] = None) -> "FetchRetryService":
        return cls(
            max_retries=policy["max_retries"],
            initial_backoff_s=policy["initial_delay"],
            backoff_factor=policy["factor"],
            sleep=sleep,
        )

    async def execute_with_retry(
        self,
        func: Callable[[], Awaitable[Any]],
        operation_name: Optional[str] = None,
    ) -> Any:
        """Executes an async call with retries.

        Args:
            func: Zero-argument callable returning a fresh awaitable per attempt.
            operation_name: Name used in log messages.

        Returns:
            The result of the first successful attempt.

        Raises:
            MaxRetryError: If every attempt failed with a retryable error.
            ContentSourceError: If a non-retryable error occurs.
        """
        name = operation_name or getattr(func, "__name__", "call")
        current_backoff = self.initial_backoff_s
        last_exception: Optional[Exception] = None

        for attempt in range(self.max_retries + 1):
            try:
                start_time = time.perf_counter()
                result = await func()
                latency_ms = (time.perf_counter() - start_time) * 1000
                logger.debug(f"{name} succeeded on attempt {attempt + 1} in {latency_ms:.1f}ms")
                return result
            except RETRYABLE_EXCEPTIONS as e:
                last_exception = e
                if attempt < self.max_retries:
                    logger.warning(
                        f"Retryable error calling {name} on attempt {attempt + 1}/{self.max_retries + 1}: "
                        f"{type(e).__name__}: {e}. Waiting {current_backoff:.2f}s..."
                    )
                    await self._sleep(current_backoff)
                    current_backoff *= self.backoff_factor
                else:
                    logger.error(f"Max retries ({self.max_retries}) reached for {name}. Last error: {e}")
            except NON_RETRYABLE_EXCEPTIONS as e:
                logger.error(f"Non-retryable error calling {name} on attempt {attempt + 1}: {e}")
                raise

        raise MaxRetryError(last_exception or NetworkError("Unknown error after retries"), self.max_retries + 1)
