"""Bounded exponential backoff for transient store failures."""

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from common.constants import DEFAULT_MAX_RETRIES, DEFAULT_RETRY_BASE_DELAY_SECONDS
from common.exceptions import StoreUnavailableError
from common.logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    """
    Retry policy applied at every store call site.

    Only StoreUnavailableError is retried; any other error is raised at once.
    """
    max_retries: int = DEFAULT_MAX_RETRIES
    base_delay: float = DEFAULT_RETRY_BASE_DELAY_SECONDS

    async def call(self, operation: Callable[..., Awaitable[Any]], *args, **kwargs) -> Any:
        """
        Await operation(*args, **kwargs), retrying transient failures.

        Args:
            operation: Async function to retry
            *args, **kwargs: Arguments to pass to operation

        Returns:
            Result from successful operation

        Raises:
            StoreUnavailableError: If all retries are exhausted
        """
        name = getattr(operation, "__qualname__", repr(operation))

        for attempt in range(self.max_retries + 1):
            try:
                return await operation(*args, **kwargs)
            except StoreUnavailableError as e:
                if attempt >= self.max_retries:
                    logger.error(
                        f"{name} failed after {attempt + 1} attempt(s): {e}"
                    )
                    raise

                delay = self.base_delay * (2 ** attempt)
                logger.warning(
                    f"Transient failure in {name}, retrying in {delay}s "
                    f"(attempt {attempt + 1}/{self.max_retries + 1}): {e}"
                )
                await asyncio.sleep(delay)
