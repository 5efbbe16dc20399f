"""Configuration settings for the sync engine."""

import os
from dataclasses import asdict, dataclass

from common.constants import (
    DEFAULT_DELTA_CONCURRENCY,
    DEFAULT_MAX_RETRIES,
    DEFAULT_PAGE_SIZE,
    DEFAULT_POLL_INTERVAL_SECONDS,
    DEFAULT_RETRY_BASE_DELAY_SECONDS,
    DEFAULT_SEED_STRATEGY,
    SEED_STRATEGIES,
)


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class SyncConfig:
    """
    Options recognized by the sync engine.

    Attributes:
        page_size: Batch size of the paginated synchronizer and of reconciliation scans
        poll_interval_seconds: Reconciliation tick cadence
        initial_seed: Run a full or paginated sync before starting the loop
        seed_strategy: "paginated" or "full"
        delta_concurrency: Max concurrent key fetch/upserts during a delta apply
        max_retries: Retries on StoreUnavailableError before giving up
        retry_base_delay: First retry delay in seconds, doubled on every attempt
    """
    page_size: int = DEFAULT_PAGE_SIZE
    poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS
    initial_seed: bool = True
    seed_strategy: str = DEFAULT_SEED_STRATEGY
    delta_concurrency: int = DEFAULT_DELTA_CONCURRENCY
    max_retries: int = DEFAULT_MAX_RETRIES
    retry_base_delay: float = DEFAULT_RETRY_BASE_DELAY_SECONDS

    @classmethod
    def from_env(cls) -> 'SyncConfig':
        """Build a config from RECORDSYNC_* environment variables."""
        return cls(
            page_size=int(os.environ.get("RECORDSYNC_PAGE_SIZE", DEFAULT_PAGE_SIZE)),
            poll_interval_seconds=float(
                os.environ.get("RECORDSYNC_POLL_INTERVAL", DEFAULT_POLL_INTERVAL_SECONDS)
            ),
            initial_seed=_env_bool("RECORDSYNC_INITIAL_SEED", True),
            seed_strategy=os.environ.get("RECORDSYNC_SEED_STRATEGY", DEFAULT_SEED_STRATEGY),
            delta_concurrency=int(
                os.environ.get("RECORDSYNC_DELTA_CONCURRENCY", DEFAULT_DELTA_CONCURRENCY)
            ),
            max_retries=int(os.environ.get("RECORDSYNC_MAX_RETRIES", DEFAULT_MAX_RETRIES)),
            retry_base_delay=float(
                os.environ.get("RECORDSYNC_RETRY_BASE_DELAY", DEFAULT_RETRY_BASE_DELAY_SECONDS)
            ),
        )

    def validate(self) -> 'SyncConfig':
        """
        Check option ranges.

        Returns:
            self, for chaining

        Raises:
            ValueError: If an option is out of range
        """
        if self.page_size < 1:
            raise ValueError("page_size must be at least 1")
        if self.poll_interval_seconds <= 0:
            raise ValueError("poll_interval_seconds must be positive")
        if self.delta_concurrency < 1:
            raise ValueError("delta_concurrency must be at least 1")
        if self.max_retries < 0:
            raise ValueError("max_retries cannot be negative")
        if self.retry_base_delay < 0:
            raise ValueError("retry_base_delay cannot be negative")
        if self.seed_strategy not in SEED_STRATEGIES:
            raise ValueError(
                f"Unknown seed_strategy {self.seed_strategy!r}, expected one of {SEED_STRATEGIES}"
            )
        return self

    def to_dict(self) -> dict:
        return asdict(self)
