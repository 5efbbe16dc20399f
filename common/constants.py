"""Project-wide constants (default batch sizes, intervals, retry limits)."""

DEFAULT_PAGE_SIZE: int = 50
DEFAULT_POLL_INTERVAL_SECONDS: float = 5.0
DEFAULT_DELTA_CONCURRENCY: int = 10

DEFAULT_MAX_RETRIES: int = 3
DEFAULT_RETRY_BASE_DELAY_SECONDS: float = 0.5

SEED_STRATEGIES = ("full", "paginated")
DEFAULT_SEED_STRATEGY: str = "paginated"

SERVICE_NAME: str = "recordsync"
