"""Pydantic schemas for sync control endpoints."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class CountersResponse(BaseModel):
    """Event sink counters."""
    records_seeded: int
    events_sent: int


class LoopStatusResponse(BaseModel):
    """Reconciliation loop status."""
    state: str
    running: bool
    poll_interval_seconds: float
    ticks_completed: int
    dropped_ticks: int
    last_tick: Optional[Dict[str, Any]] = None


class SyncStatusResponse(BaseModel):
    """Response model for engine status."""
    source: str
    target: str
    loop: LoopStatusResponse
    counters: CountersResponse
    config: Dict[str, Any]


class FullSyncResponse(BaseModel):
    """Response model for a full sync."""
    processed: int
    counters: CountersResponse


class PaginatedSyncRequest(BaseModel):
    """Request model for a paginated sync."""
    page_size: Optional[int] = Field(default=None, ge=1)
    max_pages: Optional[int] = Field(default=None, ge=1)
    resume: bool = False


class CursorResponse(BaseModel):
    """Response model for a paginated sync cursor."""
    page_size: int
    pages_completed: int
    total_expected: int
    records_applied: int
    done: bool


class DeltaSyncRequest(BaseModel):
    """Request model for applying changed keys."""
    keys: List[str]


class DeltaSyncResponse(BaseModel):
    """Response model for a delta sync."""
    applied_keys: List[str]
    failed_keys: Dict[str, str]
    skipped_keys: List[str]


class TickResponse(BaseModel):
    """Response model for one reconciliation tick."""
    tick_id: int
    changed_keys: List[str]
    delta: Optional[DeltaSyncResponse] = None
    error: Optional[str] = None
