"""Pydantic schemas for API requests and responses."""

from service.schemas.sync import (
    CountersResponse,
    LoopStatusResponse,
    SyncStatusResponse,
    FullSyncResponse,
    PaginatedSyncRequest,
    CursorResponse,
    DeltaSyncRequest,
    DeltaSyncResponse,
    TickResponse
)
from service.schemas.records import (
    RecordWriteRequest,
    RecordPatchRequest,
    RecordResponse,
    RecordListResponse,
    UpdateResponse
)
from service.schemas.common import ErrorResponse

__all__ = [
    "CountersResponse",
    "LoopStatusResponse",
    "SyncStatusResponse",
    "FullSyncResponse",
    "PaginatedSyncRequest",
    "CursorResponse",
    "DeltaSyncRequest",
    "DeltaSyncResponse",
    "TickResponse",
    "RecordWriteRequest",
    "RecordPatchRequest",
    "RecordResponse",
    "RecordListResponse",
    "UpdateResponse",
    "ErrorResponse"
]
