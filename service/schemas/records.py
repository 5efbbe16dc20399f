"""Pydantic schemas for record endpoints."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel


class RecordWriteRequest(BaseModel):
    """Request model for writing a source record."""
    payload: Dict[str, Any]


class RecordPatchRequest(BaseModel):
    """Request model for patching payload fields of a source record."""
    fields: Dict[str, Any]


class RecordResponse(BaseModel):
    """Response model for a single record."""
    key: str
    payload: Dict[str, Any]
    created_at: Optional[int] = None
    updated_at: Optional[int] = None
    source_updated_at: Optional[int] = None


class RecordListResponse(BaseModel):
    """Response model for a page of records."""
    records: List[RecordResponse]
    total: int


class UpdateResponse(BaseModel):
    """Response model for a filtered update."""
    matched: int
    modified: int
