"""Record API routes for writing the source and reading either store."""

from enum import Enum

from fastapi import APIRouter, Depends, HTTPException, Query, status

from common.exceptions import RecordNotFoundError
from common.types import Record
from replicator.engine import SyncEngine
from service.routes.sync_routes import require_engine
from service.schemas.common import ErrorResponse
from service.schemas.records import (
    RecordListResponse,
    RecordPatchRequest,
    RecordResponse,
    RecordWriteRequest,
    UpdateResponse
)
from store.base import RecordStore

router = APIRouter(tags=["Records"])


class StoreName(str, Enum):
    source = "source"
    target = "target"


def _select_store(engine: SyncEngine, store: StoreName) -> RecordStore:
    return engine.source if store is StoreName.source else engine.target


@router.put("/source/records/{key}", response_model=RecordResponse)
async def write_source_record(
    key: str,
    request: RecordWriteRequest,
    engine: SyncEngine = Depends(require_engine)
):
    """
    Insert or replace a record in the source store.
    """
    stored = await engine.source.upsert(key, Record(key=key, payload=request.payload))
    return RecordResponse(**stored.to_dict())


@router.patch("/source/records/{key}", response_model=UpdateResponse, responses={404: {"model": ErrorResponse}})
async def patch_source_record(
    key: str,
    request: RecordPatchRequest,
    engine: SyncEngine = Depends(require_engine)
):
    """
    Update payload fields of a source record, bumping its updated_at.

    Raises:
        - 400: The patch tries to change the key
        - 404: No source record with this key
    """
    try:
        result = await engine.source.update({"key": key}, request.fields)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    if result.matched == 0:
        raise RecordNotFoundError(key)
    return UpdateResponse(matched=result.matched, modified=result.modified)


@router.get("/{store}/records/{key}", response_model=RecordResponse, responses={404: {"model": ErrorResponse}})
async def read_record(
    store: StoreName,
    key: str,
    engine: SyncEngine = Depends(require_engine)
):
    """
    Read one record from the source or target store.

    Raises:
        - 404: No record with this key
    """
    record = await _select_store(engine, store).get(key)
    if record is None:
        raise RecordNotFoundError(key)
    return RecordResponse(**record.to_dict())


@router.get("/{store}/records", response_model=RecordListResponse)
async def list_records(
    store: StoreName,
    limit: int = Query(50, ge=1, le=1000),
    skip: int = Query(0, ge=0),
    engine: SyncEngine = Depends(require_engine)
):
    """
    Page through a store in insertion order.
    """
    selected = _select_store(engine, store)
    records = await selected.find({}, limit=limit, skip=skip)
    total = await selected.count({})
    return RecordListResponse(
        records=[RecordResponse(**r.to_dict()) for r in records],
        total=total
    )
