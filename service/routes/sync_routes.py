"""Sync control API routes."""

from fastapi import APIRouter, Depends, HTTPException, status

from common.exceptions import SyncAbortedError
from common.logging_config import get_logger
from replicator.engine import SyncEngine
from service.schemas.common import ErrorResponse
from service.schemas.sync import (
    CountersResponse,
    CursorResponse,
    DeltaSyncRequest,
    DeltaSyncResponse,
    FullSyncResponse,
    LoopStatusResponse,
    PaginatedSyncRequest,
    SyncStatusResponse,
    TickResponse
)
from service.service_locator import get_engine, get_last_cursor, set_last_cursor

logger = get_logger(__name__)

router = APIRouter(prefix="/sync", tags=["Sync"])


def require_engine() -> SyncEngine:
    """Dependency to get the sync engine"""
    engine = get_engine()
    if engine is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Sync engine not initialized"
        )
    return engine


@router.get("/status", response_model=SyncStatusResponse)
async def sync_status(engine: SyncEngine = Depends(require_engine)):
    """
    Return the reconciliation loop state, tick statistics and event counters.
    """
    return engine.status()


@router.post("/full", response_model=FullSyncResponse, responses={503: {"model": ErrorResponse}})
async def full_sync(engine: SyncEngine = Depends(require_engine)):
    """
    Copy every source record into the target in one pass.

    Raises:
        - 503: Sync aborted (response reports records applied before failure)
    """
    result = await engine.full_sync()
    return FullSyncResponse(
        processed=result.processed,
        counters=CountersResponse(**engine.events.snapshot().to_dict())
    )


@router.post("/paginated", response_model=CursorResponse, responses={503: {"model": ErrorResponse}})
async def paginated_sync(
    request: PaginatedSyncRequest,
    engine: SyncEngine = Depends(require_engine)
):
    """
    Copy the source into the target in pages.

    Parameters:
        - page_size: Records per page (defaults to the engine config)
        - max_pages: Pages to process in this call (defaults to all)
        - resume: Continue the latest unfinished run instead of starting over

    Returns:
        - The sync cursor
    """
    cursor = get_last_cursor() if request.resume else None

    try:
        cursor = await engine.paginated_sync(
            page_size=request.page_size,
            cursor=cursor,
            max_pages=request.max_pages
        )
    except SyncAbortedError as e:
        if e.cursor is not None:
            set_last_cursor(e.cursor)
        raise

    set_last_cursor(cursor)
    return CursorResponse(**cursor.to_dict())


@router.post("/delta", response_model=DeltaSyncResponse)
async def delta_sync(request: DeltaSyncRequest, engine: SyncEngine = Depends(require_engine)):
    """
    Replicate an explicit list of changed keys.

    Returns:
        - applied_keys, failed_keys (key -> reason) and skipped_keys
    """
    result = await engine.apply_changes(request.keys)
    return DeltaSyncResponse(**result.to_dict())


@router.post("/tick", response_model=TickResponse, responses={409: {"model": ErrorResponse}})
async def run_tick(engine: SyncEngine = Depends(require_engine)):
    """
    Run one reconciliation tick now.

    Raises:
        - 409: A tick is already scanning or applying
    """
    result = await engine.reconcile_once()
    if result is None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Reconciliation tick already {engine.loop.state.value}"
        )
    return TickResponse(**result.to_dict())


@router.post("/loop/start", response_model=LoopStatusResponse)
async def start_loop(engine: SyncEngine = Depends(require_engine)):
    """
    Start polling for changes (no initial seed).
    """
    await engine.loop.start()
    return engine.loop.status()


@router.post("/loop/stop", response_model=LoopStatusResponse)
async def stop_loop(engine: SyncEngine = Depends(require_engine)):
    """
    Stop polling; an in-flight tick finishes before this returns.
    """
    await engine.stop()
    return engine.loop.status()
