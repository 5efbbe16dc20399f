"""Entry point for the sync service."""

import time
import uuid
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from common.constants import SERVICE_NAME
from common.exceptions import (
    DuplicateKeyError,
    RecordNotFoundError,
    StoreUnavailableError,
    SyncAbortedError,
    SyncError
)
from common.logging_config import setup_logging
from replicator.config import SyncConfig
from replicator.engine import SyncEngine
from service import config as service_config
from service.config import SERVICE_HOST, SERVICE_PORT
from service.routes.record_routes import router as record_router
from service.routes.sync_routes import router as sync_router
from service.service_locator import get_engine, set_engine
from store.clock import LogicalClock
from store.memory_store import InMemoryRecordStore

logger = setup_logging('service')
setup_logging('replicator')
setup_logging('store')

app = FastAPI(
    title=SERVICE_NAME,
    description="Source to target record replication service",
    version="1.0.0"
)


def build_engine(config: Optional[SyncConfig] = None) -> SyncEngine:
    """
    Build an engine over two in-memory stores sharing one clock.
    """
    clock = LogicalClock()
    source = InMemoryRecordStore("source", clock=clock)
    target = InMemoryRecordStore("target", clock=clock)
    return SyncEngine(source, target, config or SyncConfig.from_env())


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """
    Middleware to log all HTTP requests and responses.
    """
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id

    start_time = time.time()

    logger.info(
        f"Request started: {request.method} {request.url.path} [request_id={request_id}]"
    )

    response = await call_next(request)

    duration = time.time() - start_time

    logger.info(
        f"Request completed: {request.method} {request.url.path} "
        f"status={response.status_code} duration={duration:.3f}s [request_id={request_id}]"
    )

    response.headers["X-Request-ID"] = request_id

    return response


@app.on_event("startup")
async def startup_event():
    """
    Create the sync engine and, unless disabled, seed the target and start polling.
    """
    logger.info("Sync service starting up...")

    if get_engine() is None:
        set_engine(build_engine())

    if service_config.SERVICE_AUTOSTART:
        await get_engine().start()
        logger.info("Sync engine started")


@app.on_event("shutdown")
async def shutdown_event():
    """
    Stop the reconciliation loop on application shutdown.
    """
    logger.info("Sync service shutting down...")

    engine = get_engine()
    if engine:
        await engine.stop()
        logger.info("Reconciliation loop stopped")


def _error_response(request: Request, exc: Exception, status_code: int, code: str, **extra):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.warning(
        f"{type(exc).__name__}: {exc} [request_id={request_id}] path={request.url.path}"
    )
    content = {"detail": str(exc), "code": code}
    content.update(extra)
    return JSONResponse(status_code=status_code, content=content)


@app.exception_handler(RecordNotFoundError)
async def record_not_found_handler(request: Request, exc: RecordNotFoundError):
    return _error_response(request, exc, status.HTTP_404_NOT_FOUND, "RECORD_NOT_FOUND")


@app.exception_handler(DuplicateKeyError)
async def duplicate_key_handler(request: Request, exc: DuplicateKeyError):
    return _error_response(request, exc, status.HTTP_409_CONFLICT, "DUPLICATE_KEY")


@app.exception_handler(StoreUnavailableError)
async def store_unavailable_handler(request: Request, exc: StoreUnavailableError):
    return _error_response(request, exc, status.HTTP_503_SERVICE_UNAVAILABLE, "STORE_UNAVAILABLE")


@app.exception_handler(SyncAbortedError)
async def sync_aborted_handler(request: Request, exc: SyncAbortedError):
    return _error_response(
        request, exc, status.HTTP_503_SERVICE_UNAVAILABLE, "SYNC_ABORTED",
        applied=exc.applied
    )


@app.exception_handler(SyncError)
async def sync_error_handler(request: Request, exc: SyncError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.error(
        f"Sync error: {exc} [request_id={request_id}] path={request.url.path}",
        exc_info=True
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": str(exc), "code": "INTERNAL_ERROR"}
    )


app.include_router(sync_router)
app.include_router(record_router)


@app.get("/health")
async def health_check():
    """
    Health check endpoint.
    Returns 200 if service is alive.
    """
    return {"status": "healthy", "service": SERVICE_NAME}


def main() -> None:
    """
    Start the FastAPI server with uvicorn.
    """
    uvicorn.run(
        "service.main:app",
        host=SERVICE_HOST,
        port=SERVICE_PORT
    )


if __name__ == "__main__":
    main()
