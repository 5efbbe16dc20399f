"""Service locator for the sync engine shared by all routes."""

from typing import Optional

from replicator.engine import SyncEngine
from replicator.paginated_sync import SyncCursor

_engine: Optional[SyncEngine] = None
_last_cursor: Optional[SyncCursor] = None


def set_engine(engine: Optional[SyncEngine]):
    """Set global sync engine instance"""
    global _engine, _last_cursor
    _engine = engine
    _last_cursor = None


def get_engine() -> Optional[SyncEngine]:
    """Get global sync engine instance"""
    return _engine


def set_last_cursor(cursor: Optional[SyncCursor]):
    """Remember the cursor of the latest paginated sync"""
    global _last_cursor
    _last_cursor = cursor


def get_last_cursor() -> Optional[SyncCursor]:
    """Get the cursor of the latest paginated sync"""
    return _last_cursor
