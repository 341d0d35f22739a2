"""
Boundary operations exposed to the presentation layer

Library-facing entry points for code embedding apitester; the CLI goes
through PersistenceCoordinator instead. Each operation wraps a remote store
call and returns an ActionResult instead of raising, so callers only ever
branch on ``success``.
"""

from dataclasses import dataclass
from typing import Any, Generic, List, Optional, TypeVar
import logging

from apitester.coordinator import PersistenceCoordinator, SyncReport
from apitester.errors import StoreUnavailable, StoreError, ValidationError
from apitester.models import SavedRequest, Settings
from apitester.storage.database import Storage

logger = logging.getLogger(__name__)

T = TypeVar('T')


@dataclass
class ActionResult(Generic[T]):
    """Success flag plus either data or an error message"""
    success: bool
    data: Optional[T] = None
    error: Optional[str] = None


def _failure(error: Exception, fallback_message: str) -> ActionResult[Any]:
    if isinstance(error, StoreUnavailable):
        return ActionResult(success=False, error="Database not configured")
    if isinstance(error, ValidationError):
        return ActionResult(success=False, error=str(error))
    logger.error(f"{fallback_message}: {error}")
    return ActionResult(success=False, error=fallback_message)


def list_saved_requests(storage: Storage) -> ActionResult[List[SavedRequest]]:
    """Get all saved requests from the database, newest first"""
    try:
        return ActionResult(success=True, data=storage.requests.list())
    except (StoreUnavailable, StoreError) as e:
        return _failure(e, "Failed to fetch requests")


def create_saved_request(storage: Storage, name: str, url: str, method: str,
                         headers: str = "", body: str = "") -> ActionResult[SavedRequest]:
    """
    Save a request preset to the database

    Unlike the other operations, the underlying store message is passed
    through on failure.
    """
    try:
        saved = storage.requests.create(name, url, method, headers or "", body or "")
        return ActionResult(success=True, data=saved)
    except StoreUnavailable as e:
        return _failure(e, "Failed to create request")
    except StoreError as e:
        logger.error(f"Failed to create request: {e}")
        return ActionResult(success=False, error=str(e) or "Failed to create request")


def delete_saved_request(storage: Storage, request_id: str) -> ActionResult[None]:
    """Delete a saved request from the database"""
    try:
        storage.requests.delete(request_id)
        return ActionResult(success=True)
    except (StoreUnavailable, StoreError, ValidationError) as e:
        return _failure(e, "Failed to delete request")


def get_settings(storage: Storage) -> ActionResult[Settings]:
    """Get the settings record, creating it with defaults if absent"""
    try:
        return ActionResult(success=True, data=storage.settings.get())
    except (StoreUnavailable, StoreError) as e:
        return _failure(e, "Failed to fetch settings")


def update_settings(storage: Storage, use_database: bool) -> ActionResult[Settings]:
    """Create or overwrite the settings record"""
    try:
        return ActionResult(success=True, data=storage.settings.update(use_database))
    except (StoreUnavailable, StoreError) as e:
        return _failure(e, "Failed to update settings")


def sync_local_to_remote(coordinator: PersistenceCoordinator) -> SyncReport:
    """Push local presets into the database (see PersistenceCoordinator.sync_to_database)"""
    return coordinator.sync_to_database()
