"""
Persistence coordinator

Decides per operation whether saved requests go to the database or to the
local fallback slot, falls back to local storage when the database fails,
and drives the one-way sync from local storage to the database.

None of the public operations raise: store failures are logged and turned
into a (possibly degraded) Outcome.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional
import logging

from apitester.errors import StoreUnavailable, StoreError
from apitester.models import (
    SavedRequest, HTTP_METHODS, MAX_SAVED_REQUESTS, derive_request_name
)
from apitester.storage.database import Storage
from apitester.storage.local_store import LocalStore
from apitester.utils import timestamp_id

logger = logging.getLogger(__name__)

# Failures the remote store reports on its own (as opposed to unexpected crashes)
STORE_FAILURES = (StoreUnavailable, StoreError)


class OutcomeStatus(Enum):
    """Where an operation ended up"""
    SUCCEEDED_REMOTE = "succeeded-remote"
    SUCCEEDED_LOCAL_FALLBACK = "succeeded-local-fallback"
    FAILED = "failed"


@dataclass
class Outcome:
    """Result of a coordinator operation"""
    status: OutcomeStatus
    message: str
    data: Any = None
    degraded: bool = False  # database was preferred but local storage was used

    @property
    def succeeded(self) -> bool:
        return self.status != OutcomeStatus.FAILED


@dataclass
class SyncReport:
    """Counts reported by a local -> database sync"""
    synced_count: int = 0
    failed_count: int = 0
    error: Optional[str] = None

    @property
    def status(self) -> OutcomeStatus:
        if self.error or self.synced_count == 0:
            return OutcomeStatus.FAILED
        return OutcomeStatus.SUCCEEDED_REMOTE


class PersistenceCoordinator:
    """Mediates every read/write of saved requests and settings"""

    def __init__(self, remote: Storage, local: LocalStore,
                 max_requests: int = MAX_SAVED_REQUESTS):
        """
        Initialize coordinator

        Args:
            remote: Remote store (database)
            local: Local fallback store
            max_requests: Cap applied when prepending to the working set
        """
        self.remote = remote
        self.local = local
        self.max_requests = max_requests
        # Optimistic until the settings record has been read
        self.use_database = True
        self.saved_requests: List[SavedRequest] = []
        self.loading = False

    @property
    def storage_label(self) -> str:
        return "database" if self.use_database else "local"

    def find(self, request_id: str) -> Optional[SavedRequest]:
        """Get a saved request from the working set by id"""
        for request in self.saved_requests:
            if request.id == request_id:
                return request
        return None

    def load(self) -> Outcome:
        """
        Initial load of settings and saved requests

        The database list is adopted when it is non-empty. An empty list or a
        reported store failure falls back to the local slot. An unexpected
        exception additionally switches to local mode.

        Returns:
            Outcome describing where the working set came from
        """
        self.loading = True
        try:
            try:
                settings_loaded = self._load_settings()
                remote_requests = self._list_remote() if settings_loaded else None
            except Exception as e:
                logger.warning(f"Database unreachable, switching to local storage: {e}")
                self.saved_requests = self.local.load()
                self.use_database = False
                return Outcome(
                    OutcomeStatus.SUCCEEDED_LOCAL_FALLBACK,
                    f"Loaded {len(self.saved_requests)} requests from local storage",
                    data=self.saved_requests,
                    degraded=True
                )

            if remote_requests:
                self.saved_requests = remote_requests
                return Outcome(
                    OutcomeStatus.SUCCEEDED_REMOTE,
                    f"Loaded {len(remote_requests)} requests from database",
                    data=self.saved_requests
                )

            self.saved_requests = self.local.load()
            return Outcome(
                OutcomeStatus.SUCCEEDED_LOCAL_FALLBACK,
                f"Loaded {len(self.saved_requests)} requests from local storage",
                data=self.saved_requests,
                degraded=remote_requests is None
            )
        finally:
            self.loading = False

    def _load_settings(self) -> bool:
        try:
            settings = self.remote.settings.get()
        except STORE_FAILURES as e:
            logger.warning(f"Could not load settings: {e}")
            return False
        self.use_database = settings.use_database
        return True

    def _list_remote(self) -> Optional[List[SavedRequest]]:
        """Remote list, or None when the store reported a failure"""
        try:
            return self.remote.requests.list()
        except STORE_FAILURES as e:
            logger.warning(f"Could not load saved requests from database: {e}")
            return None

    def toggle_storage(self) -> bool:
        """
        Flip between database and local storage

        The new mode applies immediately; persisting it is best effort.

        Returns:
            New value of use_database
        """
        self.use_database = not self.use_database
        try:
            self.remote.settings.update(self.use_database)
        except Exception as e:
            logger.debug(f"Could not persist storage mode: {e}")
        logger.info(f"Storage mode set to {self.storage_label}")
        return self.use_database

    def save_request(self, url: str, method: str, headers: str = "", body: str = "",
                     name: Optional[str] = None) -> Outcome:
        """
        Save the request as a preset

        Args:
            url: Request URL
            method: HTTP method
            headers: Newline-delimited "Key: Value" headers
            body: Raw request payload
            name: Preset name; derived from method and URL path when empty

        Returns:
            Outcome with the stored SavedRequest as data
        """
        method = (method or '').upper()
        if not url:
            return Outcome(OutcomeStatus.FAILED, "URL required")
        if method not in HTTP_METHODS:
            return Outcome(OutcomeStatus.FAILED, f"Unsupported method: {method or '(empty)'}")

        name = (name or '').strip() or derive_request_name(method, url)
        headers = headers or ""
        body = body or ""

        if not self.use_database:
            return self._save_local(name, url, method, headers, body, degraded=False)

        try:
            saved = self.remote.requests.create(name, url, method, headers, body)
        except Exception as e:
            logger.warning(f"Could not save to database, falling back to local storage: {e}")
            return self._save_local(name, url, method, headers, body, degraded=True)

        self.saved_requests = ([saved] + self.saved_requests)[:self.max_requests]
        return Outcome(OutcomeStatus.SUCCEEDED_REMOTE, "Saved to database", data=saved)

    def _save_local(self, name: str, url: str, method: str, headers: str, body: str,
                    degraded: bool) -> Outcome:
        saved = SavedRequest(
            id=timestamp_id(r.id for r in self.saved_requests),
            name=name,
            url=url,
            method=method,
            headers=headers,
            body=body
        )
        self.saved_requests = ([saved] + self.saved_requests)[:self.max_requests]

        try:
            self.local.save(self.saved_requests)
        except OSError as e:
            logger.error(f"Could not write local storage: {e}")
            return Outcome(OutcomeStatus.FAILED, f"Could not write local storage: {e}", data=saved)

        message = "Database unavailable, saved locally" if degraded else "Saved locally"
        return Outcome(OutcomeStatus.SUCCEEDED_LOCAL_FALLBACK, message, data=saved, degraded=degraded)

    def delete_request(self, request_id: str) -> Outcome:
        """
        Delete a preset

        The entry leaves the working set first. In database mode the remote
        delete is best effort and its failure is not reported. The local slot
        is rewritten to mirror the working set in both modes.

        Args:
            request_id: Id of the saved request

        Returns:
            Outcome of the deletion
        """
        if not request_id:
            return Outcome(OutcomeStatus.FAILED, "ID required")

        existed = self.find(request_id) is not None
        self.saved_requests = [r for r in self.saved_requests if r.id != request_id]

        if self.use_database:
            try:
                self.remote.requests.delete(request_id)
            except Exception as e:
                logger.warning(f"Could not delete request {request_id} from database: {e}")

        try:
            self.local.save(self.saved_requests)
        except OSError as e:
            logger.error(f"Could not write local storage: {e}")

        if not existed and not self.use_database:
            return Outcome(OutcomeStatus.FAILED, f"No saved request with id '{request_id}'")

        status = OutcomeStatus.SUCCEEDED_REMOTE if self.use_database else OutcomeStatus.SUCCEEDED_LOCAL_FALLBACK
        return Outcome(status, "Request deleted")

    def sync_to_database(self) -> SyncReport:
        """
        Copy every local preset into the database, one at a time, in order

        On at least one success the mode switches to database and the working
        set is replaced by the database contents. The local slot is kept.

        Returns:
            SyncReport with synced and failed counts
        """
        if self.use_database:
            return SyncReport(error="Already using the database; switch to local storage to sync")
        if not self.saved_requests:
            return SyncReport(error="No local requests to sync")

        report = SyncReport()
        # Newest entry is created first, so after the reload the synced
        # entries appear in reverse of their local order.
        for request in list(self.saved_requests):
            try:
                self.remote.requests.create(
                    request.name, request.url, request.method, request.headers, request.body
                )
                report.synced_count += 1
            except Exception as e:
                logger.warning(f"Failed to sync '{request.name}': {e}")
                report.failed_count += 1

        logger.info(f"Sync finished: {report.synced_count} synced, {report.failed_count} failed")
        if report.synced_count == 0:
            return report

        self.use_database = True
        try:
            self.remote.settings.update(True)
        except Exception as e:
            logger.warning(f"Could not persist storage mode after sync: {e}")

        try:
            self.saved_requests = self.remote.requests.list()
        except Exception as e:
            logger.warning(f"Could not reload saved requests after sync: {e}")

        return report

    def clear_all(self) -> Outcome:
        """Empty the working set and remove the local slot (database untouched)"""
        self.saved_requests = []
        try:
            self.local.clear()
        except OSError as e:
            logger.error(f"Could not clear local storage: {e}")
            return Outcome(OutcomeStatus.FAILED, f"Could not clear local storage: {e}")
        return Outcome(OutcomeStatus.SUCCEEDED_LOCAL_FALLBACK, "Cleared saved requests")
