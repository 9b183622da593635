"""
Resource Sync

Replays a resource's queued operations against the REST API, then overwrites
the local cache with the server's list. The server is the source of truth:
whatever it returns after the replay wins over local state.

Processing stops at the first failed operation. That operation and all later
ones stay queued, in order, for the next attempt.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional

import httpx

from app.client.local_store import LocalStore
from app.client.sync_queue import OperationType, SyncOperation, SyncQueue
from app.core.exceptions import SyncError
from app.core.logging import LogContext, get_logger

logger = get_logger("pocketledger.client.sync")


@dataclass
class SyncResult:
    """Outcome of one sync attempt."""

    attempted: bool = False
    synced: int = 0
    remaining: int = 0
    refreshed: bool = False
    error: Optional[str] = None

    @property
    def title(self) -> Optional[str]:
        if not self.attempted:
            return None
        if not self.refreshed:
            return "Sync Error"
        if self.synced == 0:
            return None
        if self.remaining:
            return "Sync Partially Complete"
        return "Sync Complete"

    @property
    def description(self) -> Optional[str]:
        title = self.title
        if title == "Sync Error":
            return "Could not verify data with the server. Please try again later."
        if title == "Sync Partially Complete":
            return f"{self.synced} changes synced. {self.remaining} remaining."
        if title == "Sync Complete":
            return "All changes have been saved to the cloud."
        return None


class ResourceSync:
    """Offline cache and sync queue for one REST resource."""

    def __init__(
        self,
        http: httpx.Client,
        store: LocalStore,
        resource: str,
        cache_key: str,
        queue_key: str,
        is_online: Optional[Callable[[], bool]] = None,
    ) -> None:
        self.http = http
        self.store = store
        self.resource = resource
        self.cache_key = cache_key
        self.queue = SyncQueue(store, queue_key)
        self._is_online = is_online
        self.online = True
        self.is_syncing = False

    @property
    def collection_url(self) -> str:
        return f"/api/{self.resource}"

    def record_url(self, record_id: str) -> str:
        return f"{self.collection_url}/{record_id}"

    def is_online(self) -> bool:
        if self._is_online is not None:
            return self._is_online()
        return self.online

    # =========================================================================
    # Local cache
    # =========================================================================

    def records(self) -> list[dict[str, Any]]:
        return self.store.get(self.cache_key, [])

    def save_records(self, records: list[dict[str, Any]]) -> None:
        self.store.set(self.cache_key, records)

    def upsert_local(self, record: dict[str, Any], is_new: bool) -> None:
        """Write a record to the cache and queue it for the server."""
        records = self.records()
        if is_new:
            records = [record, *[r for r in records if r.get("id") != record["id"]]]
        else:
            records = [record if r.get("id") == record["id"] else r for r in records]
        self.save_records(records)
        self.queue.enqueue_upsert(record, is_new=is_new)

    def delete_local(self, record_id: str) -> None:
        self.save_records([r for r in self.records() if r.get("id") != record_id])
        self.queue.enqueue_delete(record_id)

    # =========================================================================
    # Server sync
    # =========================================================================

    def _replay(self, operation: SyncOperation) -> None:
        """Send one operation to the server.

        Raises:
            SyncError: If the server rejects the operation
            httpx.HTTPError: On transport failures
        """
        if operation.type is OperationType.ADD:
            response = self.http.post(self.collection_url, json=operation.payload)
        elif operation.type is OperationType.UPDATE:
            response = self.http.put(self.record_url(operation.record_id), json=operation.payload)
        else:
            response = self.http.delete(self.record_url(operation.record_id))
            if response.status_code == 404:
                # Already gone on the server
                return

        if not response.is_success:
            raise SyncError(
                f"Failed to sync {operation.type.value} operation for ID {operation.record_id or 'N/A'}",
                status_code=response.status_code,
            )

    def refresh(self) -> bool:
        """Overwrite the local cache with the server's list.

        Returns:
            True on success. On failure the local cache is left untouched.
        """
        try:
            response = self.http.get(self.collection_url)
            response.raise_for_status()
            records = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Could not fetch {self.resource} from server: {e}")
            return False

        if not isinstance(records, list):
            logger.warning(f"Unexpected {self.resource} payload from server, keeping local data")
            return False

        self.save_records(records)
        logger.debug(f"Refreshed {len(records)} {self.resource} from server")
        return True

    def process(self) -> SyncResult:
        """Replay queued operations, then refetch authoritative state.

        Nothing is attempted while offline, while another sync is running, or
        when the queue is empty.
        """
        operations = self.queue.operations()
        if not self.is_online() or self.is_syncing or not operations:
            return SyncResult(remaining=len(operations))

        self.is_syncing = True
        try:
            with LogContext(logger, f"{self.resource} sync", pending=len(operations)):
                synced = 0
                error: Optional[str] = None
                for operation in operations:
                    try:
                        self._replay(operation)
                    except (SyncError, httpx.HTTPError) as e:
                        logger.error(f"Sync error: {e}")
                        error = str(e)
                        break
                    synced += 1

                remaining = self.queue.drop_first(synced)
                refreshed = self.refresh()
                result = SyncResult(
                    attempted=True,
                    synced=synced,
                    remaining=len(remaining),
                    refreshed=refreshed,
                    error=error,
                )
                if result.title:
                    logger.info(f"{result.title}: {result.description}")
                return result
        finally:
            self.is_syncing = False

    def initial_load(self) -> SyncResult:
        """Flush pending changes and load the server's list.

        When offline, or when the server cannot be reached, local data is kept.
        """
        if not self.is_online():
            return SyncResult(remaining=len(self.queue))

        result = self.process()
        if not result.attempted:
            result.refreshed = self.refresh()
        return result

    def on_connectivity_change(self, online: bool) -> SyncResult:
        """Record the connectivity state and sync when coming back online."""
        was_online = self.online
        self.online = online
        if online and not was_online:
            logger.info(f"Back online, processing {len(self.queue)} pending {self.resource} changes")
        if online:
            return self.process()
        return SyncResult(remaining=len(self.queue))

    def probe(self) -> bool:
        """Check whether the API is reachable and update the online flag."""
        try:
            self.online = self.http.get("/health").is_success
        except httpx.HTTPError:
            self.online = False
        return self.online
