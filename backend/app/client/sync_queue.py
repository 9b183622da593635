"""
Sync Queue

Ordered list of local mutations waiting to be replayed against the server.
The queue holds at most one operation per record id:

* An upsert drops earlier operations for the same id. A record whose ``add``
  never reached the server stays an ``add``.
* A delete drops earlier add/update operations for the id. If the dropped
  operation was an ``add``, the server never saw the record and nothing is
  queued.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from app.client.local_store import LocalStore


class OperationType(str, Enum):
    ADD = "add"
    UPDATE = "update"
    DELETE = "delete"


@dataclass
class SyncOperation:
    type: OperationType
    payload: dict[str, Any]

    @property
    def record_id(self) -> str | None:
        return self.payload.get("id")

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value, "payload": self.payload}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SyncOperation":
        return cls(type=OperationType(data["type"]), payload=dict(data.get("payload") or {}))


class SyncQueue:
    """Persistent operation queue stored under one LocalStore key."""

    def __init__(self, store: LocalStore, key: str) -> None:
        self.store = store
        self.key = key

    def operations(self) -> list[SyncOperation]:
        return [SyncOperation.from_dict(item) for item in self.store.get(self.key, [])]

    def _save(self, operations: list[SyncOperation]) -> None:
        self.store.set(self.key, [op.to_dict() for op in operations])

    def __len__(self) -> int:
        return len(self.store.get(self.key, []))

    def enqueue_upsert(self, record: dict[str, Any], is_new: bool) -> SyncOperation:
        """Queue an add (``is_new``) or update for a record."""
        record_id = record["id"]
        operations = self.operations()
        pending_add = any(
            op.type is OperationType.ADD and op.record_id == record_id for op in operations
        )
        kept = [op for op in operations if op.record_id != record_id]

        op_type = OperationType.ADD if is_new or pending_add else OperationType.UPDATE
        operation = SyncOperation(type=op_type, payload=dict(record))
        self._save([*kept, operation])
        return operation

    def enqueue_delete(self, record_id: str) -> SyncOperation | None:
        """Queue a delete. Returns None when no server call is needed."""
        operations = self.operations()
        pending_add = any(
            op.type is OperationType.ADD and op.record_id == record_id for op in operations
        )
        already_deleting = any(
            op.type is OperationType.DELETE and op.record_id == record_id for op in operations
        )
        kept = [op for op in operations if op.record_id != record_id or op.type is OperationType.DELETE]

        if pending_add or already_deleting:
            self._save(kept)
            return None

        operation = SyncOperation(type=OperationType.DELETE, payload={"id": record_id})
        self._save([*kept, operation])
        return operation

    def drop_first(self, count: int) -> list[SyncOperation]:
        """Remove the first ``count`` operations and return what remains."""
        remaining = self.operations()[count:]
        self._save(remaining)
        return remaining

    def clear(self) -> None:
        self._save([])
