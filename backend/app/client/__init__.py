"""Offline-first client: local cache, mutation queue and server sync."""

from app.client.ledger import OfflineLedger
from app.client.local_store import LocalStore
from app.client.sync import ResourceSync, SyncResult
from app.client.sync_queue import OperationType, SyncOperation, SyncQueue

__all__ = [
    "LocalStore",
    "OfflineLedger",
    "OperationType",
    "ResourceSync",
    "SyncOperation",
    "SyncQueue",
    "SyncResult",
]
