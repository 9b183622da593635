"""
Record Repository

Stores each user's records as a single JSON list in the blob store:

    transactions_store/transactions_{user_id}
    debts_store/debts_{user_id}

Every write is a read-modify-write of the whole list.
"""

from __future__ import annotations

from typing import Any, Optional

from app.core.exceptions import RecordNotFoundError, StorageError
from app.core.logging import get_logger
from app.core.utils import new_id
from app.storage.blob_store import DEBTS_STORE, TRANSACTIONS_STORE, BlobStore, get_store

logger = get_logger("pocketledger.repositories.record")


class RecordRepository:
    """Repository for a list of id-keyed records per user."""

    def __init__(self, store: BlobStore, key_prefix: str) -> None:
        self.store = store
        self.key_prefix = key_prefix

    def _blob_key(self, user_id: str) -> str:
        return f"{self.key_prefix}_{user_id}"

    def _load(self, user_id: str) -> list[dict[str, Any]] | None:
        data = self.store.get_json(self._blob_key(user_id))
        if data is None:
            return None
        if not isinstance(data, list):
            logger.warning(f"Blob {self._blob_key(user_id)} is not a list, treating as empty")
            return []
        return data

    def _save(self, user_id: str, records: list[dict[str, Any]]) -> None:
        self.store.set_json(self._blob_key(user_id), records)

    def list_records(self, user_id: str) -> list[dict[str, Any]]:
        """
        List all records for a user.

        A missing blob is initialised to an empty list.
        """
        records = self._load(user_id)
        if records is None:
            logger.debug(f"Initialising empty blob {self._blob_key(user_id)}")
            self._save(user_id, [])
            return []
        return records

    def get_record(self, user_id: str, record_id: str) -> Optional[dict[str, Any]]:
        for record in self._load(user_id) or []:
            if record.get("id") == record_id:
                return record
        return None

    def create_record(
        self,
        user_id: str,
        record: dict[str, Any],
    ) -> tuple[dict[str, Any], bool]:
        """
        Append a record, generating an id when absent.

        Creating a record whose id already exists is a no-op, so replaying
        the same add twice leaves a single copy.

        Returns:
            Tuple of (record, created)
        """
        if not record.get("id"):
            record["id"] = new_id()

        records = self._load(user_id) or []
        if any(r.get("id") == record["id"] for r in records):
            logger.debug(f"Record {record['id']} already exists in {self._blob_key(user_id)}")
            return record, False

        records.append(record)
        self._save(user_id, records)
        return record, True

    def update_record(
        self,
        user_id: str,
        record_id: str,
        changes: dict[str, Any],
    ) -> dict[str, Any]:
        """
        Shallow-merge changes into a stored record.

        Raises:
            RecordNotFoundError: If the record does not exist
        """
        records = self._load(user_id)
        if records is None:
            raise RecordNotFoundError(f"No records stored for user {user_id}")

        for index, record in enumerate(records):
            if record.get("id") == record_id:
                merged = {**record, **changes, "id": record_id}
                records[index] = merged
                self._save(user_id, records)
                return merged

        raise RecordNotFoundError(f"Record {record_id} not found", {"id": record_id})

    def replace_record(self, user_id: str, record: dict[str, Any]) -> dict[str, Any]:
        """Overwrite a stored record with the same id."""
        record_id = record.get("id")
        if not record_id:
            raise StorageError("Record requires an id.")

        records = self._load(user_id) or []
        for index, existing in enumerate(records):
            if existing.get("id") == record_id:
                records[index] = record
                self._save(user_id, records)
                return record

        raise RecordNotFoundError(f"Record {record_id} not found", {"id": record_id})

    def delete_record(self, user_id: str, record_id: str) -> bool:
        """
        Remove a record.

        Returns:
            True if deleted, False if not found
        """
        records = self._load(user_id)
        if not records:
            return False

        remaining = [r for r in records if r.get("id") != record_id]
        if len(remaining) == len(records):
            return False

        self._save(user_id, remaining)
        return True


_transaction_repo: RecordRepository | None = None
_debt_repo: RecordRepository | None = None


def get_transaction_repo() -> RecordRepository:
    global _transaction_repo
    if _transaction_repo is None:
        _transaction_repo = RecordRepository(get_store(TRANSACTIONS_STORE), "transactions")
    return _transaction_repo


def get_debt_repo() -> RecordRepository:
    global _debt_repo
    if _debt_repo is None:
        _debt_repo = RecordRepository(get_store(DEBTS_STORE), "debts")
    return _debt_repo
