"""
Blob Store

Key-value JSON persistence used as the backend database. Each named store
holds JSON blobs addressed by key:

    transactions_store/transactions_{user_id}  - List of transactions
    debts_store/debts_{user_id}                - List of debt records
    users_auth_store/users                     - List of users

Two backends are available:
    CloudBlobStore - Google Cloud Storage, blobs at {store_name}/{key}.json
    LocalBlobStore - One JSON file per key under {data_dir}/{store_name}/
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Optional, Protocol

from google.cloud import storage

from app.core.config import get_settings
from app.core.exceptions import StorageError
from app.core.logging import get_logger

logger = get_logger("pocketledger.storage")

TRANSACTIONS_STORE = "transactions_store"
DEBTS_STORE = "debts_store"
USERS_STORE = "users_auth_store"


class BlobStore(Protocol):
    """Interface shared by all blob store backends."""

    name: str

    def get_json(self, key: str) -> Any | None: ...

    def set_json(self, key: str, value: Any) -> None: ...

    def delete(self, key: str) -> bool: ...

    def list_keys(self, prefix: str = "") -> list[str]: ...


class LocalBlobStore:
    """Blob store backed by JSON files on the local filesystem."""

    def __init__(self, name: str, base_dir: Path | None = None) -> None:
        self.name = name
        root = base_dir or get_settings().data_dir
        self.store_dir = Path(root) / name
        self.store_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        if not key or "/" in key or "\\" in key or key.startswith("."):
            raise StorageError(f"Invalid blob key: {key!r}")
        return self.store_dir / f"{key}.json"

    def get_json(self, key: str) -> Any | None:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise StorageError(f"Blob '{self.name}/{key}' is not valid JSON", {"error": str(e)}) from e

    def set_json(self, key: str, value: Any) -> None:
        path = self._path(key)
        tmp_path = path.with_suffix(".json.tmp")
        tmp_path.write_text(json.dumps(value, ensure_ascii=False, indent=2), encoding="utf-8")
        os.replace(tmp_path, path)

    def delete(self, key: str) -> bool:
        path = self._path(key)
        if not path.exists():
            return False
        path.unlink()
        return True

    def list_keys(self, prefix: str = "") -> list[str]:
        return sorted(
            path.stem for path in self.store_dir.glob("*.json") if path.stem.startswith(prefix)
        )


class CloudBlobStore:
    """Blob store backed by a Google Cloud Storage bucket."""

    def __init__(
        self,
        name: str,
        bucket_name: Optional[str] = None,
        client: Optional[storage.Client] = None,
    ) -> None:
        """
        Initialize the Cloud Storage blob store.

        Args:
            name: Store name, used as the blob path prefix
            bucket_name: GCS bucket name. Defaults to STORAGE_BUCKET env var
                        or "{project_id}-ledger"
            client: Optional pre-built storage client
        """
        self.name = name
        self.client = client or storage.Client()

        if bucket_name:
            self.bucket_name = bucket_name
        else:
            self.bucket_name = os.environ.get(
                "STORAGE_BUCKET",
                f"{self.client.project}-ledger"
            )

        self._bucket: Optional[storage.Bucket] = None

    @property
    def bucket(self) -> storage.Bucket:
        """Get or create the storage bucket."""
        if self._bucket is None:
            try:
                self._bucket = self.client.get_bucket(self.bucket_name)
            except Exception:
                logger.info(f"Bucket '{self.bucket_name}' not found, creating it")
                self._bucket = self.client.create_bucket(
                    self.bucket_name,
                    location="us-central1"
                )
        return self._bucket

    def _get_blob_path(self, key: str) -> str:
        """Generate blob path for a key in this store."""
        return f"{self.name}/{key}.json"

    def get_json(self, key: str) -> Any | None:
        """
        Download and decode a JSON blob.

        Returns:
            Decoded value, or None if the blob does not exist
        """
        blob = self.bucket.blob(self._get_blob_path(key))

        if not blob.exists():
            return None

        raw = blob.download_as_bytes()
        try:
            return json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise StorageError(f"Blob '{self.name}/{key}' is not valid JSON", {"error": str(e)}) from e

    def set_json(self, key: str, value: Any) -> None:
        """Encode a value as JSON and upload it."""
        blob = self.bucket.blob(self._get_blob_path(key))
        blob.upload_from_string(
            json.dumps(value, ensure_ascii=False),
            content_type="application/json",
        )

    def delete(self, key: str) -> bool:
        """
        Delete a blob.

        Returns:
            True if deleted, False if not found
        """
        blob = self.bucket.blob(self._get_blob_path(key))

        if not blob.exists():
            return False

        blob.delete()
        return True

    def list_keys(self, prefix: str = "") -> list[str]:
        """List keys in this store, optionally filtered by key prefix."""
        path_prefix = f"{self.name}/"
        blobs = self.bucket.list_blobs(prefix=f"{path_prefix}{prefix}")

        keys = []
        for blob in blobs:
            key = blob.name[len(path_prefix):]
            if key.endswith(".json"):
                keys.append(key[: -len(".json")])

        return sorted(keys)


_stores: dict[str, BlobStore] = {}


def get_store(name: str) -> BlobStore:
    """Get the singleton blob store for a store name.

    The backend is selected by the BLOB_BACKEND env var ("local" or "gcs").
    """
    store = _stores.get(name)
    if store is None:
        settings = get_settings()
        if settings.blob_backend == "gcs":
            store = CloudBlobStore(name, bucket_name=settings.storage_bucket)
        else:
            store = LocalBlobStore(name, base_dir=settings.data_dir)
        logger.info(f"Opened {type(store).__name__} for '{name}'")
        _stores[name] = store
    return store

