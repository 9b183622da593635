"""
Local Store

Persistent key-value cache for the offline client. All keys live in one JSON
file, rewritten atomically on every change:

    transactions      - Cached transaction list
    debts             - Cached debt records
    accounts          - Accounts (never sent to the server)
    sync_queue        - Pending transaction operations
    debts_sync_queue  - Pending debt operations
"""

from __future__ import annotations

import copy
import json
import os
from pathlib import Path
from typing import Any

from app.core.exceptions import StorageError
from app.core.logging import get_logger

logger = get_logger("pocketledger.client.store")


class LocalStore:
    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._data: dict[str, Any] = self._read()

    def _read(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise StorageError(f"Local cache {self.path} is corrupt", {"error": str(e)}) from e
        if not isinstance(data, dict):
            logger.warning(f"Local cache {self.path} is not an object, starting empty")
            return {}
        return data

    def _write(self) -> None:
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(self._data, ensure_ascii=False, indent=2), encoding="utf-8")
        os.replace(tmp_path, self.path)

    def get(self, key: str, default: Any = None) -> Any:
        """Return a copy of the stored value, so callers cannot mutate the cache in place."""
        if key not in self._data:
            return copy.deepcopy(default)
        return copy.deepcopy(self._data[key])

    def set(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)
        self._write()

    def remove(self, key: str) -> None:
        if self._data.pop(key, None) is not None:
            self._write()

    def clear(self) -> None:
        self._data = {}
        self._write()
