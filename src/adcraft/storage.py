"""Local gallery cache backed by a quota-limited key-value store."""

from __future__ import annotations

import json
import logging
import sqlite3
import threading
from collections import defaultdict
from pathlib import Path
from typing import Protocol

from pydantic import TypeAdapter, ValidationError

from adcraft.errors import QuotaExceeded, StorageFailure
from adcraft.models import MAX_ITEMS, Artifact

logger = logging.getLogger(__name__)

_GALLERY = TypeAdapter(list[Artifact])

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS kv_items (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);
"""


class KeyValueStorage(Protocol):
    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


def _check_quota(used_elsewhere: int, key: str, value: str, quota_bytes: int | None) -> None:
    if quota_bytes is None:
        return
    size = len(key.encode("utf-8")) + len(value.encode("utf-8"))
    if used_elsewhere + size > quota_bytes:
        raise QuotaExceeded(f"Storage quota of {quota_bytes} bytes exceeded")


class MemoryKeyValueStorage:
    """In-process storage with the same quota semantics as the sqlite backend."""

    def __init__(self, quota_bytes: int | None = None):
        self.quota_bytes = quota_bytes
        self._items: dict[str, str] = {}

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        used = sum(
            len(k.encode("utf-8")) + len(v.encode("utf-8")) for k, v in self._items.items() if k != key
        )
        _check_quota(used, key, value, self.quota_bytes)
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


class SqliteKeyValueStorage:
    """Durable key-value storage in a single sqlite table."""

    def __init__(self, db_path: Path, quota_bytes: int | None = None):
        self.db_path = Path(db_path)
        self.quota_bytes = quota_bytes

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def init_db(self) -> None:
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            with self._connect() as conn:
                conn.executescript(SCHEMA_SQL)
        except (OSError, sqlite3.Error) as exc:
            raise StorageFailure(f"Could not initialize local storage: {exc}") from exc

    def get_item(self, key: str) -> str | None:
        try:
            with self._connect() as conn:
                row = conn.execute("SELECT value FROM kv_items WHERE key = ?", (key,)).fetchone()
        except sqlite3.Error as exc:
            raise StorageFailure(f"Could not read local storage: {exc}") from exc
        return row["value"] if row else None

    def set_item(self, key: str, value: str) -> None:
        try:
            with self._connect() as conn:
                row = conn.execute(
                    "SELECT COALESCE(SUM(LENGTH(CAST(key AS BLOB)) + LENGTH(CAST(value AS BLOB))), 0) AS used "
                    "FROM kv_items WHERE key != ?",
                    (key,),
                ).fetchone()
                _check_quota(int(row["used"]), key, value, self.quota_bytes)
                conn.execute(
                    "INSERT INTO kv_items(key, value) VALUES (?, ?) "
                    "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                    (key, value),
                )
        except sqlite3.Error as exc:
            raise StorageFailure(f"Could not write local storage: {exc}") from exc

    def remove_item(self, key: str) -> None:
        try:
            with self._connect() as conn:
                conn.execute("DELETE FROM kv_items WHERE key = ?", (key,))
        except sqlite3.Error as exc:
            raise StorageFailure(f"Could not delete from local storage: {exc}") from exc


class LocalCacheStore:
    """Per-user gallery list capped at ``max_items`` and resilient to quota errors.

    Each user's gallery is stored under ``<namespace>_GALLERY_<user_id>`` as a
    JSON array, newest first. Read-modify-write cycles are serialized per user.
    """

    def __init__(self, storage: KeyValueStorage, namespace: str = "ADCRAFT", max_items: int = MAX_ITEMS):
        self.storage = storage
        self.namespace = namespace
        self.max_items = max_items
        self._locks: defaultdict[str, threading.Lock] = defaultdict(threading.Lock)
        self._locks_guard = threading.Lock()

    def key_for(self, user_id: str) -> str:
        return f"{self.namespace}_GALLERY_{user_id}"

    def _lock(self, user_id: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks[user_id]

    def _load(self, user_id: str) -> list[Artifact]:
        try:
            raw = self.storage.get_item(self.key_for(user_id))
        except StorageFailure as exc:
            logger.warning("Local gallery unreadable for %s: %s", user_id, exc)
            return []
        if not raw:
            return []
        try:
            return _GALLERY.validate_json(raw)
        except ValidationError:
            logger.warning("Discarding corrupt local gallery for %s", user_id)
            return []

    def _write(self, user_id: str, items: list[Artifact]) -> None:
        payload = json.dumps(_GALLERY.dump_python(items, mode="json"), ensure_ascii=False)
        self.storage.set_item(self.key_for(user_id), payload)

    def _write_best_effort(self, user_id: str, items: list[Artifact]) -> None:
        try:
            self._write(user_id, items)
        except StorageFailure as exc:
            logger.warning("Local gallery write failed for %s: %s", user_id, exc)

    def get(self, user_id: str) -> list[Artifact]:
        return self._load(user_id)

    def put(self, user_id: str, artifact: Artifact) -> list[Artifact]:
        """Upsert ``artifact`` as the newest entry and persist the capped list.

        On quota errors the oldest entry is evicted and the write retried until
        it succeeds or only one entry is left, in which case the in-memory list
        is returned without being persisted.

        Raises:
            StorageFailure: If the write fails for a reason other than quota.
        """
        with self._lock(user_id):
            items = [item for item in self._load(user_id) if item.id != artifact.id]
            items.insert(0, artifact)
            items.sort(key=lambda item: item.timestamp, reverse=True)
            items = items[: self.max_items]

            while True:
                try:
                    self._write(user_id, items)
                    return items
                except QuotaExceeded:
                    if len(items) <= 1:
                        logger.warning(
                            "Local storage quota too small for a single artifact; %s not persisted",
                            artifact.id,
                        )
                        return items
                    evicted = items.pop()
                    logger.info("Local storage quota exceeded; evicted %s", evicted.id)

    def update_caption(self, user_id: str, artifact_id: str, caption: str) -> None:
        with self._lock(user_id):
            items = self._load(user_id)
            if not any(item.id == artifact_id for item in items):
                return
            items = [item.with_caption(caption) if item.id == artifact_id else item for item in items]
            self._write_best_effort(user_id, items)

    def remove(self, user_id: str, artifact_id: str) -> list[Artifact]:
        with self._lock(user_id):
            items = [item for item in self._load(user_id) if item.id != artifact_id]
            self._write_best_effort(user_id, items)
            return items

    def clear(self, user_id: str) -> None:
        with self._lock(user_id):
            try:
                self.storage.remove_item(self.key_for(user_id))
            except StorageFailure as exc:
                logger.warning("Local gallery clear failed for %s: %s", user_id, exc)
