"""Reconciliation of the remote gallery with the local cache.

The remote store is authoritative whenever it is configured and answers; the
local cache keeps every user's history available when it does not.
"""

from __future__ import annotations

import logging

from adcraft.errors import PermissionDenied, RemoteStoreError
from adcraft.models import MAX_ITEMS, Artifact
from adcraft.remote import RemoteGalleryStore
from adcraft.storage import LocalCacheStore

logger = logging.getLogger(__name__)


class GalleryService:
    def __init__(self, local: LocalCacheStore, remote: RemoteGalleryStore | None = None, max_items: int = MAX_ITEMS):
        self.local = local
        self.remote = remote
        self.max_items = max_items

    def save(self, user_id: str, artifact: Artifact) -> list[Artifact]:
        """Persist ``artifact`` remotely when possible, locally otherwise.

        After a successful remote insert the remote gallery is trimmed to
        ``max_items`` by deleting the oldest records one at a time. Any remote
        failure along the way falls back to the local cache, so the artifact is
        always retrievable from at least one store.
        """
        remote = self.remote
        if remote is None:
            return self.local.put(user_id, artifact)

        try:
            remote.insert(user_id, artifact)
            entries = remote.list_by_user(user_id)
            for stale in entries[self.max_items :]:
                remote.delete(stale.id)
        except RemoteStoreError as exc:
            logger.warning("Remote save failed for %s, keeping %s locally: %s", user_id, artifact.id, exc)
            return self.local.put(user_id, artifact)

        return self.fetch(user_id)

    def fetch(self, user_id: str) -> list[Artifact]:
        """Return the newest ``max_items`` artifacts for ``user_id``.

        An empty remote answer is treated like an unreachable backend and the
        local cache is returned instead.
        """
        remote = self.remote
        if remote is None:
            return self.local.get(user_id)

        try:
            items = remote.list_by_user(user_id, limit=self.max_items)
        except PermissionDenied as exc:
            logger.info("Remote gallery denied for %s, using local cache: %s", user_id, exc)
            return self.local.get(user_id)
        except RemoteStoreError as exc:
            logger.warning("Remote gallery fetch failed for %s, using local cache: %s", user_id, exc)
            return self.local.get(user_id)

        if not items:
            return self.local.get(user_id)
        return items

    def update_caption(self, user_id: str, artifact_id: str, caption: str) -> None:
        self.local.update_caption(user_id, artifact_id, caption)

        remote = self.remote
        if remote is None:
            return
        try:
            remote.update_caption(artifact_id, caption)
        except RemoteStoreError as exc:
            # Local-only artifacts have no remote record.
            logger.debug("Remote caption update skipped for %s: %s", artifact_id, exc)

    def delete(self, user_id: str, artifact_id: str) -> list[Artifact]:
        remaining = self.local.remove(user_id, artifact_id)

        remote = self.remote
        if remote is None:
            return remaining
        try:
            remote.delete(artifact_id)
        except RemoteStoreError as exc:
            logger.info("Remote delete failed for %s, returning local gallery: %s", artifact_id, exc)
            return remaining
        return self.fetch(user_id)

    def clear(self, user_id: str) -> None:
        """Drop every artifact of ``user_id`` from both stores, remote best-effort."""
        self.local.clear(user_id)

        remote = self.remote
        if remote is None:
            return
        try:
            for entry in remote.list_by_user(user_id):
                remote.delete(entry.id)
        except RemoteStoreError as exc:
            logger.warning("Remote gallery clear incomplete for %s: %s", user_id, exc)
