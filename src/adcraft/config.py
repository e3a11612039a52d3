"""Runtime settings and the explicitly constructed backend clients."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from adcraft.remote import RemoteGalleryStore, SupabaseGalleryStore
from adcraft.storage import LocalCacheStore, SqliteKeyValueStorage

logger = logging.getLogger(__name__)

DEFAULT_GEMINI_KEY_FILE = Path(".api_keys/Gemini.md")


class Settings(BaseSettings):
    """Settings loaded from ``ADCRAFT_*`` environment variables or ``.env``."""

    model_config = SettingsConfigDict(env_prefix="ADCRAFT_", extra="ignore", env_file=".env", env_file_encoding="utf-8")

    data_dir: Path = Path(".adcraft")
    local_namespace: str = "ADCRAFT"
    # Matches the ~5 MiB budget browsers give local storage.
    local_quota_bytes: int | None = 5 * 1024 * 1024

    image_model: str = "gemini-2.5-flash-image"
    text_model: str = "gemini-3-flash-preview"

    supabase_url: str | None = None
    supabase_key: str | None = None
    supabase_table: str = "creatives"
    remote_timeout: float = 10.0

    generation_max_retries: int = 2
    generation_retry_delay_ms: int = 2000
    caption_max_retries: int = 3
    caption_retry_delay_ms: int = 3000

    @property
    def local_db_path(self) -> Path:
        return self.data_dir / "gallery.db"

    @property
    def remote_configured(self) -> bool:
        return bool(
            self.supabase_url
            and self.supabase_url.startswith("http")
            and self.supabase_key
            and len(self.supabase_key) > 20
        )


def resolve_gemini_api_key(key_file: Path = DEFAULT_GEMINI_KEY_FILE) -> str | None:
    """Resolve the Gemini API key from environment or fallback file.

    Resolution order:
    1. ``GEMINI_API_KEY`` environment variable, then ``API_KEY``.
    2. ``key_file`` plaintext contents.

    Returns:
        The non-empty API key when found, otherwise ``None``.
    """
    for name in ("GEMINI_API_KEY", "API_KEY"):
        api_key = (os.getenv(name) or "").strip()
        if api_key:
            return api_key

    if key_file.exists():
        fallback_key = key_file.read_text(encoding="utf-8").strip()
        if fallback_key:
            return fallback_key

    return None


@dataclass
class BackendClients:
    settings: Settings
    local: LocalCacheStore
    remote: RemoteGalleryStore | None
    api_key: str | None


def init_clients(settings: Settings | None = None, api_key: str | None = None) -> BackendClients:
    """Build the storage backends and resolve the API key once at startup."""
    settings = settings or Settings()

    storage = SqliteKeyValueStorage(settings.local_db_path, quota_bytes=settings.local_quota_bytes)
    storage.init_db()
    local = LocalCacheStore(storage, namespace=settings.local_namespace)

    remote: RemoteGalleryStore | None = None
    if settings.remote_configured:
        remote = SupabaseGalleryStore(
            settings.supabase_url,
            settings.supabase_key,
            table=settings.supabase_table,
            timeout=settings.remote_timeout,
        )
    else:
        logger.info("Remote gallery not configured; running in local mode")

    return BackendClients(
        settings=settings,
        local=local,
        remote=remote,
        api_key=api_key or resolve_gemini_api_key(),
    )


def is_available(clients: BackendClients) -> bool:
    """Return ``True`` when a remote gallery backend is configured."""
    return clients.remote is not None
