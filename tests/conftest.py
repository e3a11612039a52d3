from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from adcraft.errors import PermissionDenied, RemoteStoreError
from adcraft.models import Artifact, GenerationConfig, GenerationSettings
from adcraft.storage import LocalCacheStore, MemoryKeyValueStorage

PNG_DATA_URI = (
    "data:image/png;base64,"
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNk+M9QDwADhgGAWjR9awAAAABJRU5ErkJggg=="
)


class FakeRemoteStore:
    """In-memory remote gallery that can be told to fail per operation."""

    def __init__(self) -> None:
        self.records: dict[str, tuple[str, Artifact]] = {}
        self.failures: dict[str, RemoteStoreError] = {}
        self.calls: list[tuple[str, str]] = []

    def _maybe_fail(self, operation: str) -> None:
        if operation in self.failures:
            raise self.failures[operation]

    def insert(self, user_id: str, artifact: Artifact) -> None:
        self.calls.append(("insert", artifact.id))
        self._maybe_fail("insert")
        self.records[artifact.id] = (user_id, artifact)

    def list_by_user(self, user_id: str, limit: int | None = None) -> list[Artifact]:
        self.calls.append(("list", user_id))
        self._maybe_fail("list")
        items = sorted(
            (artifact for owner, artifact in self.records.values() if owner == user_id),
            key=lambda artifact: artifact.timestamp,
            reverse=True,
        )
        return items[:limit] if limit is not None else items

    def update_caption(self, artifact_id: str, caption: str) -> None:
        self.calls.append(("update_caption", artifact_id))
        self._maybe_fail("update_caption")
        if artifact_id not in self.records:
            raise PermissionDenied(f"unknown id {artifact_id}")
        owner, artifact = self.records[artifact_id]
        self.records[artifact_id] = (owner, artifact.with_caption(caption))

    def delete(self, artifact_id: str) -> None:
        self.calls.append(("delete", artifact_id))
        self._maybe_fail("delete")
        self.records.pop(artifact_id, None)


@pytest.fixture
def sample_settings() -> GenerationSettings:
    return GenerationSettings(
        category="Ad Creative",
        description="Sneaker floating over a neon city",
        text_on_image="Passo a Passo",
        cta_text="Compre agora",
        style="Vibrant Neon",
        format="4:5",
        objective="Conversion",
        niche="E-commerce",
        color_palette="#FF00AA, #000000",
    )


@pytest.fixture
def make_artifact(sample_settings):
    def _make(index: int, **overrides) -> Artifact:
        values = {
            "id": f"art{index:03d}",
            "url": PNG_DATA_URI,
            "timestamp": 1_700_000_000_000 + index * 1000,
            "settings": sample_settings,
        }
        values.update(overrides)
        return Artifact(**values)

    return _make


@pytest.fixture
def local_store() -> LocalCacheStore:
    return LocalCacheStore(MemoryKeyValueStorage(), namespace="TEST")


@pytest.fixture
def fake_remote() -> FakeRemoteStore:
    return FakeRemoteStore()


@pytest.fixture
def sample_config() -> GenerationConfig:
    return GenerationConfig(
        category="Ad Creative",
        model_count=2,
        objective="Conversion",
        niche="E-commerce",
        text_on_image="Passo a Passo",
        text_position="Top Center (Headline Style)",
        cta_text="Compre agora",
        show_cta=True,
        color_palette="",
        description="Sneaker floating over a neon city at night",
        negative_prompt="",
        mood="Urgent and High Impact",
        style="Vibrant Neon",
        format="4:5",
    )


@pytest.fixture
def png_file(tmp_path) -> Path:
    from PIL import Image

    path = tmp_path / "logo.png"
    Image.new("RGBA", (2048, 1024), (255, 0, 0, 128)).save(path, format="PNG")
    return path


@pytest.fixture
def jpeg_file(tmp_path) -> Path:
    from PIL import Image

    path = tmp_path / "reference.jpg"
    Image.new("RGB", (600, 1800), (0, 128, 255)).save(path, format="JPEG")
    return path
