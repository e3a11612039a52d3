from __future__ import annotations

from adcraft.errors import PermissionDenied, RemoteQuotaExceeded, TransportError
from adcraft.gallery import GalleryService
from adcraft.models import MAX_ITEMS


def test_save_given_no_remote_when_saved_then_local_cache_holds_artifact(local_store, make_artifact) -> None:
    # Given
    service = GalleryService(local_store)
    artifact = make_artifact(1)

    # When
    gallery = service.save("alice", artifact)

    # Then
    assert gallery == [artifact]
    assert service.fetch("alice") == [artifact]


def test_save_given_remote_when_saved_then_remote_is_trimmed_sequentially_to_cap(
    local_store,
    fake_remote,
    make_artifact,
) -> None:
    # Given
    service = GalleryService(local_store, fake_remote)

    # When
    for index in range(1, 15):
        gallery = service.save("alice", make_artifact(index))

    # Then
    assert len(gallery) == MAX_ITEMS
    assert gallery[0].id == "art014"
    assert gallery[-1].id == "art003"
    assert len(fake_remote.records) == MAX_ITEMS
    assert local_store.get("alice") == []
    deletes = [target for operation, target in fake_remote.calls if operation == "delete"]
    assert deletes == ["art001", "art002"]


def test_save_given_remote_insert_failure_when_saved_then_falls_back_to_local(
    local_store,
    fake_remote,
    make_artifact,
) -> None:
    # Given
    fake_remote.failures["insert"] = RemoteQuotaExceeded("document too large")
    service = GalleryService(local_store, fake_remote)
    artifact = make_artifact(1)

    # When
    gallery = service.save("alice", artifact)

    # Then
    assert gallery == [artifact]
    assert local_store.get("alice") == [artifact]


def test_save_given_unreachable_remote_when_thirteen_saves_then_local_gallery_is_capped(
    local_store,
    fake_remote,
    make_artifact,
) -> None:
    # Given
    fake_remote.failures["insert"] = TransportError("offline")
    fake_remote.failures["list"] = TransportError("offline")
    service = GalleryService(local_store, fake_remote)

    # When
    for index in range(1, 14):
        service.save("alice", make_artifact(index))
    gallery = service.fetch("alice")

    # Then
    assert len(gallery) == MAX_ITEMS
    assert gallery[0].id == "art013"
    assert gallery[-1].id == "art002"


def test_fetch_given_unreachable_remote_when_fetched_then_saved_artifact_round_trips(
    local_store,
    fake_remote,
    make_artifact,
) -> None:
    # Given
    fake_remote.failures["insert"] = TransportError("offline")
    fake_remote.failures["list"] = TransportError("offline")
    service = GalleryService(local_store, fake_remote)
    artifact = make_artifact(1)
    service.save("alice", artifact)

    # When
    gallery = service.fetch("alice")

    # Then
    assert len(gallery) == 1
    assert gallery[0].settings == artifact.settings
    assert gallery[0].timestamp == artifact.timestamp


def test_fetch_given_permission_denied_when_fetched_then_local_cache_is_used(
    local_store,
    fake_remote,
    make_artifact,
) -> None:
    # Given
    local_store.put("alice", make_artifact(1))
    fake_remote.failures["list"] = PermissionDenied("rules")
    service = GalleryService(local_store, fake_remote)

    # When
    gallery = service.fetch("alice")

    # Then
    assert [item.id for item in gallery] == ["art001"]


def test_fetch_given_empty_remote_when_fetched_then_local_history_is_surfaced(
    local_store,
    fake_remote,
    make_artifact,
) -> None:
    # Given
    local_store.put("alice", make_artifact(1))
    service = GalleryService(local_store, fake_remote)

    # When
    gallery = service.fetch("alice")

    # Then
    assert [item.id for item in gallery] == ["art001"]


def test_fetch_given_remote_entries_when_fetched_then_remote_wins(local_store, fake_remote, make_artifact) -> None:
    # Given
    local_store.put("alice", make_artifact(1))
    fake_remote.insert("alice", make_artifact(2))
    service = GalleryService(local_store, fake_remote)

    # When
    gallery = service.fetch("alice")

    # Then
    assert [item.id for item in gallery] == ["art002"]


def test_update_caption_given_local_only_id_when_remote_rejects_then_no_error_is_raised(
    local_store,
    fake_remote,
    make_artifact,
) -> None:
    # Given
    local_store.put("alice", make_artifact(1))
    service = GalleryService(local_store, fake_remote)

    # When
    service.update_caption("alice", "art001", "Nova legenda")

    # Then
    assert local_store.get("alice")[0].caption == "Nova legenda"
    assert ("update_caption", "art001") in fake_remote.calls


def test_update_caption_given_remote_artifact_when_updated_then_remote_record_changes(
    local_store,
    fake_remote,
    make_artifact,
) -> None:
    # Given
    service = GalleryService(local_store, fake_remote)
    service.save("alice", make_artifact(1))

    # When
    service.update_caption("alice", "art001", "Cloud caption")

    # Then
    assert service.fetch("alice")[0].caption == "Cloud caption"


def test_delete_given_remote_failure_when_deleted_then_local_list_is_returned(
    local_store,
    fake_remote,
    make_artifact,
) -> None:
    # Given
    local_store.put("alice", make_artifact(1))
    local_store.put("alice", make_artifact(2))
    fake_remote.failures["delete"] = TransportError("offline")
    service = GalleryService(local_store, fake_remote)

    # When
    gallery = service.delete("alice", "art001")

    # Then
    assert [item.id for item in gallery] == ["art002"]


def test_delete_given_remote_success_when_deleted_then_fresh_remote_list_is_returned(
    local_store,
    fake_remote,
    make_artifact,
) -> None:
    # Given
    service = GalleryService(local_store, fake_remote)
    service.save("alice", make_artifact(1))
    service.save("alice", make_artifact(2))

    # When
    gallery = service.delete("alice", "art002")

    # Then
    assert [item.id for item in gallery] == ["art001"]
    assert "art002" not in fake_remote.records


def test_clear_given_both_stores_when_cleared_then_both_are_empty(local_store, fake_remote, make_artifact) -> None:
    # Given
    local_store.put("alice", make_artifact(1))
    fake_remote.insert("alice", make_artifact(2))
    fake_remote.insert("bob", make_artifact(3))
    service = GalleryService(local_store, fake_remote)

    # When
    service.clear("alice")

    # Then
    assert service.fetch("alice") == []
    assert list(fake_remote.records) == ["art003"]
