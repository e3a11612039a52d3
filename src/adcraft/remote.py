"""Remote gallery store interface and the Supabase REST backend."""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Any, Protocol

import requests
from pydantic import ValidationError

from adcraft.errors import PermissionDenied, RemoteQuotaExceeded, TransportError
from adcraft.models import Artifact, GenerationSettings

logger = logging.getLogger(__name__)

# PostgREST trims trailing zeros from fractional seconds.
_FRACTION_RE = re.compile(r"(?<=:\d\d)\.(\d+)")


class RemoteGalleryStore(Protocol):
    """Capability the reconciliation layer needs from a cloud gallery backend.

    Implementations raise ``PermissionDenied``, ``RemoteQuotaExceeded`` or
    ``TransportError`` and nothing else.
    """

    def insert(self, user_id: str, artifact: Artifact) -> None: ...

    def list_by_user(self, user_id: str, limit: int | None = None) -> list[Artifact]: ...

    def update_caption(self, artifact_id: str, caption: str) -> None: ...

    def delete(self, artifact_id: str) -> None: ...


def _pad_fraction(match: re.Match[str]) -> str:
    return "." + match.group(1)[:6].ljust(6, "0")


def _timestamp_ms(value: Any) -> int:
    """Accept epoch milliseconds or an ISO-8601 string."""
    if isinstance(value, (int, float)):
        return int(value)
    text = str(value).strip()
    if text.isdigit():
        return int(text)
    text = _FRACTION_RE.sub(_pad_fraction, text.replace("Z", "+00:00"), count=1)
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return round(parsed.timestamp() * 1000)


def artifact_to_record(user_id: str, artifact: Artifact) -> dict[str, Any]:
    return {
        "id": artifact.id,
        "user_id": user_id,
        "image_data": artifact.url,
        "settings": artifact.settings.model_dump(),
        "caption": artifact.caption,
        "created_at": datetime.fromtimestamp(artifact.timestamp / 1000, tz=timezone.utc).isoformat(),
    }


def record_to_artifact(record: dict[str, Any]) -> Artifact:
    try:
        return Artifact(
            id=str(record["id"]),
            url=record["image_data"],
            timestamp=_timestamp_ms(record["created_at"]),
            caption=record.get("caption"),
            settings=GenerationSettings.model_validate(record.get("settings") or {}),
        )
    except (KeyError, ValueError, ValidationError) as exc:
        raise TransportError(f"Malformed gallery record: {exc}") from exc


class SupabaseGalleryStore:
    """Gallery records kept in a Supabase table through its PostgREST API."""

    def __init__(
        self,
        url: str,
        key: str,
        table: str = "creatives",
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ):
        self.base_url = f"{url.rstrip('/')}/rest/v1/{table}"
        self.timeout = timeout
        self.session = session or requests.Session()
        self.headers = {
            "apikey": key,
            "Authorization": f"Bearer {key}",
            "Content-Type": "application/json",
        }

    def _request(
        self,
        method: str,
        params: dict[str, str] | None = None,
        extra_headers: dict[str, str] | None = None,
        **kwargs: Any,
    ) -> requests.Response:
        try:
            response = self.session.request(
                method,
                self.base_url,
                params=params,
                headers={**self.headers, **(extra_headers or {})},
                timeout=self.timeout,
                **kwargs,
            )
        except requests.RequestException as exc:
            raise TransportError(f"Gallery backend unreachable: {exc}") from exc

        logger.debug("Gallery backend %s %s -> %s", method, params, response.status_code)
        if response.status_code in (401, 403):
            raise PermissionDenied(f"Gallery backend denied {method}: {response.status_code}")
        if response.status_code in (413, 507) or (
            response.status_code >= 400 and "quota" in response.text.lower()
        ):
            raise RemoteQuotaExceeded(f"Gallery backend rejected the record size: {response.status_code}")
        if response.status_code >= 400:
            raise TransportError(f"Gallery backend error {response.status_code}: {response.text[:200]}")
        return response

    def insert(self, user_id: str, artifact: Artifact) -> None:
        self._request("POST", json=[artifact_to_record(user_id, artifact)])

    def list_by_user(self, user_id: str, limit: int | None = None) -> list[Artifact]:
        params = {
            "select": "*",
            "user_id": f"eq.{user_id}",
            "order": "created_at.desc",
        }
        if limit is not None:
            params["limit"] = str(limit)
        response = self._request("GET", params=params)
        try:
            rows = response.json()
        except ValueError as exc:
            raise TransportError("Gallery backend returned invalid JSON") from exc
        if not isinstance(rows, list):
            raise TransportError("Gallery backend returned an unexpected payload")
        return [record_to_artifact(row) for row in rows]

    def update_caption(self, artifact_id: str, caption: str) -> None:
        response = self._request(
            "PATCH",
            params={"id": f"eq.{artifact_id}"},
            json={"caption": caption},
            extra_headers={"Prefer": "return=representation"},
        )
        try:
            updated = response.json()
        except ValueError:
            updated = []
        if not updated:
            raise TransportError(f"No remote gallery record with id {artifact_id}")

    def delete(self, artifact_id: str) -> None:
        self._request("DELETE", params={"id": f"eq.{artifact_id}"})
