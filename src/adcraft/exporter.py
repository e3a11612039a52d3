"""Write a gallery to disk as image files plus Markdown and JSON indexes."""

from __future__ import annotations

import json
import mimetypes
from datetime import datetime, timezone
from pathlib import Path

from adcraft.images import decode_data_uri
from adcraft.models import Artifact

_EXTENSIONS = {"image/png": ".png", "image/jpeg": ".jpg", "image/webp": ".webp"}


def _extension_for(mime_type: str) -> str:
    return _EXTENSIONS.get(mime_type) or mimetypes.guess_extension(mime_type) or ".bin"


def export_gallery(gallery: list[Artifact], output_root: Path, user_id: str) -> Path:
    """Write every artifact of ``gallery`` under ``output_root/user_id``.

    Remote blob URLs are listed in the indexes but not downloaded.

    Returns:
        The user-specific directory containing the exported files.
    """
    target_dir = output_root / user_id
    target_dir.mkdir(parents=True, exist_ok=True)

    files: dict[str, str] = {}
    for artifact in gallery:
        if not artifact.url.startswith("data:"):
            continue
        mime_type, payload = decode_data_uri(artifact.url)
        filename = f"{artifact.id}{_extension_for(mime_type)}"
        (target_dir / filename).write_bytes(payload)
        files[artifact.id] = filename

    json_payload = {
        "user_id": user_id,
        "artifacts": [
            {**artifact.model_dump(mode="json", exclude={"url"}), "file": files.get(artifact.id)}
            for artifact in gallery
        ],
    }
    (target_dir / "gallery.json").write_text(
        json.dumps(json_payload, indent=2, ensure_ascii=False),
        encoding="utf-8",
    )
    (target_dir / "gallery.md").write_text(_render_markdown(gallery, files, user_id), encoding="utf-8")

    return target_dir


def _render_markdown(gallery: list[Artifact], files: dict[str, str], user_id: str) -> str:
    """Render a human-readable Markdown index of the gallery."""
    lines = [f"# Gallery of {user_id}", "", f"- Items: `{len(gallery)}`", ""]

    for idx, artifact in enumerate(gallery, start=1):
        created = datetime.fromtimestamp(artifact.timestamp / 1000, tz=timezone.utc).isoformat()
        settings = artifact.settings
        lines.extend(
            [
                f"## {idx}. {settings.category or 'Creative'} `{artifact.id}`",
                "",
                f"- Created: `{created}`",
                f"- Style: `{settings.style}` Format: `{settings.format}`",
            ]
        )
        if settings.text_on_image:
            lines.append(f"- Text: {settings.text_on_image}")
        if artifact.id in files:
            lines.extend(["", f"![{artifact.id}]({files[artifact.id]})"])
        else:
            lines.extend(["", f"<{artifact.url}>"])
        if artifact.caption:
            lines.extend(["", "### Caption", "", artifact.caption])
        lines.append("")

    return "\n".join(lines)
