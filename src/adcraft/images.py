"""Image downscaling and base64 encoding for inline model inputs."""

from __future__ import annotations

import base64
import binascii
import re
from io import BytesIO
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from adcraft.errors import ImageProcessingError
from adcraft.models import EncodedImage, GenerationConfig

MAX_DIMENSION = 1024
JPEG_QUALITY = 90

_DATA_URI_RE = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+);base64,(?P<data>.+)$", re.DOTALL)


def _fit_within(width: int, height: int, max_dimension: int) -> tuple[int, int]:
    """Cap the longest side at ``max_dimension`` keeping the aspect ratio."""
    longest = max(width, height)
    if longest <= max_dimension:
        return width, height
    scale = max_dimension / longest
    return max(1, round(width * scale)), max(1, round(height * scale))


def encode_image(path: Path, max_dimension: int = MAX_DIMENSION) -> EncodedImage:
    """Downscale an image file and encode it as base64.

    PNG input stays PNG so logo transparency survives; every other format is
    re-encoded as JPEG.

    Raises:
        ImageProcessingError: If the file cannot be read as an image.
    """
    try:
        with Image.open(path) as source:
            is_png = source.format == "PNG"
            image = source.copy()
    except (OSError, UnidentifiedImageError) as exc:
        raise ImageProcessingError(f"Could not read image {path}") from exc

    size = _fit_within(image.width, image.height, max_dimension)
    if size != image.size:
        image = image.resize(size, Image.Resampling.LANCZOS)

    buffer = BytesIO()
    if is_png:
        image.save(buffer, format="PNG")
        mime_type = "image/png"
    else:
        image.convert("RGB").save(buffer, format="JPEG", quality=JPEG_QUALITY)
        mime_type = "image/jpeg"

    return EncodedImage(mime_type=mime_type, data=base64.b64encode(buffer.getvalue()).decode("ascii"))


def attach_images(config: GenerationConfig) -> list[EncodedImage]:
    """Encode the logo (first) and reference images in prompt order."""
    attached: list[EncodedImage] = []
    if config.logo_image is not None:
        try:
            attached.append(encode_image(config.logo_image))
        except ImageProcessingError as exc:
            raise ImageProcessingError("Could not process the logo image.") from exc
    for path in config.reference_images:
        try:
            attached.append(encode_image(path))
        except ImageProcessingError as exc:
            raise ImageProcessingError("Could not process the reference images.") from exc
    return attached


def split_data_uri(value: str) -> EncodedImage:
    """Split a ``data:`` URI, treating bare base64 as JPEG."""
    match = _DATA_URI_RE.match(value.strip())
    if match:
        return EncodedImage(mime_type=match.group("mime"), data=match.group("data"))
    return EncodedImage(mime_type="image/jpeg", data=value.strip())


def decode_data_uri(value: str) -> tuple[str, bytes]:
    """Return ``(mime_type, raw_bytes)`` for a ``data:`` URI."""
    encoded = split_data_uri(value)
    try:
        return encoded.mime_type, base64.b64decode(encoded.data, validate=True)
    except binascii.Error as exc:
        raise ImageProcessingError("Image data is not valid base64") from exc
