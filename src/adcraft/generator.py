"""Gemini adapter for creatives, captions, prompt enhancement and brand analysis."""

from __future__ import annotations

import base64
import json
import logging
import re
import time
import uuid
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

from pydantic import ValidationError

from adcraft.config import BackendClients
from adcraft.errors import (
    AdcraftError,
    ConfigurationMissing,
    EmptyGenerationResult,
    FatalAuthError,
    GenerationFailed,
    RateLimited,
    ServiceOverloaded,
)
from adcraft.images import attach_images, encode_image, split_data_uri
from adcraft.models import STYLES, Artifact, BrandAnalysis, EncodedImage, GenerationConfig, GenerationSettings
from adcraft.prompting import (
    build_brand_analysis_prompt,
    build_caption_prompt,
    build_enhance_prompt,
    build_prompt,
)
from adcraft.retry import call_with_retry

logger = logging.getLogger(__name__)

T = TypeVar("T")

ASPECT_RATIOS = {
    "1:1": "1:1",
    "16:9": "16:9",
    "9:16": "9:16",
    "4:5": "3:4",
    "2:1": "16:9",
}

CAPTION_FALLBACK = "Could not generate a caption."
GENERATE_FAILED = "Could not generate the creative. Try again with a simpler description."
CAPTION_FAILED = "Error generating the caption."
ENHANCE_FAILED = "Could not enhance the description."
BRAND_ANALYSIS_FAILED = "Could not analyze the brand images."

_KEY_REVOKED_MARKERS = ("leaked", "revoked", "expired", "api_key_invalid", "api key not valid")


def map_aspect_ratio(format_value: str) -> str:
    """Map a user-facing format to one of the ratios the image model accepts."""
    if format_value in ASPECT_RATIOS:
        return ASPECT_RATIOS[format_value]
    if "16:9" in format_value:
        return "16:9"
    if "9:16" in format_value:
        return "9:16"
    if "Portrait" in format_value:
        return "3:4"
    return "1:1"


def classify_api_error(exc: Exception) -> AdcraftError | None:
    """Translate a google-genai error into the project's error taxonomy.

    Returns ``None`` when the error has no specific meaning here and should
    propagate unchanged.
    """
    code = getattr(exc, "code", None)
    status = str(getattr(exc, "status", "") or "").upper()
    message = str(exc)
    lowered = message.lower()

    if any(marker in lowered for marker in _KEY_REVOKED_MARKERS):
        return FatalAuthError()
    if code == 429 or status == "RESOURCE_EXHAUSTED" or "resource_exhausted" in lowered:
        return RateLimited(message)
    if code == 503 or status == "UNAVAILABLE" or "overloaded" in lowered:
        return ServiceOverloaded(message)
    if code == 500 or "xhr" in lowered:
        return GenerationFailed("Connection error (payload too large). Try using fewer reference images.")
    return None


def _call_model(fn: Callable[[], T], failure_message: str) -> T:
    """Run one SDK call, mapping every SDK failure into the error taxonomy.

    Errors without a specific meaning become ``GenerationFailed(failure_message)``.
    """
    try:
        return fn()
    except AdcraftError:
        raise
    except Exception as exc:
        translated = classify_api_error(exc)
        if translated is None:
            logger.debug("Unclassified model error: %r", exc)
            translated = GenerationFailed(failure_message)
        raise translated from exc


def extract_inline_images(response: Any) -> list[str]:
    """Return every inline image part of a response as a ``data:`` URI."""
    images: list[str] = []
    for candidate in getattr(response, "candidates", None) or []:
        content = getattr(candidate, "content", None)
        for part in getattr(content, "parts", None) or []:
            inline = getattr(part, "inline_data", None)
            if inline is None:
                continue
            data = getattr(inline, "data", None)
            if not data:
                continue
            mime_type = getattr(inline, "mime_type", None) or "image/png"
            if isinstance(data, bytes):
                data = base64.b64encode(data).decode("ascii")
            images.append(f"data:{mime_type};base64,{data}")
    return images


def build_artifacts(images: list[str], settings: GenerationSettings, now_ms: int | None = None) -> list[Artifact]:
    """Wrap generated images into artifacts with distinct, increasing timestamps."""
    base = now_ms if now_ms is not None else int(time.time() * 1000)
    return [
        Artifact(id=uuid.uuid4().hex[:12], url=url, timestamp=base + index, settings=settings)
        for index, url in enumerate(images)
    ]


def _strip_json_fence(text: str) -> str:
    """Remove a surrounding Markdown JSON code fence when present."""
    fenced = re.match(r"^```(?:json)?\s*(.*?)\s*```$", text.strip(), re.DOTALL)
    if fenced:
        return fenced.group(1).strip()
    return text.strip()


def parse_brand_analysis(raw: str) -> BrandAnalysis:
    """Parse the brand analysis JSON, tolerating Markdown fences.

    Raises:
        GenerationFailed: If the response is not a JSON object.
    """
    try:
        data = json.loads(_strip_json_fence(raw or "{}"))
    except json.JSONDecodeError as exc:
        raise GenerationFailed(BRAND_ANALYSIS_FAILED) from exc
    if not isinstance(data, dict):
        raise GenerationFailed(BRAND_ANALYSIS_FAILED)

    cleaned = {key: value for key, value in data.items() if key in ("palette", "style", "niche") and value}
    try:
        return BrandAnalysis.model_validate(cleaned)
    except ValidationError as exc:
        raise GenerationFailed(BRAND_ANALYSIS_FAILED) from exc


class CreativeGenerator:
    """Thin adapter around Google GenAI content generation."""

    def __init__(
        self,
        api_key: str | None,
        image_model: str = "gemini-2.5-flash-image",
        text_model: str = "gemini-3-flash-preview",
        *,
        max_retries: int = 2,
        delay_ms: int = 2000,
        caption_max_retries: int = 3,
        caption_delay_ms: int = 3000,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.api_key = api_key
        self.image_model = image_model
        self.text_model = text_model
        self.max_retries = max_retries
        self.delay_ms = delay_ms
        self.caption_max_retries = caption_max_retries
        self.caption_delay_ms = caption_delay_ms
        self.sleep = sleep

    @classmethod
    def from_clients(cls, clients: BackendClients) -> CreativeGenerator:
        settings = clients.settings
        return cls(
            clients.api_key,
            image_model=settings.image_model,
            text_model=settings.text_model,
            max_retries=settings.generation_max_retries,
            delay_ms=settings.generation_retry_delay_ms,
            caption_max_retries=settings.caption_max_retries,
            caption_delay_ms=settings.caption_retry_delay_ms,
        )

    def _client(self) -> Any:
        if not self.api_key:
            raise ConfigurationMissing()

        from google import genai

        return genai.Client(api_key=self.api_key)

    @staticmethod
    def _image_part(image: EncodedImage) -> Any:
        from google.genai import types

        return types.Part.from_bytes(data=base64.b64decode(image.data), mime_type=image.mime_type)

    def generate(self, config: GenerationConfig) -> list[Artifact]:
        """Generate ``config.model_count`` creatives as one all-or-nothing batch.

        Raises:
            ConfigurationMissing: If no API key is configured.
            EmptyGenerationResult: If a response carries no image.
            UserFacingQuotaError: If rate-limit retries are exhausted.
            FatalAuthError: If the API key was revoked.
            GenerationFailed: If the model call fails for any other reason.
        """
        client = self._client()

        from google.genai import types

        attached = attach_images(config)
        prompt = build_prompt(
            config,
            has_logo=config.logo_image is not None,
            reference_count=len(config.reference_images),
        )
        contents = [self._image_part(image) for image in attached]
        contents.append(prompt)
        aspect_ratio = map_aspect_ratio(config.format)
        request_config = types.GenerateContentConfig(
            image_config=types.ImageConfig(aspect_ratio=aspect_ratio),
        )

        def attempt() -> list[str]:
            images: list[str] = []
            for index in range(config.model_count):
                logger.info("Requesting image %d/%d from %s", index + 1, config.model_count, self.image_model)
                response = _call_model(
                    lambda: client.models.generate_content(
                        model=self.image_model,
                        contents=contents,
                        config=request_config,
                    ),
                    GENERATE_FAILED,
                )
                found = extract_inline_images(response)
                if not found:
                    raise EmptyGenerationResult()
                images.extend(found)
            return images

        images = call_with_retry(attempt, max_retries=self.max_retries, delay_ms=self.delay_ms, sleep=self.sleep)
        return build_artifacts(images, config.snapshot())

    def generate_caption(self, image_url: str, niche: str, objective: str) -> str:
        """Write a social media caption for a generated image."""
        client = self._client()
        image = split_data_uri(image_url)
        contents = [self._image_part(image), build_caption_prompt(niche, objective)]

        def attempt() -> str:
            response = _call_model(
                lambda: client.models.generate_content(model=self.text_model, contents=contents),
                CAPTION_FAILED,
            )
            return (getattr(response, "text", None) or "").strip()

        text = call_with_retry(
            attempt,
            max_retries=self.caption_max_retries,
            delay_ms=self.caption_delay_ms,
            sleep=self.sleep,
        )
        return text or CAPTION_FALLBACK

    def enhance_prompt(self, description: str, category: str, style: str) -> str:
        """Rewrite a short description into a detailed image prompt."""
        client = self._client()
        prompt = build_enhance_prompt(description, category, style)
        response = _call_model(
            lambda: client.models.generate_content(model=self.text_model, contents=prompt),
            ENHANCE_FAILED,
        )
        text = (getattr(response, "text", None) or "").strip()
        return text or description

    def analyze_brand_assets(self, paths: list[Path]) -> BrandAnalysis:
        """Suggest palette, style and niche from existing brand images."""
        client = self._client()

        from google.genai import types

        contents: list[Any] = [self._image_part(encode_image(path)) for path in paths]
        contents.append(build_brand_analysis_prompt(STYLES))
        response = _call_model(
            lambda: client.models.generate_content(
                model=self.text_model,
                contents=contents,
                config=types.GenerateContentConfig(response_mime_type="application/json"),
            ),
            BRAND_ANALYSIS_FAILED,
        )
        return parse_brand_analysis(getattr(response, "text", None) or "{}")
