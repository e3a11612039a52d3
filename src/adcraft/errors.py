"""Error taxonomy shared by storage, reconciliation, and generation layers.

Every error carries a short message that is safe to show to the user as-is.
"""

from __future__ import annotations


class AdcraftError(RuntimeError):
    """Base class for errors surfaced to the CLI."""


class StorageFailure(AdcraftError):
    """Local storage could not be read or written."""


class QuotaExceeded(StorageFailure):
    """Local storage refused a write because its size quota is exhausted."""


class RemoteStoreError(AdcraftError):
    """Base class for remote gallery store failures."""


class TransportError(RemoteStoreError):
    """Remote backend unreachable or returned an unexpected response."""


class PermissionDenied(RemoteStoreError):
    """Remote backend rules rejected the request."""


class RemoteQuotaExceeded(RemoteStoreError):
    """Remote backend refused the record because of its size or quota."""


class TransientGenerationError(AdcraftError):
    """Upstream model failure that is worth retrying."""


class RateLimited(TransientGenerationError):
    pass


class ServiceOverloaded(TransientGenerationError):
    pass


class FatalAuthError(AdcraftError):
    """The configured API key was revoked or rejected."""

    def __init__(self, message: str = "The API key was rejected or revoked. Configure a new GEMINI_API_KEY."):
        super().__init__(message)


class UserFacingQuotaError(AdcraftError):
    """Retries were exhausted on rate-limit or overload errors."""

    def __init__(self, message: str = "The image service is busy or the quota was reached. Try again in a minute."):
        super().__init__(message)


class EmptyGenerationResult(AdcraftError):
    """The model answered without any image part."""

    def __init__(self, message: str = "The model did not return an image. Try simplifying the prompt."):
        super().__init__(message)


class ConfigurationMissing(AdcraftError):
    """No API key is configured."""

    def __init__(self, message: str = "Missing GEMINI_API_KEY (set env var or .api_keys/Gemini.md)"):
        super().__init__(message)


class ImageProcessingError(AdcraftError):
    """An input image could not be read or encoded."""


class GenerationFailed(AdcraftError):
    """Non-retryable generation failure with a user-facing explanation."""
