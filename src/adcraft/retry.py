"""Exponential backoff for rate-limited and overloaded model calls."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import TypeVar

from tenacity import (
    RetryCallState,
    RetryError,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from adcraft.errors import TransientGenerationError, UserFacingQuotaError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _log_retry(retry_state: RetryCallState) -> None:
    outcome = retry_state.outcome
    error = outcome.exception() if outcome else None
    wait = retry_state.next_action.sleep if retry_state.next_action else 0.0
    logger.warning(
        "Model call failed (%s), retry %d in %.1fs",
        type(error).__name__,
        retry_state.attempt_number,
        wait,
    )


def call_with_retry(
    fn: Callable[[], T],
    *,
    max_retries: int,
    delay_ms: int,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Call ``fn`` and retry it on transient upstream errors.

    Attempt ``n`` (zero-based) that fails with ``RateLimited`` or
    ``ServiceOverloaded`` is followed by a wait of ``delay_ms * 2**n``
    milliseconds, up to ``max_retries`` retries. Any other exception is raised
    immediately.

    Raises:
        UserFacingQuotaError: If every attempt failed with a transient error.
    """
    retrying = Retrying(
        stop=stop_after_attempt(max_retries + 1),
        wait=wait_exponential(multiplier=delay_ms / 1000, exp_base=2),
        retry=retry_if_exception_type(TransientGenerationError),
        before_sleep=_log_retry,
        sleep=sleep,
    )
    try:
        return retrying(fn)
    except RetryError as exc:
        raise UserFacingQuotaError() from exc.last_attempt.exception()
