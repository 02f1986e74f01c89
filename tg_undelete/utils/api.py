"""
API utilities for the Telegram undelete migration tool
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

import requests

from tg_undelete.constants import (
    HTTP_RATE_LIMIT,
    HTTP_SERVER_ERROR_MIN,
    MAX_RETRY_BACKOFF,
    RETRY_BACKOFF_FACTOR,
)
from tg_undelete.utils.logging import log_with_context


def is_retryable_status(status_code: int) -> bool:
    """Rate limits and server errors are worth retrying; other 4xx are not."""
    return status_code == HTTP_RATE_LIMIT or status_code >= HTTP_SERVER_ERROR_MIN


def retry_after_hint(response: requests.Response) -> float | None:
    """Extract Telegram's ``parameters.retry_after`` from an error response."""
    try:
        body = response.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    parameters = body.get("parameters") or {}
    retry_after = parameters.get("retry_after")
    if isinstance(retry_after, (int, float)) and retry_after >= 0:
        return float(retry_after)
    return None


def backoff_delay(attempt: int, initial_delay: float) -> float:
    """Exponential backoff delay for a zero-based attempt number."""
    return min(initial_delay * (RETRY_BACKOFF_FACTOR**attempt), MAX_RETRY_BACKOFF)


def request_with_retry(
    send: Callable[[], requests.Response],
    max_retries: int = 3,
    retry_delay: float = 1,
    sleep: Callable[[float], Any] = time.sleep,
    **log_kwargs: Any,
) -> requests.Response:
    """Call *send* until it yields a non-retryable response.

    Connection failures (connect timeouts included), HTTP 429 and 5xx
    responses are retried with exponential backoff.  A ``retry_after`` hint
    from the API overrides the computed delay.  Any other response is
    returned as-is so the caller can interpret it.  A read timeout is raised
    at once, since the request may already have been accepted.

    Args:
        send: Zero-argument callable performing one HTTP request.
        max_retries: Number of retries after the first attempt.
        retry_delay: Initial backoff delay in seconds.
        sleep: Sleep function (injectable for tests).
        **log_kwargs: Extra context attached to retry log records.

    Returns:
        The last response received.

    Raises:
        requests.RequestException: When the final attempt fails in transport,
            or on any read timeout.
    """
    for attempt in range(max_retries + 1):
        is_last = attempt >= max_retries
        try:
            response = send()
        except (requests.ConnectionError, requests.ConnectTimeout) as e:
            if is_last:
                log_with_context(
                    logging.ERROR,
                    f"Max retries reached. Last error: {e}",
                    component="http",
                    **log_kwargs,
                )
                raise
            delay = backoff_delay(attempt, retry_delay)
            log_with_context(
                logging.WARNING,
                f"Transport error: {e}. Retrying in {delay:.1f} seconds...",
                component="http",
                **log_kwargs,
            )
            sleep(delay)
            continue

        if not is_retryable_status(response.status_code) or is_last:
            return response

        hint = retry_after_hint(response)
        delay = hint if hint is not None else backoff_delay(attempt, retry_delay)
        log_with_context(
            logging.WARNING,
            f"Encountered HTTP {response.status_code}. Retrying in {delay:.1f} seconds...",
            component="http",
            http_status=response.status_code,
            **log_kwargs,
        )
        sleep(delay)

    raise RuntimeError("Exited retry loop unexpectedly.")
