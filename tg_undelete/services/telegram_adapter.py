"""Typed adapter for the Telegram Bot API.

Wraps ``sendMessage`` / ``sendPhoto`` / ``sendDocument`` behind explicit
methods that return the new message id or raise ``PublishError``.  Transient
failures (transport errors, HTTP 429, 5xx) are retried in-call with backoff;
everything that still fails afterwards surfaces as ``PublishError``.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

import requests

from tg_undelete.constants import (
    DEFAULT_MAX_RETRIES,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_RETRY_DELAY,
    HTTP_OK,
    METHOD_SEND_DOCUMENT,
    METHOD_SEND_MESSAGE,
    METHOD_SEND_PHOTO,
    TELEGRAM_API_BASE_URL,
)
from tg_undelete.exceptions import PublishError
from tg_undelete.types import MediaResource
from tg_undelete.utils.api import request_with_retry
from tg_undelete.utils.logging import (
    log_api_request,
    log_api_response,
    log_with_context,
    redact_token,
)

DEFAULT_MIME_TYPE = "application/octet-stream"


class TelegramAdapter:
    """Thin typed wrapper around the Telegram Bot API for one chat."""

    def __init__(
        self,
        session: requests.Session,
        chat_id: int,
        api_base_url: str = TELEGRAM_API_BASE_URL,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        send_interval: float = 0.0,
        sleep: Callable[[float], Any] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._session = session
        self.chat_id = chat_id
        self._api_base_url = api_base_url.rstrip("/")
        self._timeout = timeout
        self._max_retries = max_retries
        self._retry_delay = retry_delay
        self._send_interval = send_interval
        self._sleep = sleep
        self._clock = clock
        self._last_sent: float | None = None

    # -- Messages -------------------------------------------------------------

    def send_message(self, token: str, text: str, reply_to: int | None = None) -> int:
        """Send a plain text message.

        Args:
            token: Bot token to send with.
            text: Message text.
            reply_to: Optional message id in the chat to reply to.

        Returns:
            The new message id.
        """
        return self._call(token, METHOD_SEND_MESSAGE, {"text": text}, reply_to)

    def send_photo(
        self,
        token: str,
        caption: str,
        attachment: MediaResource,
        reply_to: int | None = None,
    ) -> int:
        """Upload an image with a caption.

        Returns:
            The new message id.
        """
        return self._call(
            token,
            METHOD_SEND_PHOTO,
            {"caption": caption},
            reply_to,
            file_field="photo",
            attachment=attachment,
        )

    def send_document(
        self,
        token: str,
        caption: str,
        attachment: MediaResource,
        reply_to: int | None = None,
    ) -> int:
        """Upload a file as a document with a caption.

        Returns:
            The new message id.
        """
        return self._call(
            token,
            METHOD_SEND_DOCUMENT,
            {"caption": caption},
            reply_to,
            file_field="document",
            attachment=attachment,
        )

    # -- Internals ------------------------------------------------------------

    def _throttle(self) -> None:
        if self._send_interval <= 0 or self._last_sent is None:
            return
        wait = self._send_interval - (self._clock() - self._last_sent)
        if wait > 0:
            self._sleep(wait)

    def _call(
        self,
        token: str,
        method: str,
        fields: dict[str, str],
        reply_to: int | None,
        file_field: str | None = None,
        attachment: MediaResource | None = None,
    ) -> int:
        url = f"{self._api_base_url}/bot{token}/{method}"
        data: dict[str, str] = {"chat_id": str(self.chat_id), **fields}
        if reply_to is not None:
            data["reply_to_message_id"] = str(reply_to)

        def send() -> requests.Response:
            if attachment is None or file_field is None:
                return self._session.post(url, data=data, timeout=self._timeout)
            with open(attachment.path, "rb") as fh:
                files = {
                    file_field: (
                        attachment.file_name,
                        fh,
                        attachment.mime_type or DEFAULT_MIME_TYPE,
                    )
                }
                return self._session.post(
                    url, data=data, files=files, timeout=self._timeout
                )

        self._throttle()
        log_api_request("POST", url, data, api_method=method)
        try:
            response = request_with_retry(
                send,
                max_retries=self._max_retries,
                retry_delay=self._retry_delay,
                sleep=self._sleep,
                api_method=method,
            )
        except requests.RequestException as e:
            raise PublishError(f"{method} failed: {redact_token(str(e))}") from e
        except OSError as e:
            raise PublishError(f"{method} could not read attachment: {e}") from e
        finally:
            self._last_sent = self._clock()

        return self._parse_response(method, url, response)

    def _parse_response(self, method: str, url: str, response: requests.Response) -> int:
        try:
            body = response.json()
        except ValueError as e:
            raise PublishError(
                f"{method} returned undecodable body (HTTP {response.status_code})"
            ) from e

        log_api_response(response.status_code, url, body, api_method=method)

        if response.status_code != HTTP_OK or not isinstance(body, dict) or not body.get("ok"):
            description = body.get("description") if isinstance(body, dict) else None
            raise PublishError(
                f"{method} rejected with HTTP {response.status_code}: {description or body!r}"
            )

        result = body.get("result")
        message_id = result.get("message_id") if isinstance(result, dict) else None
        if not isinstance(message_id, int):
            raise PublishError(f"{method} response has no message_id: {body!r}")

        log_with_context(
            logging.DEBUG,
            f"{method} created message {message_id}",
            api_method=method,
            new_id=message_id,
        )
        return message_id
