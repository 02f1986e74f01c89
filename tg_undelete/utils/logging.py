"""
Logging helpers for the Telegram undelete migration tool.

Everything logs through the ``tg_undelete`` logger. Context such as
``old_id`` or ``new_id`` travels as record extras via ``log_with_context``.
Bot tokens are part of every Bot API URL, so each handler installed here
carries a filter that masks them before a record is written anywhere.
"""

from __future__ import annotations

import json
import logging
import os
import re
from typing import Any

LOGGER_NAME = "tg_undelete"
MAIN_LOG_FILE = "migration.log"
MAX_LOGGED_RESPONSE_CHARS = 2000

CONSOLE_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
VERBOSE_FORMAT = (
    "%(asctime)s - %(name)s - %(levelname)s - [%(module)s:%(lineno)d] - %(message)s"
)

# Set by setup_logger(); read by the API request/response helpers
_DEBUG_API_ENABLED = False

# Bot tokens look like ``123456:AAbbCC...`` and follow ``bot`` in API URLs
_BOT_TOKEN_RE = re.compile(r"bot\d+:[A-Za-z0-9_-]+")

_SENSITIVE_KEYS = ("token", "auth", "password", "secret", "key")


def redact_token(text: str) -> str:
    """Replace bot tokens embedded in URLs or messages with a placeholder."""
    return _BOT_TOKEN_RE.sub("bot[REDACTED]", text)


class TokenRedactingFilter(logging.Filter):
    """Masks bot tokens in the rendered message of every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = redact_token(message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


class EnhancedFormatter(logging.Formatter):
    """Console/file formatter.

    ``verbose`` switches to a layout with logger name, module and line.
    ``include_api_details`` appends the ``api_data`` and ``response`` extras
    written by ``log_api_request`` and ``log_api_response``.
    """

    def __init__(
        self,
        fmt: str | None = None,
        datefmt: str | None = None,
        style: str = "%",
        verbose: bool = False,
        include_api_details: bool = False,
    ) -> None:
        if verbose:
            fmt = VERBOSE_FORMAT
        super().__init__(fmt or CONSOLE_FORMAT, datefmt, style)  # type: ignore[arg-type]
        self.include_api_details = include_api_details

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        if not self.include_api_details:
            return text

        for attr, label in (("api_data", "API Data"), ("response", "Response")):
            value = getattr(record, attr, None)
            if value:
                text += f"\n{label}: {value}"
        return text


def _attach(logger: logging.Logger, handler: logging.Handler) -> None:
    handler.addFilter(TokenRedactingFilter())
    logger.addHandler(handler)


def setup_main_log_file(output_dir: str, debug_api: bool = False) -> logging.FileHandler:
    """
    Write every record, DEBUG included, to ``migration.log`` in *output_dir*.

    Args:
        output_dir: Run output directory, created if missing
        debug_api: Append API request/response details to records

    Returns:
        The installed file handler
    """
    os.makedirs(output_dir, exist_ok=True)
    log_path = os.path.join(output_dir, MAIN_LOG_FILE)

    file_handler = logging.FileHandler(log_path, mode="w", encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(
        EnhancedFormatter(CONSOLE_FORMAT, include_api_details=debug_api)
    )

    logger = logging.getLogger(LOGGER_NAME)
    _attach(logger, file_handler)
    logger.info(f"Writing run log to {log_path}")
    return file_handler


def setup_logger(
    verbose: bool = False, debug_api: bool = False, output_dir: str | None = None
) -> logging.Logger:
    """
    Configure the ``tg_undelete`` logger for a command run.

    Any handlers from an earlier call are closed and replaced.

    Args:
        verbose: Show DEBUG records on the console (INFO otherwise)
        debug_api: Log Bot API requests and responses
        output_dir: Also write ``migration.log`` into this directory

    Returns:
        The configured logger
    """
    global _DEBUG_API_ENABLED
    _DEBUG_API_ENABLED = debug_api

    logger = logging.getLogger(LOGGER_NAME)
    for old_handler in list(logger.handlers):
        logger.removeHandler(old_handler)
        old_handler.close()
    # Handlers decide what is shown; the logger itself passes everything
    logger.setLevel(logging.DEBUG)

    console = logging.StreamHandler()
    console.setLevel(logging.DEBUG if verbose else logging.INFO)
    console.setFormatter(EnhancedFormatter(verbose=verbose, include_api_details=debug_api))
    _attach(logger, console)

    if output_dir:
        setup_main_log_file(output_dir, debug_api)

    if debug_api:
        logger.info("Bot API request/response logging enabled (tokens redacted)")

    return logger


def log_with_context(level: int, message: str, **kwargs: Any) -> None:
    """
    Log *message* with keyword context attached as record extras.

    Context values that are None are dropped. ``exc_info`` is passed through
    to the logger instead of becoming an extra.

    Args:
        level: Logging level, e.g. ``logging.INFO``
        message: The log message
        **kwargs: Context such as ``old_id=``, ``new_id=``, ``api_method=``
    """
    extras = {key: value for key, value in kwargs.items() if value is not None}
    exc_info = extras.pop("exc_info", None)
    logging.getLogger(LOGGER_NAME).log(level, message, extra=extras, exc_info=exc_info)


def _mask_sensitive(data: dict[str, Any]) -> dict[str, Any]:
    return {
        key: "[REDACTED]" if any(s in key.lower() for s in _SENSITIVE_KEYS) else value
        for key, value in data.items()
    }


def log_api_request(
    method: str, url: str, data: dict[str, Any] | None = None, **kwargs: Any
) -> None:
    """
    Log an outgoing Bot API call when API debug logging is on.

    Args:
        method: HTTP verb
        url: Request URL; the bot token is redacted
        data: Form fields; sensitive-looking keys are masked
        **kwargs: Extra context for the record
    """
    if not is_debug_api_enabled():
        return

    context = dict(kwargs)
    if data:
        context["api_data"] = json.dumps(_mask_sensitive(data), indent=2, default=str)
    log_with_context(logging.DEBUG, f"API Request: {method} {redact_token(url)}", **context)


def log_api_response(
    status_code: int, url: str, response_data: Any = None, **kwargs: Any
) -> None:
    """
    Log a Bot API response when API debug logging is on.

    Bodies longer than ``MAX_LOGGED_RESPONSE_CHARS`` are truncated.
    """
    if not is_debug_api_enabled():
        return

    context = dict(kwargs)
    if response_data:
        if isinstance(response_data, (dict, list)):
            body = json.dumps(response_data, indent=2)
        else:
            body = str(response_data)
        if len(body) > MAX_LOGGED_RESPONSE_CHARS:
            body = body[:MAX_LOGGED_RESPONSE_CHARS] + "... [truncated]"
        context["response"] = body

    log_with_context(
        logging.DEBUG,
        f"API Response: {status_code} from {redact_token(url)}",
        **context,
    )


def is_debug_api_enabled() -> bool:
    return _DEBUG_API_ENABLED


def get_logger() -> logging.Logger:
    """Return the package logger, giving it a console handler if it has none."""
    package_logger = logging.getLogger(LOGGER_NAME)
    if not package_logger.handlers:
        package_logger.setLevel(logging.INFO)
        console = logging.StreamHandler()
        console.setLevel(logging.INFO)
        console.setFormatter(EnhancedFormatter())
        _attach(package_logger, console)
    return package_logger


# Replaced by setup_logger() once a command starts
logger = get_logger()
