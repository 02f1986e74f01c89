"""Shared constants for the Telegram undelete migration tool."""

from __future__ import annotations

# HTTP status codes
HTTP_OK = 200
HTTP_RATE_LIMIT = 429
HTTP_SERVER_ERROR_MIN = 500

# Telegram Bot API
TELEGRAM_API_BASE_URL = "https://api.telegram.org"
METHOD_SEND_MESSAGE = "sendMessage"
METHOD_SEND_PHOTO = "sendPhoto"
METHOD_SEND_DOCUMENT = "sendDocument"

# Migration defaults
DEFAULT_RETRY_CEILING = 4
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_DELAY = 2
DEFAULT_REQUEST_TIMEOUT = 60
MAX_RETRY_BACKOFF = 60
RETRY_BACKOFF_FACTOR = 2.0

# Documents at or above this size are announced as text instead of uploaded
OVERSIZED_FILE_BYTES = 50 * 1024 * 1024

LEDGER_TABLE = "MessageIDMigration"

UNKNOWN_AUTHOR = "Unknown"
