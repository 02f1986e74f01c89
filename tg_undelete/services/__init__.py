"""Archive reading, media lookup, rendering and Telegram API communication."""

__all__ = [
    "archive",
    "media",
    "message_builder",
    "publisher",
    "telegram_adapter",
]
