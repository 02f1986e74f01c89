"""Text and caption rendering for republished messages.

Pure functions: no I/O, no configuration lookups beyond their arguments.
"""

from __future__ import annotations

from collections.abc import Collection
from datetime import datetime

from tg_undelete.types import HistoricalMessage, MediaKind, MediaRef, MediaResource


def format_timestamp(timestamp: datetime) -> str:
    """ISO-8601 rendering with offset, e.g. ``2019-03-01T12:00:00+08:00``."""
    return timestamp.isoformat()


def author_prefix(message: HistoricalMessage, bot_user_ids: Collection[int]) -> str:
    """Return ``"<author>:\\n"``, or nothing for the channel's own bots."""
    if message.author_id is not None and message.author_id in bot_user_ids:
        return ""
    return f"{message.author_name}:\n"


def text_body(message: HistoricalMessage, bot_user_ids: Collection[int]) -> str:
    """Body of a message sent without media."""
    if message.text:
        content = f"{author_prefix(message, bot_user_ids)}{message.text}"
    else:
        content = f"(from {message.author_name})"
    return f"{content}\n{format_timestamp(message.timestamp)}"


def media_caption(media: MediaRef) -> str:
    """``(kind)`` marker for meaningful kinds, followed by the display name."""
    prefix = f"({media.kind.value})" if media.kind.carries_meaning else ""
    if media.display_name:
        return f"{prefix}\n{media.display_name}"
    return prefix


def caption_timestamped(media: MediaRef, timestamp: datetime) -> str:
    """Caption with the original timestamp; photos carry only the timestamp."""
    if media.kind is MediaKind.PHOTO:
        return format_timestamp(timestamp)
    return f"{media_caption(media)}\n{format_timestamp(timestamp)}"


def webpage_body(message: HistoricalMessage, media: MediaRef) -> str:
    return f"{message.text}\n{caption_timestamped(media, message.timestamp)}"


def oversized_notice(
    message: HistoricalMessage, media: MediaRef, resource: MediaResource
) -> str:
    """Text sent in place of a document too large to upload."""
    return (
        f"(oversized file: {resource.size} bytes)\n"
        f"{resource.file_name}\n"
        f"{caption_timestamped(media, message.timestamp)}"
    )
