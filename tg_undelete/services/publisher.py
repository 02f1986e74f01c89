"""Publisher adapter: renders archived messages and publishes them.

Every archived message becomes exactly one outbound call.  The media kind
decides the payload shape:

- no media, webpage, geo/geolive/contact/venue: plain text
- photo: image upload captioned with the timestamp
- document: file upload, or a text notice when the file is oversized

Any failure (missing attachment, transport, API rejection, undecodable
response) yields ``None`` so the caller can record a retry.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, NoReturn

from tg_undelete.exceptions import MediaNotFoundError, PublishError
from tg_undelete.services.message_builder import (
    caption_timestamped,
    oversized_notice,
    text_body,
    webpage_body,
)
from tg_undelete.types import (
    DocumentPayload,
    HistoricalMessage,
    MediaKind,
    OutboundPayload,
    PhotoPayload,
    TextPayload,
)
from tg_undelete.utils.logging import log_with_context

if TYPE_CHECKING:
    from tg_undelete.core.config import BotConfig
    from tg_undelete.core.context import MigrationContext
    from tg_undelete.services.media import MediaResolver
    from tg_undelete.services.telegram_adapter import TelegramAdapter


def assert_never(value: NoReturn) -> NoReturn:
    """Type checkers flag any call reachable with a non-exhausted union."""
    raise AssertionError(f"Unhandled value: {value!r}")


class PublisherAdapter:
    """Turns a HistoricalMessage into one publish call on the channel."""

    def __init__(
        self,
        ctx: MigrationContext,
        telegram: TelegramAdapter,
        resolver: MediaResolver,
    ) -> None:
        self.ctx = ctx
        self.telegram = telegram
        self.resolver = resolver

    def render(self, message: HistoricalMessage) -> OutboundPayload:
        """Build the outbound payload for *message*.

        Raises:
            MediaNotFoundError: If an attachment-bearing kind has no file.
        """
        media = message.media
        if media is None:
            return TextPayload(text_body(message, self.ctx.bot_user_ids))

        kind = media.kind
        if kind is MediaKind.PHOTO:
            return PhotoPayload(
                caption=caption_timestamped(media, message.timestamp),
                attachment=self.resolver.resolve(media),
            )
        elif kind is MediaKind.DOCUMENT:
            resource = self.resolver.resolve(media)
            if resource.size >= self.ctx.config.oversized_file_bytes:
                log_with_context(
                    logging.WARNING,
                    f"Document {resource.file_name} is {resource.size} bytes, "
                    "sending a text notice instead",
                    old_id=message.id,
                    media_id=media.id,
                    size=resource.size,
                )
                return TextPayload(oversized_notice(message, media, resource))
            return DocumentPayload(
                caption=caption_timestamped(media, message.timestamp),
                attachment=resource,
            )
        elif kind is MediaKind.WEBPAGE:
            return TextPayload(webpage_body(message, media))
        elif (
            kind is MediaKind.GEO
            or kind is MediaKind.GEOLIVE
            or kind is MediaKind.CONTACT
            or kind is MediaKind.VENUE
        ):
            return TextPayload(caption_timestamped(media, message.timestamp))
        else:
            assert_never(kind)

    def dispatch(
        self, message: HistoricalMessage, reply_to_new_id: int | None = None
    ) -> int | None:
        """Publish *message*, replying to *reply_to_new_id* when given.

        Returns:
            The new message id, or None if the message could not be published.
        """
        try:
            payload = self.render(message)
        except MediaNotFoundError as e:
            log_with_context(
                logging.WARNING,
                f"Attachment missing for message {message.id}: {e}",
                old_id=message.id,
                kind=message.media.kind.value if message.media else None,
            )
            return None

        bot = self.ctx.bot_for_author(message.author_id)
        try:
            return self._send(bot, payload, reply_to_new_id)
        except PublishError as e:
            log_with_context(
                logging.WARNING,
                f"Failed to publish message {message.id}: {e}",
                old_id=message.id,
                reply_to=reply_to_new_id,
            )
            return None

    def _send(
        self, bot: BotConfig, payload: OutboundPayload, reply_to: int | None
    ) -> int:
        if isinstance(payload, TextPayload):
            return self.telegram.send_message(bot.token, payload.text, reply_to)
        elif isinstance(payload, PhotoPayload):
            return self.telegram.send_photo(
                bot.token, payload.caption, payload.attachment, reply_to
            )
        elif isinstance(payload, DocumentPayload):
            return self.telegram.send_document(
                bot.token, payload.caption, payload.attachment, reply_to
            )
        else:
            assert_never(payload)
