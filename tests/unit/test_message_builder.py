"""Unit tests for text and caption rendering."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path

from tests.unit.conftest import make_media, make_message
from tg_undelete.services.message_builder import (
    caption_timestamped,
    format_timestamp,
    media_caption,
    oversized_notice,
    text_body,
    webpage_body,
)
from tg_undelete.types import MediaKind, MediaResource

TS = "2019-03-01T12:00:00+00:00"


class TestFormatTimestamp:
    def test_iso_with_offset(self):
        ts = datetime(2019, 3, 1, 20, 0, tzinfo=timezone(timedelta(hours=8)))
        assert format_timestamp(ts) == "2019-03-01T20:00:00+08:00"


class TestTextBody:
    """Tests for text_body()."""

    def test_prefixes_author(self):
        msg = make_message(author_name="Alice", text="hello")
        assert text_body(msg, frozenset()) == f"Alice:\nhello\n{TS}"

    def test_bot_author_has_no_prefix(self):
        msg = make_message(author_id=900, text="hello")
        assert text_body(msg, frozenset({900})) == f"hello\n{TS}"

    def test_empty_text(self):
        msg = make_message(author_name="Bob", text="")
        assert text_body(msg, frozenset()) == f"(from Bob)\n{TS}"

    def test_unknown_author_is_never_a_bot(self):
        msg = make_message(author_name="Unknown", author_id=None, text="x")
        assert text_body(msg, frozenset({900})) == f"Unknown:\nx\n{TS}"


class TestCaptions:
    """Tests for media_caption() and caption_timestamped()."""

    def test_plain_document_has_no_kind_marker(self):
        media = make_media(MediaKind.DOCUMENT, display_name="report.pdf")
        assert media_caption(media) == "\nreport.pdf"

    def test_meaningful_kind_has_marker(self):
        media = make_media(MediaKind.VENUE, display_name="Cafe")
        assert media_caption(media) == "(venue)\nCafe"

    def test_meaningful_kind_without_name(self):
        media = make_media(MediaKind.GEO, display_name=None)
        assert media_caption(media) == "(geo)"

    def test_photo_caption_is_only_timestamp(self):
        media = make_media(MediaKind.PHOTO, display_name="pic.jpg")
        assert caption_timestamped(media, make_message().timestamp) == TS

    def test_document_caption(self):
        media = make_media(MediaKind.DOCUMENT, display_name="report.pdf")
        assert caption_timestamped(media, make_message().timestamp) == f"\nreport.pdf\n{TS}"

    def test_contact_caption(self):
        media = make_media(MediaKind.CONTACT, display_name="Carol")
        assert (
            caption_timestamped(media, make_message().timestamp)
            == f"(contact)\nCarol\n{TS}"
        )


class TestBodies:
    """Tests for webpage_body() and oversized_notice()."""

    def test_webpage_body(self):
        media = make_media(MediaKind.WEBPAGE, display_name="Example Domain")
        msg = make_message(text="see https://example.com", media=media)
        assert webpage_body(msg, media) == (
            f"see https://example.com\n\nExample Domain\n{TS}"
        )

    def test_oversized_notice_contains_byte_count_and_name(self):
        media = make_media(MediaKind.DOCUMENT, display_name="big.iso")
        msg = make_message(media=media)
        resource = MediaResource(
            path=Path("document-big.1.iso"),
            file_name="big.iso",
            extension="iso",
            size=62914560,
        )

        notice = oversized_notice(msg, media, resource)

        assert notice.startswith("(oversized file: 62914560 bytes)\nbig.iso\n")
        assert notice.endswith(TS)
