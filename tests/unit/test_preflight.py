"""Unit tests for the archive preflight scan."""

from __future__ import annotations

from datetime import timezone

import pytest

from tests.conftest import BASE_DATE
from tg_undelete.core.preflight import PreflightReport, scan_archive
from tg_undelete.services.archive import MessageReader
from tg_undelete.services.media import MediaResolver


@pytest.fixture()
def scan(archive, media_dir, make_context):
    def _scan(**ctx_overrides) -> PreflightReport:
        with MessageReader(archive.path, tz=timezone.utc) as reader:
            return scan_archive(make_context(**ctx_overrides), reader, MediaResolver(media_dir))

    return _scan


class TestScanArchive:
    """Tests for scan_archive()."""

    def test_empty_archive(self, scan):
        report = scan()
        assert report.total == 0
        assert not report.has_problems

    def test_counts_kinds(self, archive, scan, write_media):
        archive.add_media(1, "photo").add_media(2, "geo", name="Home")
        archive.add_message(10, date=BASE_DATE, text="hi")
        archive.add_message(11, date=BASE_DATE + 1, media_id=1)
        archive.add_message(12, date=BASE_DATE + 2, media_id=2)
        archive.add_message(13, date=BASE_DATE + 3, service_action="pin")
        write_media("photo", "pic", 1, "jpg")

        report = scan()

        assert report.total == 3
        assert report.kind_counts == {"text": 1, "photo": 1, "geo": 1}
        assert not report.has_problems

    def test_missing_attachment_is_a_problem(self, archive, scan):
        archive.add_media(5, "document", name="gone.pdf")
        archive.add_message(1, date=BASE_DATE, media_id=5)

        report = scan()

        assert report.missing_media_ids == [1]
        assert report.has_problems

    def test_oversized_document_is_reported_not_a_problem(self, archive, scan, write_media):
        archive.add_media(5, "document", name="big.bin")
        archive.add_message(1, date=BASE_DATE, media_id=5)
        write_media("document", "big", 5, "bin", size=2048)

        report = scan(oversized_file_bytes=1024)

        assert report.oversized_ids == [1]
        assert not report.has_problems

    def test_large_photo_is_not_oversized(self, archive, scan, write_media):
        archive.add_media(5, "photo")
        archive.add_message(1, date=BASE_DATE, media_id=5)
        write_media("photo", "big", 5, "jpg", size=2048)

        assert scan(oversized_file_bytes=1024).oversized_ids == []

    def test_unknown_media_type_is_unreadable(self, archive, scan):
        archive.add_media(5, "sticker")
        archive.add_message(1, date=BASE_DATE, media_id=5)
        archive.add_message(2, date=BASE_DATE + 1, text="fine")

        report = scan()

        assert report.total == 2
        assert list(report.unreadable) == [1]
        assert "sticker" in report.unreadable[1]
        assert report.kind_counts == {"text": 1}
        assert report.has_problems

    def test_undated_message_is_unreadable(self, archive, scan):
        archive.add_message(1, date=BASE_DATE, text="dated")
        archive.add_message(2, date=None, text="undated")

        report = scan()

        assert report.total == 2
        assert list(report.unreadable) == [2]
        assert "no date" in report.unreadable[2]
