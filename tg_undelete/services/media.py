"""Media resolution: locating archived attachments on local disk.

The exporter stores each attachment under ``<media_dir>/<subdir>/`` with a
file name of the form ``<kind>-<stem>.<media id>.<ext>``.
"""

from __future__ import annotations

import glob
import logging
import mimetypes
import os
from pathlib import Path

from tg_undelete.exceptions import MediaNotFoundError
from tg_undelete.types import MediaKind, MediaRef, MediaResource
from tg_undelete.utils.logging import log_with_context


def clean_filename(path: str | Path) -> str:
    """Strip the kind marker and embedded media id from a stored file name.

    ``document-myfile.934.pdf`` becomes ``myfile.pdf``.
    """
    file_name = Path(path).name
    stem_and_id, extension = os.path.splitext(file_name)
    stem = os.path.splitext(stem_and_id)[0] if extension else stem_and_id
    for kind in MediaKind:
        marker = f"{kind.value}-"
        if stem.startswith(marker):
            stem = stem[len(marker):]
            break
    return f"{stem}{extension}"


class MediaResolver:
    """Maps media references to files under the media root directory."""

    def __init__(self, media_dir: str | Path) -> None:
        self.media_dir = Path(media_dir)

    def find_file(self, media: MediaRef) -> Path | None:
        """Return the stored file for *media*, or None if there is none."""
        pattern = os.path.join(
            glob.escape(str(self.media_dir)), "*", f"{media.kind.value}-*.{media.id}.*"
        )
        paths = sorted(glob.glob(pattern))
        if not paths:
            return None
        if len(paths) > 1:
            log_with_context(
                logging.DEBUG,
                f"Found {len(paths)} files for {media.kind.value} {media.id}, using {paths[-1]}",
                media_id=media.id,
            )
        return Path(paths[-1])

    def resolve(self, media: MediaRef) -> MediaResource:
        """Resolve *media* to an attachable local resource.

        Raises:
            MediaNotFoundError: If no file exists for the reference.
        """
        path = self.find_file(media)
        if path is None:
            raise MediaNotFoundError(
                f"No file for {media.kind.value} {media.id} under {self.media_dir}"
            )

        file_name = clean_filename(path)
        mime_type = media.mime_type or mimetypes.guess_type(file_name)[0]
        try:
            size = path.stat().st_size
        except OSError as e:
            raise MediaNotFoundError(f"Unable to stat {path}: {e}") from e

        return MediaResource(
            path=path,
            file_name=file_name,
            extension=path.suffix.lstrip("."),
            size=size,
            mime_type=mime_type,
        )
