"""Attachment replication from a source issue to its clones."""

from __future__ import annotations

import io
import logging
import zipfile
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import TYPE_CHECKING, Final

from .exceptions import AttachmentError
from .models import AttachmentReport

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .models import SourceAttachment
    from .protocols import IssueTracker

logger: logging.Logger = logging.getLogger(__name__)

# Images are shown inline through the description's media nodes
IMAGE_EXTENSIONS: Final[frozenset[str]] = frozenset({"png", "jpg", "jpeg", "gif", "bmp", "svg", "webp"})

# Jira refuses or quarantines these, so they are uploaded inside a zip
ZIPPED_EXTENSIONS: Final[frozenset[str]] = frozenset(
    {"msg", "eml", "exe", "dll", "bat", "cmd", "sh", "ini", "sys", "db", "log"}
)


def file_extension(filename: str) -> str:
    """Lowercase extension without the dot, "" if there is none."""
    return PurePosixPath(filename).suffix.lstrip(".").lower()


def is_inline_image(filename: str) -> bool:
    return file_extension(filename) in IMAGE_EXTENSIONS


def zip_single_file(filename: str, content: bytes) -> bytes:
    """Wrap content in a zip archive holding one entry named filename."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, mode="w", compression=zipfile.ZIP_DEFLATED) as archive:
        archive.writestr(filename, content)
    return buffer.getvalue()


@dataclass(frozen=True)
class PreparedUpload:
    """A downloaded attachment, ready to be uploaded."""

    filename: str
    content: bytes
    zipped: bool = False


def prepare_upload(filename: str, content: bytes) -> PreparedUpload:
    """Zip the content when the tracker does not take the file type as-is."""
    if file_extension(filename) in ZIPPED_EXTENSIONS:
        return PreparedUpload(filename=f"{filename}.zip", content=zip_single_file(filename, content), zipped=True)
    return PreparedUpload(filename=filename, content=content)


class AttachmentReplicator:
    """Downloads the source issue's attachments and uploads them to a clone."""

    _tracker: IssueTracker

    def __init__(self, tracker: IssueTracker) -> None:
        self._tracker = tracker

    def replicate(self, attachments: Iterable[SourceAttachment], issue_key: str) -> AttachmentReport:
        """Copy every non-image attachment to issue_key.

        Each attachment is handled on its own: a failed download or upload is
        logged and recorded, and the next attachment is processed.

        Args:
            attachments: Attachments of the source issue
            issue_key: Key of the clone

        Returns:
            AttachmentReport listing uploaded, skipped and failed files
        """
        report = AttachmentReport()

        for attachment in attachments:
            filename = attachment.filename
            if is_inline_image(filename):
                logger.debug(f"Skipping image {filename}, carried by the description")
                report.skipped.append(filename)
                continue

            try:
                content = self._tracker.download(attachment.content_url)
                if not content:
                    logger.warning(f"Skipping empty attachment {filename} for {issue_key}")
                    report.skipped.append(filename)
                    continue

                upload = prepare_upload(filename, content)
                if upload.zipped:
                    logger.debug(f"Zipping {filename} as {upload.filename}")
                self._tracker.upload(issue_key, upload.filename, upload.content)
            except AttachmentError as e:
                logger.error(f"Failed to copy attachment {filename} to {issue_key}: {e}")  # noqa: TRY400
                report.failed.append((filename, str(e)))
                continue

            report.uploaded.append(upload.filename)
            logger.debug(f"Uploaded {upload.filename} to {issue_key} ({len(upload.content)} bytes)")

        return report
