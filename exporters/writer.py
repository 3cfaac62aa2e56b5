from __future__ import annotations

import logging
import os
from pathlib import Path

from core.backup.attachments import AttachmentBlob

from .base import millis_to_seconds

logger = logging.getLogger(__name__)


def set_file_timestamp(path: Path, timestamp_ms: int) -> bool:
    seconds = millis_to_seconds(timestamp_ms)
    try:
        os.utime(path, (seconds, seconds))
    except (OSError, OverflowError, ValueError) as exc:
        logger.warning(f"Failed to set timestamp of '{path}': {exc}")
        return False
    return True


def write_attachment(path: Path, blob: AttachmentBlob, timestamp_ms: int) -> bool:
    """Write the blob to a new file at `path` and give it the message's timestamp.

    The blob is released whatever the outcome. Returns True when all data
    was written.
    """
    context = f"rowid: {blob.row_id}, uniqueid: {blob.unique_id}"
    try:
        try:
            data = blob.data
        except OSError as exc:
            logger.error(f"Failed to read attachment data ({context}): {exc}")
            return False

        try:
            handle = path.open("xb")
        except OSError as exc:
            logger.error(f"Failed to open file for writing: '{path}' ({context}): {exc}")
            return False

        with handle:
            try:
                written = handle.write(data)
            except OSError as exc:
                logger.error(f"Failed to write data to file: '{path}' ({context}): {exc}")
                return False
        if written != blob.size:
            logger.error(f"Failed to write data to file: '{path}' ({context}, {written} of {blob.size} bytes)")
            return False
    finally:
        blob.release()

    # mtime is set only after the handle is closed, closing would bump it again
    set_file_timestamp(path, timestamp_ms)
    return True
