from __future__ import annotations

import logging
import re
from pathlib import Path

from .base import local_datetime, sanitize_filename
from .mimetypes import MimeTypes

logger = logging.getLogger(__name__)

FILENAME_TIME_FORMAT = "signal-%Y-%m-%d-%H%M%S"
FALLBACK_EXTENSION = "attach"
_NUMBERED_STEM = re.compile(r"^(?P<stem>.*) \((?P<counter>\d+)\)$")


class UniqueFilenameError(OSError):
    """Raised when no unique file name can be determined for a directory."""


def synthesize_filename(
    timestamp_ms: int,
    display_order: int,
    content_type: str | None,
    mimetypes: MimeTypes,
) -> str:
    stem = local_datetime(timestamp_ms).strftime(FILENAME_TIME_FORMAT)
    if display_order:
        stem = f"{stem}_{display_order}"
    extension = mimetypes.get_extension(content_type)
    if not extension:
        extension = FALLBACK_EXTENSION
        logger.warning(f"mimetype not found in database ({content_type}) -> saving as '{stem}.{extension}'")
    return f"{stem}.{extension}"


def build_filename(
    file_name: str | None,
    content_type: str | None,
    timestamp_ms: int,
    display_order: int,
    mimetypes: MimeTypes,
) -> str:
    """Use the stored file name when it is usable, otherwise make one up from the timestamp."""
    stored = sanitize_filename(file_name)
    if stored:
        return stored
    return synthesize_filename(timestamp_ms, display_order, content_type, mimetypes)


def make_unique_filename(directory: Path, filename: str) -> str:
    """Return `filename`, or 'stem (N).ext' with the lowest free N, for `directory`.

    A candidate that already ends in ' (N)' continues counting from N+1.
    """
    if not directory.is_dir():
        raise UniqueFilenameError(f"Not a directory: '{directory}'")
    if not _exists(directory / filename):
        return filename

    candidate = Path(filename)
    stem, extension = candidate.stem, candidate.suffix
    counter = 2
    match = _NUMBERED_STEM.match(stem)
    if match:
        stem = match.group("stem")
        counter = int(match.group("counter")) + 1

    while True:
        unique = f"{stem} ({counter}){extension}"
        if not _exists(directory / unique):
            return unique
        counter += 1


def _exists(path: Path) -> bool:
    # dangling symlinks count as taken
    return path.exists() or path.is_symlink()
