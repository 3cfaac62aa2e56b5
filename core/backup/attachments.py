from __future__ import annotations

import logging
import re
from collections.abc import Iterator
from pathlib import Path
from typing import Dict, Tuple

logger = logging.getLogger(__name__)

ATTACHMENT_FILE_PATTERN = re.compile(r"^Attachment_(?P<row_id>\d+)_(?P<unique_id>-?\d+)\.bin$")

AttachmentKey = Tuple[int, int]


class AttachmentReleasedError(RuntimeError):
    """Raised when the data of an already released attachment is requested."""


class AttachmentBlob:
    """Payload of one attachment, loaded on first access and freed by release()."""

    __slots__ = ("row_id", "unique_id", "source", "_data", "_size", "_released")

    def __init__(
        self,
        row_id: int,
        unique_id: int,
        *,
        data: bytes | None = None,
        source: Path | None = None,
    ):
        if data is None and source is None:
            raise ValueError("AttachmentBlob needs either data or a source file")
        self.row_id = row_id
        self.unique_id = unique_id
        self.source = source
        self._data = data
        self._size = len(data) if data is not None else None
        self._released = False

    @property
    def key(self) -> AttachmentKey:
        return (self.row_id, self.unique_id)

    @property
    def released(self) -> bool:
        return self._released

    @property
    def size(self) -> int:
        if self._size is None:
            # size is known from the payload file without reading it
            self._size = self.source.stat().st_size  # type: ignore[union-attr]
        return self._size

    @property
    def data(self) -> bytes:
        if self._released:
            raise AttachmentReleasedError(
                f"Attachment already released (rowid: {self.row_id}, uniqueid: {self.unique_id})"
            )
        if self._data is None:
            self._data = self.source.read_bytes()  # type: ignore[union-attr]
            self._size = len(self._data)
        return self._data

    def release(self) -> None:
        self._data = None
        self._released = True

    def __repr__(self) -> str:
        return f"AttachmentBlob(row_id={self.row_id}, unique_id={self.unique_id}, released={self._released})"


class AttachmentStore:
    """Ordered set of attachment blobs keyed by (row id, unique id)."""

    def __init__(self) -> None:
        self._blobs: Dict[AttachmentKey, AttachmentBlob] = {}

    @classmethod
    def from_directory(cls, directory: Path) -> "AttachmentStore":
        store = cls()
        if not directory.is_dir():
            return store
        for entry in sorted(directory.iterdir()):
            match = ATTACHMENT_FILE_PATTERN.match(entry.name)
            if not match or not entry.is_file():
                continue
            store.add(
                AttachmentBlob(
                    int(match.group("row_id")),
                    int(match.group("unique_id")),
                    source=entry,
                )
            )
        logger.info(f"Found {len(store)} attachment payloads in {directory}")
        return store

    def add(self, blob: AttachmentBlob) -> None:
        if blob.key in self._blobs:
            raise ValueError(f"Duplicate attachment (rowid: {blob.row_id}, uniqueid: {blob.unique_id})")
        self._blobs[blob.key] = blob

    def __iter__(self) -> Iterator[AttachmentBlob]:
        return iter(self._blobs.values())

    def __len__(self) -> int:
        return len(self._blobs)
