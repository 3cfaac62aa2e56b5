from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Optional, Sequence

from core.backup import AttachmentBlob, AttachmentStore, BackupDatabase, BackupSchema, MetadataStoreError
from core.config import get_settings
from exporters.conversations import ConversationRegistry, conversation_directory
from exporters.filenames import build_filename, make_unique_filename
from exporters.filters import compile_filter
from exporters.metadata import FullRecord, MetadataResolver, UnexpectedRowCountError
from exporters.mimetypes import MimeTypes
from exporters.writer import write_attachment

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


class MediaDumpError(Exception):
    """Raised when an export cannot run at all."""


@dataclass(slots=True)
class DumpResult:
    total: int = 0
    written: int = 0
    filtered: int = 0
    skipped: int = 0


def prepare_output_directory(path: Path, overwrite: bool) -> None:
    """Create the export directory, or empty it when overwriting is allowed."""
    if path.exists() and not path.is_dir():
        raise MediaDumpError(f"Output path exists and is not a directory: '{path}'")
    if not path.exists():
        try:
            path.mkdir(parents=True)
        except OSError as exc:
            raise MediaDumpError(f"Failed to create output directory '{path}': {exc}") from exc
        return
    entries = list(path.iterdir())
    if not entries:
        return
    if not overwrite:
        raise MediaDumpError(f"Output directory '{path}' is not empty, use overwrite to clear it")
    logger.info(f"Clearing output directory '{path}'")
    try:
        for entry in entries:
            if entry.is_dir() and not entry.is_symlink():
                shutil.rmtree(entry)
            else:
                entry.unlink()
    except OSError as exc:
        raise MediaDumpError(f"Failed to clear output directory '{path}': {exc}") from exc


class MediaDumpOrchestrator:
    """Write every attachment of a decrypted backup to its own file."""

    def __init__(
        self,
        database: BackupDatabase,
        attachments: AttachmentStore,
        mimetypes: Optional[MimeTypes] = None,
    ):
        self.database = database
        self.attachments = attachments
        self.mimetypes = mimetypes or MimeTypes()

    @classmethod
    def from_backup_directory(cls, backup_dir: Path, database_filename: Optional[str] = None) -> "MediaDumpOrchestrator":
        settings = get_settings()
        backup_dir = Path(backup_dir)
        database_path = backup_dir / (database_filename or settings.export.database_filename)
        return cls(BackupDatabase(database_path), AttachmentStore.from_directory(backup_dir))

    def dump(
        self,
        output_dir: Path,
        *,
        thread_ids: Optional[Iterable[int]] = None,
        date_ranges: Optional[Iterable[Sequence[str]]] = None,
        overwrite: bool = False,
        progress: Optional[ProgressCallback] = None,
    ) -> DumpResult:
        """
        Export all attachments into output_dir.

        Args:
            output_dir: Directory receiving the files
            thread_ids: Only export attachments of these threads
            date_ranges: Only export attachments received within one of these (start, end) pairs
            overwrite: Clear a non-empty output_dir instead of refusing to run
            progress: Called with (done, total) after each attachment

        Returns:
            Counts of written, filtered and skipped attachments

        Raises:
            MediaDumpError: If the backup database is unusable or output_dir cannot be prepared
        """
        output_dir = Path(output_dir)
        logger.info(f"Dumping media to dir '{output_dir}'")
        try:
            self.database.open()
            schema = self.database.schema()
        except MetadataStoreError as exc:
            self.database.close()
            raise MediaDumpError(str(exc)) from exc

        try:
            if not schema.usable:
                raise MediaDumpError(
                    "Database too badly damaged or too old, dumping media is not supported"
                )
            prepare_output_directory(output_dir, overwrite)
            result = self._dump_all(output_dir, schema, thread_ids, date_ranges, progress)
        finally:
            self.database.close()

        logger.info(
            f"done. written: {result.written}, filtered: {result.filtered}, skipped: {result.skipped}"
        )
        return result

    def _dump_all(
        self,
        output_dir: Path,
        schema: BackupSchema,
        thread_ids: Optional[Iterable[int]],
        date_ranges: Optional[Iterable[Sequence[str]]],
        progress: Optional[ProgressCallback],
    ) -> DumpResult:
        compiled = compile_filter(
            thread_ids,
            date_ranges,
            thread_column="thread._id",
            date_column=f"{schema.message_table}.date_received",
        )
        resolver = MetadataResolver(self.database, schema, compiled)
        registry = ConversationRegistry()
        result = DumpResult(total=len(self.attachments))

        for count, blob in enumerate(self.attachments, start=1):
            logger.debug(f"Saving attachments...  {count}/{result.total}")
            try:
                self._dump_one(blob, resolver, registry, output_dir, result)
            finally:
                blob.release()
            if progress:
                progress(count, result.total)
        return result

    def _dump_one(
        self,
        blob: AttachmentBlob,
        resolver: MetadataResolver,
        registry: ConversationRegistry,
        output_dir: Path,
        result: DumpResult,
    ) -> None:
        context = f"rowid: {blob.row_id}, uniqueid: {blob.unique_id}"
        try:
            record = resolver.resolve(blob.row_id, blob.unique_id)
        except UnexpectedRowCountError as exc:
            logger.error(str(exc))
            result.skipped += 1
            return
        except MetadataStoreError as exc:
            raise MediaDumpError(str(exc)) from exc

        if record is None:
            # attachment of a thread or date range that was not selected
            result.filtered += 1
            return

        timestamp = blob.unique_id
        if isinstance(record, FullRecord) and record.date_received is not None:
            timestamp = record.date_received

        try:
            filename = build_filename(
                record.file_name, record.content_type, timestamp, record.display_order, self.mimetypes
            )
        except (OverflowError, ValueError, TypeError, OSError) as exc:
            logger.error(f"Failed to build a file name from timestamp {timestamp} ({context}): {exc}")
            result.skipped += 1
            return

        try:
            target_dir = conversation_directory(output_dir, registry, record)
        except OSError as exc:
            logger.error(f"Failed to create directory for attachment ({context}): {exc}")
            result.skipped += 1
            return
        except (ValueError, TypeError) as exc:
            logger.error(f"Unusable conversation details for attachment ({context}): {exc}")
            result.skipped += 1
            return

        try:
            filename = make_unique_filename(target_dir, filename)
        except OSError as exc:
            logger.error(f"getting unique filename for '{target_dir / filename}' ({context}): {exc}")
            result.skipped += 1
            return

        path = target_dir / filename
        try:
            written = write_attachment(path, blob, timestamp)
        except OSError as exc:
            logger.error(f"Failed to write '{path}' ({context}): {exc}")
            written = False
        if not written:
            result.skipped += 1
            return
        logger.debug(f"Saved '{path}'")
        result.written += 1
