from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path

from sqlalchemy import select

from core.db.models import ExportStatus, MediaExport
from core.db.session import get_session_factory
from core.services import MediaDumpError, MediaDumpOrchestrator

logger = logging.getLogger(__name__)


async def _dump_media_job(export_id: str) -> None:
    async with get_session_factory()() as session:
        export = await session.scalar(select(MediaExport).where(MediaExport.id == uuid.UUID(export_id)))
        if not export:
            raise RuntimeError(f"Unknown export {export_id}")

        export.status = ExportStatus.RUNNING
        export.started_at = datetime.now(timezone.utc)
        export.error = None
        await session.flush()
        await session.commit()

        orchestrator = MediaDumpOrchestrator.from_backup_directory(Path(export.backup_path))
        export.total = len(orchestrator.attachments)
        await session.commit()

        try:
            result = orchestrator.dump(
                Path(export.output_path),
                thread_ids=export.thread_ids or None,
                date_ranges=[tuple(pair) for pair in export.date_ranges or []],
                overwrite=export.overwrite,
            )
        except MediaDumpError as exc:
            logger.error(f"Export {export_id} failed: {exc}")
            export.status = ExportStatus.FAILED
            export.error = str(exc)
            export.finished_at = datetime.now(timezone.utc)
            await session.commit()
            return
        except Exception as exc:
            logger.exception(f"Export {export_id} crashed")
            export.status = ExportStatus.FAILED
            export.error = f"{type(exc).__name__}: {exc}"
            export.finished_at = datetime.now(timezone.utc)
            await session.commit()
            raise

        export.written = result.written
        export.filtered = result.filtered
        export.skipped = result.skipped
        export.status = ExportStatus.COMPLETED
        export.finished_at = datetime.now(timezone.utc)
        await session.commit()
        logger.info(f"Export {export_id} completed: {result.written}/{result.total} attachments written")


def dump_media_job(export_id: str) -> None:
    asyncio.run(_dump_media_job(export_id))
