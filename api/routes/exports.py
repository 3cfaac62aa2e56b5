import logging
import uuid
from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException, status
from rq import Queue
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api import schemas
from api.dependencies import get_db_session, get_export_queue
from api.security import require_api_token
from core.backup import AttachmentStore
from core.config import get_settings
from core.db.models import ExportStatus, MediaExport

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/exports", tags=["exports"], dependencies=[Depends(require_api_token)])
settings = get_settings()


def _backup_root() -> Path:
    return Path(settings.backup_paths.base_path).expanduser()


@router.get("/backups", response_model=schemas.BackupListResponse)
async def list_backups():
    root = _backup_root()
    backups = []
    if root.is_dir():
        for entry in sorted(root.iterdir()):
            if not entry.is_dir():
                continue
            backups.append(
                schemas.BackupModel(
                    name=entry.name,
                    attachment_count=len(AttachmentStore.from_directory(entry)),
                    has_database=(entry / settings.export.database_filename).is_file(),
                )
            )
    return schemas.BackupListResponse(backups=backups, base_directory=str(root))


@router.post("", response_model=schemas.ExportModel, status_code=status.HTTP_202_ACCEPTED)
async def create_export(
    request: schemas.ExportRequest,
    session: AsyncSession = Depends(get_db_session),
    queue: Queue = Depends(get_export_queue),
):
    backup_path = _backup_root() / request.backup_name
    if not (backup_path / settings.export.database_filename).is_file():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Decrypted backup not found.")

    export = MediaExport(
        id=uuid.uuid4(),
        backup_name=request.backup_name,
        backup_path=str(backup_path),
        output_path=str(Path(settings.backup_paths.output_path).expanduser() / request.backup_name),
        status=ExportStatus.QUEUED,
        thread_ids=request.thread_ids,
        date_ranges=[list(pair) for pair in request.date_ranges],
        overwrite=settings.export.overwrite if request.overwrite is None else request.overwrite,
    )
    session.add(export)
    await session.commit()

    from worker.tasks import dump_media_job

    queue.enqueue(dump_media_job, str(export.id))
    logger.info(f"Queued media export {export.id} for backup {request.backup_name}")
    return schemas.ExportModel.model_validate(export)


@router.get("", response_model=schemas.ExportListResponse)
async def list_exports(session: AsyncSession = Depends(get_db_session)):
    result = await session.scalars(select(MediaExport).order_by(MediaExport.created_at.desc()))
    return schemas.ExportListResponse(exports=[schemas.ExportModel.model_validate(row) for row in result])


@router.get("/{export_id}", response_model=schemas.ExportModel)
async def get_export(export_id: uuid.UUID, session: AsyncSession = Depends(get_db_session)):
    export = await session.get(MediaExport, export_id)
    if not export:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Export not found.")
    return schemas.ExportModel.model_validate(export)
