from __future__ import annotations

import enum
import uuid
from datetime import datetime

from sqlalchemy import BigInteger, Boolean, DateTime, Enum, JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from core.db.base import Base


class ExportStatus(str, enum.Enum):
    QUEUED = "queued"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class MediaExport(Base):
    __tablename__ = "media_exports"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    backup_name: Mapped[str] = mapped_column(String(255), index=True)
    backup_path: Mapped[str] = mapped_column(String(1024))
    output_path: Mapped[str] = mapped_column(String(1024))
    status: Mapped[ExportStatus] = mapped_column(
        Enum(
            ExportStatus,
            native_enum=False,
            create_constraint=True,
            values_callable=lambda statuses: [status.value for status in statuses],
        ), default=ExportStatus.QUEUED
    )
    thread_ids: Mapped[list | None] = mapped_column(JSON, nullable=True)
    date_ranges: Mapped[list | None] = mapped_column(JSON, nullable=True)
    overwrite: Mapped[bool] = mapped_column(Boolean, default=False)
    total: Mapped[int | None] = mapped_column(BigInteger, nullable=True, default=0)
    written: Mapped[int | None] = mapped_column(BigInteger, nullable=True, default=0)
    filtered: Mapped[int | None] = mapped_column(BigInteger, nullable=True, default=0)
    skipped: Mapped[int | None] = mapped_column(BigInteger, nullable=True, default=0)
    error: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    finished_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
