from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, validator

from core.db.models import ExportStatus


class BackupModel(BaseModel):
    name: str
    attachment_count: int
    has_database: bool


class BackupListResponse(BaseModel):
    backups: list[BackupModel]
    base_directory: str


class ExportRequest(BaseModel):
    backup_name: str
    thread_ids: list[int] = Field(default_factory=list)
    date_ranges: list[tuple[str, str]] = Field(default_factory=list)
    overwrite: Optional[bool] = None

    @validator("backup_name")
    def ensure_plain_name(cls, v: str) -> str:
        if not v or v in {".", ".."} or "/" in v or "\\" in v:
            raise ValueError("backup_name must be a directory name below the backup base path.")
        return v


class ExportModel(BaseModel):
    id: uuid.UUID
    backup_name: str
    output_path: str
    status: ExportStatus
    thread_ids: Optional[list[int]] = None
    date_ranges: Optional[list[tuple[str, str]]] = None
    overwrite: bool
    total: Optional[int] = None
    written: Optional[int] = None
    filtered: Optional[int] = None
    skipped: Optional[int] = None
    error: Optional[str] = None
    created_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ExportListResponse(BaseModel):
    exports: list[ExportModel]
