from .attachments import AttachmentBlob, AttachmentReleasedError, AttachmentStore
from .database import BackupDatabase, BackupSchema, MetadataStoreError, discover_schema

__all__ = [
    "AttachmentBlob",
    "AttachmentReleasedError",
    "AttachmentStore",
    "BackupDatabase",
    "BackupSchema",
    "MetadataStoreError",
    "discover_schema",
]
