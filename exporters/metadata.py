from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Union

from core.backup.database import BackupDatabase, BackupSchema

from .filters import CompiledFilter

logger = logging.getLogger(__name__)

# base message types that mark a message as sent by the backup owner
OUTGOING_MESSAGE_TYPES = frozenset({2, 11, 21, 22, 23, 24, 25, 26})
BASE_TYPE_MASK = 0x1F


def is_outgoing(message_type: int) -> bool:
    return (message_type & BASE_TYPE_MASK) in OUTGOING_MESSAGE_TYPES


def _as_int(value: Any) -> int | None:
    """Column value as int; None for NULL and for values that are not whole numbers."""
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def _as_text(value: Any) -> str | None:
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)


class UnexpectedRowCountError(LookupError):
    """Raised when an attachment does not resolve to exactly one metadata row."""

    def __init__(self, row_id: int, unique_id: int, count: int):
        super().__init__(f"Unexpected number of results: {count} (rowid: {row_id}, uniqueid: {unique_id})")
        self.row_id = row_id
        self.unique_id = unique_id
        self.count = count


@dataclass(slots=True)
class MinimalRecord:
    content_type: str | None
    file_name: str | None
    display_order: int


@dataclass(slots=True)
class FullRecord(MinimalRecord):
    date_received: int | None
    message_type: int | None
    thread_id: int | None
    chatpartner: str | None

    @property
    def outgoing(self) -> bool:
        return self.message_type is not None and is_outgoing(self.message_type)

    @property
    def has_conversation(self) -> bool:
        return self.thread_id is not None and self.chatpartner is not None and self.message_type is not None


AttachmentRecord = Union[MinimalRecord, FullRecord]


def _minimal_query() -> str:
    return (
        "SELECT part.ct AS ct, part.file_name AS file_name, part.display_order AS display_order "
        "FROM part WHERE part._id = ? AND part.unique_id = ?"
    )


def _full_query(schema: BackupSchema) -> str:
    message = schema.message_table
    name_columns = ["groups.title"]
    if schema.recipient_system_name_column:
        name_columns.append(f"recipient.{schema.recipient_system_name_column}")
    if schema.has_profile_joined_name:
        name_columns.append("recipient.profile_joined_name")
    if schema.recipient_profile_given_name_column:
        name_columns.append(f"recipient.{schema.recipient_profile_given_name_column}")
    # COALESCE needs at least two arguments
    chatpartner = f"COALESCE({', '.join(name_columns)})" if len(name_columns) > 1 else name_columns[0]
    return (
        "SELECT part.ct AS ct, part.file_name AS file_name, part.display_order AS display_order, "
        f"{message}.date_received AS date_received, {message}.{schema.message_type_column} AS message_type, "
        f"{message}.thread_id AS thread_id, "
        f"{chatpartner} AS chatpartner "
        "FROM part "
        f"LEFT JOIN {message} ON part.mid = {message}._id "
        f"LEFT JOIN thread ON {message}.thread_id = thread._id "
        f"LEFT JOIN recipient ON thread.{schema.thread_recipient_column} = recipient._id "
        "LEFT JOIN groups ON recipient.group_id = groups.group_id "
        "WHERE part._id = ? AND part.unique_id = ?"
    )


class MetadataResolver:
    """Look up the metadata row belonging to one attachment."""

    def __init__(self, database: BackupDatabase, schema: BackupSchema, compiled_filter: CompiledFilter):
        self.database = database
        self.full = schema.full
        self.filter = compiled_filter
        if self.full:
            self.query = _full_query(schema) + compiled_filter.clause
            self.params = compiled_filter.params
        else:
            if compiled_filter.active:
                logger.warning(
                    "Thread and date filters need message and thread tables, which this backup lacks; "
                    "exporting without filters"
                )
            self.query = _minimal_query()
            self.params = ()
        logger.debug(f"Dump media query: {self.query}")

    @property
    def filtering(self) -> bool:
        return self.full and self.filter.active

    def resolve(self, row_id: int, unique_id: int) -> AttachmentRecord | None:
        """Return the record, or None when active filters exclude the attachment."""
        rows = self.database.query(self.query, (row_id, unique_id, *self.params))
        if not rows and self.filtering:
            return None
        if len(rows) != 1:
            raise UnexpectedRowCountError(row_id, unique_id, len(rows))
        row = rows[0]
        display_order = _as_int(row["display_order"])
        if display_order is None:
            if row["display_order"] is not None:
                logger.warning(
                    f"Ignoring display order {row['display_order']!r} (rowid: {row_id}, uniqueid: {unique_id})"
                )
            display_order = 0
        if not self.full:
            return MinimalRecord(
                content_type=_as_text(row["ct"]),
                file_name=_as_text(row["file_name"]),
                display_order=display_order,
            )
        # damaged values fall back to None, which writes the attachment without a conversation
        return FullRecord(
            content_type=_as_text(row["ct"]),
            file_name=_as_text(row["file_name"]),
            display_order=display_order,
            date_received=_as_int(row["date_received"]),
            message_type=_as_int(row["message_type"]),
            thread_id=_as_int(row["thread_id"]),
            chatpartner=_as_text(row["chatpartner"]),
        )
