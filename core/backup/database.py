from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Sequence

logger = logging.getLogger(__name__)


class MetadataStoreError(RuntimeError):
    """Raised when the backup database cannot be opened or queried."""


def available_columns(conn: sqlite3.Connection, table: str) -> set[str]:
    cursor = conn.execute(f"PRAGMA table_info({table})")
    return {row[1] for row in cursor.fetchall()}


def table_exists(conn: sqlite3.Connection, table: str) -> bool:
    cursor = conn.execute(
        "SELECT 1 FROM sqlite_master WHERE type='table' AND name=? COLLATE NOCASE",
        (table,),
    )
    return cursor.fetchone() is not None


def _first_present(columns: set[str], candidates: Sequence[str]) -> str | None:
    for candidate in candidates:
        if candidate in columns:
            return candidate
    return None


@dataclass(slots=True, frozen=True)
class BackupSchema:
    """Table and column names of one backup database, as far as they exist."""

    has_part_table: bool
    has_display_order: bool
    message_table: str
    message_type_column: str | None
    thread_recipient_column: str | None
    recipient_system_name_column: str | None
    recipient_profile_given_name_column: str | None
    has_profile_joined_name: bool
    full: bool

    @property
    def usable(self) -> bool:
        return self.has_part_table and self.has_display_order


def discover_schema(conn: sqlite3.Connection) -> BackupSchema:
    has_part = table_exists(conn, "part")
    has_display_order = has_part and "display_order" in available_columns(conn, "part")

    # newer databases renamed 'mms' to 'message' and 'msg_box' to 'type'
    message_table = "message" if table_exists(conn, "message") else "mms"
    message_columns = available_columns(conn, message_table) if table_exists(conn, message_table) else set()
    thread_columns = available_columns(conn, "thread") if table_exists(conn, "thread") else set()
    recipient_columns = available_columns(conn, "recipient") if table_exists(conn, "recipient") else set()

    message_type_column = _first_present(message_columns, ("type", "msg_box"))
    thread_recipient_column = _first_present(thread_columns, ("recipient_id", "thread_recipient_id", "recipient_ids"))

    full = (
        table_exists(conn, message_table)
        and table_exists(conn, "thread")
        and table_exists(conn, "groups")
        and table_exists(conn, "recipient")
        and message_type_column is not None
        and thread_recipient_column is not None
        and "date_received" in message_columns
    )

    return BackupSchema(
        has_part_table=has_part,
        has_display_order=has_display_order,
        message_table=message_table,
        message_type_column=message_type_column,
        thread_recipient_column=thread_recipient_column,
        recipient_system_name_column=_first_present(
            recipient_columns, ("system_joined_name", "system_display_name")
        ),
        recipient_profile_given_name_column=_first_present(
            recipient_columns, ("profile_given_name", "signal_profile_name")
        ),
        has_profile_joined_name="profile_joined_name" in recipient_columns,
        full=full,
    )


class BackupDatabase:
    """Read-only access to the SQLite database of a decrypted backup."""

    def __init__(self, path: Path | str):
        self.path = Path(path)
        self._conn: sqlite3.Connection | None = None

    def open(self) -> None:
        if self._conn is not None:
            return
        if not self.path.is_file():
            raise MetadataStoreError(f"Backup database not found: {self.path}")
        try:
            conn = sqlite3.connect(f"{self.path.resolve().as_uri()}?mode=ro", uri=True)
        except sqlite3.Error as exc:
            raise MetadataStoreError(str(exc)) from exc
        conn.row_factory = sqlite3.Row
        self._conn = conn

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> "BackupDatabase":
        self.open()
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @property
    def connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise MetadataStoreError("Backup database is not open")
        return self._conn

    def schema(self) -> BackupSchema:
        try:
            schema = discover_schema(self.connection)
        except sqlite3.Error as exc:
            raise MetadataStoreError(str(exc)) from exc
        logger.debug(f"Discovered schema of {self.path}: {schema}")
        return schema

    def query(self, sql: str, params: Sequence[Any] = ()) -> list[sqlite3.Row]:
        try:
            return self.connection.execute(sql, tuple(params)).fetchall()
        except sqlite3.Error as exc:
            raise MetadataStoreError(f"{exc} (query: {sql})") from exc
