from __future__ import annotations

import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Callable

import pytest

from core.backup import AttachmentStore, BackupDatabase

FULL_SCHEMA = """
CREATE TABLE part (_id INTEGER, mid INTEGER, ct TEXT, file_name TEXT, display_order INTEGER DEFAULT 0, unique_id INTEGER);
CREATE TABLE message (_id INTEGER PRIMARY KEY, thread_id INTEGER, date_received INTEGER, type INTEGER);
CREATE TABLE thread (_id INTEGER PRIMARY KEY, recipient_id INTEGER);
CREATE TABLE recipient (
    _id INTEGER PRIMARY KEY,
    group_id TEXT,
    system_joined_name TEXT,
    profile_joined_name TEXT,
    profile_given_name TEXT
);
CREATE TABLE groups (_id INTEGER PRIMARY KEY, group_id TEXT, title TEXT);
"""

MINIMAL_SCHEMA = """
CREATE TABLE part (_id INTEGER, mid INTEGER, ct TEXT, file_name TEXT, display_order INTEGER DEFAULT 0, unique_id INTEGER);
"""

# recipient table of an old backup without any name columns
NAMELESS_RECIPIENT_SCHEMA = """
CREATE TABLE part (_id INTEGER, mid INTEGER, ct TEXT, file_name TEXT, display_order INTEGER DEFAULT 0, unique_id INTEGER);
CREATE TABLE message (_id INTEGER PRIMARY KEY, thread_id INTEGER, date_received INTEGER, type INTEGER);
CREATE TABLE thread (_id INTEGER PRIMARY KEY, recipient_id INTEGER);
CREATE TABLE recipient (_id INTEGER PRIMARY KEY, group_id TEXT);
CREATE TABLE groups (_id INTEGER PRIMARY KEY, group_id TEXT, title TEXT);
"""

OUTGOING = 10485783  # secure + push + sent
INCOMING = 10485780  # secure + push + inbox


def millis(*args: int) -> int:
    """Local-time datetime components to epoch milliseconds."""
    return round(datetime(*args).timestamp() * 1000)


class BackupBuilder:
    """Writes a decrypted backup directory: database.sqlite plus Attachment_*.bin payloads."""

    def __init__(self, root: Path, schema: str):
        self.root = root
        self.root.mkdir(parents=True, exist_ok=True)
        self.database_path = root / "database.sqlite"
        conn = sqlite3.connect(self.database_path)
        conn.executescript(schema)
        conn.commit()
        conn.close()

    def execute(self, sql: str, params: tuple) -> None:
        conn = sqlite3.connect(self.database_path)
        try:
            conn.execute(sql, params)
            conn.commit()
        finally:
            conn.close()

    def add_group(self, group_id: str, title: str | None) -> None:
        self.execute("INSERT INTO groups (group_id, title) VALUES (?, ?)", (group_id, title))

    def add_recipient(
        self,
        recipient_id: int,
        *,
        group_id: str | None = None,
        system_joined_name: str | None = None,
        profile_joined_name: str | None = None,
        profile_given_name: str | None = None,
    ) -> None:
        self.execute(
            "INSERT INTO recipient (_id, group_id, system_joined_name, profile_joined_name, profile_given_name) "
            "VALUES (?, ?, ?, ?, ?)",
            (recipient_id, group_id, system_joined_name, profile_joined_name, profile_given_name),
        )

    def add_thread(self, thread_id: int, recipient_id: int) -> None:
        self.execute("INSERT INTO thread (_id, recipient_id) VALUES (?, ?)", (thread_id, recipient_id))

    def add_message(self, message_id: int, thread_id: int, date_received: int | None, message_type: int | str = INCOMING) -> None:
        self.execute(
            "INSERT INTO message (_id, thread_id, date_received, type) VALUES (?, ?, ?, ?)",
            (message_id, thread_id, date_received, message_type),
        )

    def add_part(
        self,
        row_id: int,
        unique_id: int,
        *,
        mid: int | None = None,
        ct: str | None = "image/jpeg",
        file_name: str | None = None,
        display_order: int | str | None = 0,
    ) -> None:
        self.execute(
            "INSERT INTO part (_id, mid, ct, file_name, display_order, unique_id) VALUES (?, ?, ?, ?, ?, ?)",
            (row_id, mid, ct, file_name, display_order, unique_id),
        )

    def add_payload(self, row_id: int, unique_id: int, data: bytes) -> Path:
        path = self.root / f"Attachment_{row_id}_{unique_id}.bin"
        path.write_bytes(data)
        return path

    def add_attachment(self, row_id: int, unique_id: int, data: bytes, **part) -> None:
        self.add_part(row_id, unique_id, **part)
        self.add_payload(row_id, unique_id, data)

    def store(self) -> AttachmentStore:
        return AttachmentStore.from_directory(self.root)

    def database(self) -> BackupDatabase:
        return BackupDatabase(self.database_path)


@pytest.fixture
def make_backup(tmp_path: Path) -> Callable[..., BackupBuilder]:
    def _factory(name: str = "backup", *, full: bool = True, schema: str | None = None) -> BackupBuilder:
        if schema is None:
            schema = FULL_SCHEMA if full else MINIMAL_SCHEMA
        return BackupBuilder(tmp_path / name, schema)

    return _factory


@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    return tmp_path / "export"
