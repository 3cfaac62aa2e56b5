from __future__ import annotations

import pytest

from exporters.filters import NO_FILTER, compile_filter
from exporters.metadata import (
    FullRecord,
    MetadataResolver,
    MinimalRecord,
    UnexpectedRowCountError,
    is_outgoing,
)
from tests.conftest import OUTGOING


@pytest.fixture
def full_backup(make_backup):
    backup = make_backup()
    backup.add_group("g1", "Family")
    backup.add_recipient(1, group_id="g1", system_joined_name="ignored")
    backup.add_recipient(2, system_joined_name="Alice Smith", profile_joined_name="alice")
    backup.add_recipient(3, profile_joined_name="bob b", profile_given_name="Bob")
    backup.add_recipient(4, profile_given_name="Carol")
    for thread_id in (1, 2, 3, 4):
        backup.add_thread(thread_id, thread_id)
        backup.add_message(thread_id * 10, thread_id, 1_700_000_000_000 + thread_id, OUTGOING)
        backup.add_part(thread_id, 100 + thread_id, mid=thread_id * 10, display_order=thread_id)
    return backup


def _resolver(backup, compiled=NO_FILTER):
    database = backup.database()
    database.open()
    return MetadataResolver(database, database.schema(), compiled)


def test_full_record_resolves_conversation_details(full_backup):
    record = _resolver(full_backup).resolve(2, 102)
    assert isinstance(record, FullRecord)
    assert record.content_type == "image/jpeg"
    assert record.display_order == 2
    assert record.date_received == 1_700_000_000_002
    assert record.thread_id == 2
    assert record.outgoing is True
    assert record.has_conversation is True


@pytest.mark.parametrize(
    "row_id, chatpartner",
    [(1, "Family"), (2, "Alice Smith"), (3, "bob b"), (4, "Carol")],
)
def test_chatpartner_priority(full_backup, row_id, chatpartner):
    assert _resolver(full_backup).resolve(row_id, 100 + row_id).chatpartner == chatpartner


def test_missing_row_without_filters_is_an_error(full_backup):
    with pytest.raises(UnexpectedRowCountError) as excinfo:
        _resolver(full_backup).resolve(99, 999)
    assert excinfo.value.count == 0
    assert "rowid: 99" in str(excinfo.value)


def test_missing_row_with_filters_means_excluded(full_backup):
    resolver = _resolver(full_backup, compile_filter([1]))
    assert resolver.resolve(2, 102) is None
    assert resolver.resolve(1, 101).thread_id == 1


def test_duplicate_rows_are_an_error(full_backup):
    full_backup.add_part(1, 101, mid=10)
    with pytest.raises(UnexpectedRowCountError) as excinfo:
        _resolver(full_backup).resolve(1, 101)
    assert excinfo.value.count == 2


def test_minimal_schema_yields_minimal_records(make_backup):
    backup = make_backup(full=False)
    backup.add_part(1, 101, ct="video/mp4", file_name="clip.mp4", display_order=None)
    record = _resolver(backup).resolve(1, 101)
    assert type(record) is MinimalRecord
    assert record.file_name == "clip.mp4"
    assert record.display_order == 0


def test_minimal_schema_ignores_filters(make_backup, caplog):
    backup = make_backup(full=False)
    backup.add_part(1, 101)
    resolver = _resolver(backup, compile_filter([42]))
    assert resolver.filtering is False
    assert isinstance(resolver.resolve(1, 101), MinimalRecord)
    assert any("exporting without filters" in record.getMessage() for record in caplog.records)


@pytest.mark.parametrize(
    "message_type, expected",
    [(23, True), (21, True), (2, True), (11, True), (20, False), (1, False), (OUTGOING, True), (10485780, False)],
)
def test_is_outgoing(message_type, expected):
    assert is_outgoing(message_type) is expected


def test_damaged_values_are_dropped(make_backup, caplog):
    backup = make_backup()
    backup.add_recipient(1, system_joined_name="Alice")
    backup.add_thread(1, 1)
    backup.add_message(10, 1, 1_700_000_000_000, "garbage")
    backup.add_part(1, 101, mid=10, display_order="abc")

    record = _resolver(backup).resolve(1, 101)

    assert record.display_order == 0
    assert record.message_type is None
    assert record.chatpartner == "Alice"
    assert record.has_conversation is False
    assert "Ignoring display order 'abc'" in caplog.text


def test_numeric_text_values_are_converted(make_backup):
    backup = make_backup(full=False)
    backup.add_part(1, 101, display_order=" 4")
    assert _resolver(backup).resolve(1, 101).display_order == 4


def test_group_title_alone_names_the_conversation(make_backup):
    from tests.conftest import NAMELESS_RECIPIENT_SCHEMA

    backup = make_backup(schema=NAMELESS_RECIPIENT_SCHEMA)
    backup.add_group("g1", "Family")
    backup.execute("INSERT INTO recipient (_id, group_id) VALUES (?, ?)", (1, "g1"))
    backup.add_thread(1, 1)
    backup.add_message(10, 1, 1_700_000_000_000)
    backup.add_part(1, 101, mid=10)

    resolver = _resolver(backup)

    assert "COALESCE" not in resolver.query
    assert resolver.resolve(1, 101).chatpartner == "Family"
