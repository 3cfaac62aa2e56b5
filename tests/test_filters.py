from __future__ import annotations

import logging

import pytest

from exporters.filters import DateRange, compile_filter
from tests.conftest import millis


def test_no_filters_produce_inactive_fragment():
    compiled = compile_filter()
    assert compiled.active is False
    assert compiled.clause == ""
    assert compiled.params == ()


def test_thread_filter_binds_each_id():
    compiled = compile_filter([3, 7, 3])
    assert compiled.active is True
    assert compiled.clause == " AND thread._id IN (?, ?)"
    assert compiled.params == (3, 7)


def test_day_range_is_widened_to_the_end_of_the_last_second():
    compiled = compile_filter(date_ranges=[("2023-01-01", "2023-01-01")])
    start, end = compiled.params
    assert start == millis(2023, 1, 1)
    assert end == millis(2023, 1, 1, 23, 59, 59) + 999
    assert start <= millis(2023, 1, 1, 23, 59, 59, 500000) <= end
    assert not start <= millis(2023, 1, 2, 0, 0, 0, 1000) <= end


def test_epoch_bounds_are_not_widened():
    compiled = compile_filter(date_ranges=[("1000", "2000")])
    assert compiled.params == (1000, 2000)


def test_ranges_are_ored_and_combined_with_threads():
    compiled = compile_filter(
        [5],
        [("1000", "2000"), ("3000", "4000")],
        date_column="message.date_received",
    )
    assert compiled.clause == (
        " AND thread._id IN (?)"
        " AND (message.date_received BETWEEN ? AND ? OR message.date_received BETWEEN ? AND ?)"
    )
    assert compiled.params == (5, 1000, 2000, 3000, 4000)


def test_invalid_ranges_are_dropped_with_warning(caplog):
    with caplog.at_level(logging.WARNING):
        compiled = compile_filter(
            date_ranges=[("2023-02-01", "2023-01-01"), ("not a date", "2023-01-01"), ("1000", "2000")]
        )
    assert compiled.params == (1000, 2000)
    skipped = [record for record in caplog.records if "Skipping range" in record.getMessage()]
    assert len(skipped) == 2


def test_all_ranges_invalid_leaves_filter_inactive(caplog):
    with caplog.at_level(logging.WARNING):
        compiled = compile_filter(date_ranges=[("2023-02-01", "2023-01-01")])
    assert compiled.active is False


def test_inverted_range_is_rejected():
    with pytest.raises(ValueError):
        DateRange(2000, 1000)
