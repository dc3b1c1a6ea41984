"""Tests for identifier helpers."""

import re

import pytest

from tasksync.ids import next_id, next_ids, time_id, utc_now_iso


class TestNextIds:
    """Tests for sequential id allocation."""

    def test_empty_collection_starts_at_one(self):
        assert next_id([]) == "0001"

    def test_next_after_max(self):
        records = [{"id": "0003"}, {"id": "0010"}, {"id": "0007"}]
        assert next_id(records) == "0011"

    def test_non_numeric_ids_ignored(self):
        records = [{"id": "abc"}, {"id": "u_123x"}, {"id": "0002"}, {}]
        assert next_id(records) == "0003"

    def test_only_plain_decimal_ids_count(self):
        records = [{"id": "1_000"}, {"id": "\u0664\u0662"}, {"id": "+50"}, {"id": " 0007 "}, {"id": 8}]
        assert next_id(records) == "0009"

    def test_batch_is_strictly_increasing(self):
        records = [{"id": "0041"}]
        assert next_ids(records, 3) == ["0042", "0043", "0044"]

    def test_batch_of_zero(self):
        assert next_ids([{"id": "0001"}], 0) == []

    def test_padding_grows_past_four_digits(self):
        assert next_id([{"id": "9999"}]) == "10000"

    def test_does_not_mutate_input(self):
        records = [{"id": "0001"}]
        next_ids(records, 5)
        assert records == [{"id": "0001"}]


class TestTimeId:
    """Tests for time-derived ids."""

    def test_prefix_and_millis(self, monkeypatch):
        monkeypatch.setattr("tasksync.ids.time.time", lambda: 1000.0)
        assert time_id("org") == "org_1000000"

    def test_collision_bumps_millis(self, monkeypatch):
        monkeypatch.setattr("tasksync.ids.time.time", lambda: 1000.0)
        records = [{"id": "u_1000000"}, {"id": "u_1000001"}]
        assert time_id("u", records) == "u_1000002"


def test_utc_now_iso_format():
    value = utc_now_iso()
    assert re.fullmatch(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z", value)


@pytest.mark.parametrize("count", [1, 5, 12])
def test_batch_ids_unique(count):
    ids = next_ids([{"id": "0100"}, {"id": "x"}], count)
    assert len(set(ids)) == count
    assert [int(i) for i in ids] == list(range(101, 101 + count))
