import pytest

from pairstream.core import process_ticks_to_analytics
from pairstream.data import Tick
from pairstream.export import EXPORT_COLUMNS, export_filename, from_csv, to_csv


def sample_points():
    ticks_a = [Tick("a", 100.0 + 0.37 * i + (i % 3) * 0.11, 1.0, 1_700_000_000_000 + i * 1_000) for i in range(40)]
    ticks_b = [Tick("b", 50.0 + 0.21 * i - (i % 4) * 0.07, 1.0, 1_700_000_000_300 + i * 1_000) for i in range(40)]
    return process_ticks_to_analytics(ticks_a, ticks_b, {"window_size": 10})


def test_csv_header_and_timestamp_format():
    points = sample_points()
    lines = to_csv(points).splitlines()
    assert lines[0] == ",".join(EXPORT_COLUMNS)
    assert lines[1].startswith("2023-11-14T22:13:20.000Z,")
    assert len(lines) == len(points) + 1


def test_csv_round_trip_preserves_fields():
    points = sample_points()
    assert from_csv(to_csv(points)) == points


def test_empty_export_and_missing_columns():
    assert from_csv(to_csv([])) == []
    with pytest.raises(ValueError):
        from_csv("Timestamp,PriceA\n2024-01-01T00:00:00.000Z,1.0\n")


def test_export_filename():
    assert export_filename(1_700_000_000_123) == "analytics_full_1700000000123.csv"
