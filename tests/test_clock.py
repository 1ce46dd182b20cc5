import pytest

from routeplanner.services.routing.clock import format_clock, format_duration, format_hours_minutes, parse_clock


def test_parse_clock_returns_minutes_since_midnight():
    assert parse_clock("00:00") == 0
    assert parse_clock("09:30") == 570
    assert parse_clock("9:05") == 545
    assert parse_clock("23:59") == 1439


@pytest.mark.parametrize("value", ["24:00", "9:5", "09:60", "noon", "", "09-30"])
def test_parse_clock_rejects_malformed_times(value):
    with pytest.raises(ValueError):
        parse_clock(value)


def test_format_clock_pads_and_wraps_past_midnight():
    assert format_clock(545) == "09:05"
    assert format_clock(1440 + 70) == "01:10"


def test_duration_labels():
    assert format_duration(125) == "2h 5m"
    assert format_hours_minutes(125) == "2:05"
    assert format_hours_minutes(45) == "0:45"
