import pytest

from labmonitor.errors import InvalidFormatError
from labmonitor.utils.time_intervals import block_duration_hours, intervals_overlap, parse_time_to_minutes

pytestmark = pytest.mark.unit


def test_parse_time_to_minutes():
    assert parse_time_to_minutes("00:00") == 0
    assert parse_time_to_minutes("09:30") == 570
    assert parse_time_to_minutes("9:05") == 545
    assert parse_time_to_minutes("23:59") == 1439


@pytest.mark.parametrize("value", ["24:00", "12:60", "noon", "1230", "12:3", "", None])
def test_parse_time_rejects_malformed_values(value):
    with pytest.raises(InvalidFormatError) as exc_info:
        parse_time_to_minutes(value)
    assert exc_info.value.status_code == 422
    assert exc_info.value.code == "INVALID_FORMAT"


def test_back_to_back_blocks_do_not_overlap():
    assert intervals_overlap("09:00", "10:00", "10:00", "11:00") is False
    assert intervals_overlap("10:00", "11:00", "09:00", "10:00") is False


def test_partial_and_contained_blocks_overlap():
    assert intervals_overlap("09:00", "10:00", "09:30", "10:30") is True
    assert intervals_overlap("09:00", "17:00", "12:00", "13:00") is True
    assert intervals_overlap("09:00", "10:00", "09:00", "10:00") is True


def test_block_duration_hours():
    assert block_duration_hours("09:00", "17:30") == 8.5
    assert block_duration_hours("22:00", "02:00") == 4.0
    # Identical start and end is read as a full day, never zero or negative
    assert block_duration_hours("08:00", "08:00") == 24.0
