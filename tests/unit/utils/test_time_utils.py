"""
TimeUtils 工具类单元测试
"""

from datetime import UTC, date, datetime, timedelta, timezone

import pytest

from profile_compare.utils.time_utils import TimeUtils, time_utils


@pytest.mark.unit
def test_now_is_timezone_aware_utc():
    assert time_utils.now().tzinfo is UTC


@pytest.mark.unit
def test_to_utc_treats_naive_as_utc():
    naive = datetime(2025, 1, 1, 8, 0, 0)

    assert TimeUtils.to_utc(naive) == datetime(2025, 1, 1, 8, 0, 0, tzinfo=UTC)


@pytest.mark.unit
def test_to_utc_converts_offsets():
    shanghai = datetime(2025, 1, 1, 8, 0, 0, tzinfo=timezone(timedelta(hours=8)))

    assert TimeUtils.to_utc(shanghai) == datetime(2025, 1, 1, 0, 0, 0, tzinfo=UTC)


@pytest.mark.unit
def test_to_iso_timestamp_uses_millisecond_precision():
    dt = datetime(2025, 3, 9, 4, 5, 6, 789999, tzinfo=UTC)

    assert time_utils.to_iso_timestamp(dt) == "2025-03-09T04:05:06.789Z"
    assert time_utils.to_iso_timestamp(datetime(2025, 3, 9, tzinfo=UTC)) == "2025-03-09T00:00:00.000Z"


@pytest.mark.unit
def test_format_date():
    late_evening_east = datetime(2025, 1, 2, 1, 0, 0, tzinfo=timezone(timedelta(hours=8)))

    assert time_utils.format_date(late_evening_east) == "2025-01-01"
    assert time_utils.format_date(date(2024, 12, 31)) == "2024-12-31"
