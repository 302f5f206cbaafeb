import os
import time

import pytest

from vaultline_api.errors import InputError
from vaultline_api.timefmt import format_timestamp
from tests.conftest import HELLO_TS_MS


def test_renders_in_fixed_zone():
    parts = format_timestamp(HELLO_TS_MS, "Asia/Tokyo")
    assert parts.year == "2025"
    assert parts.date == "2025-06-25"
    assert parts.time == "14:30"


def test_date_rolls_over_in_target_zone():
    # 2021-12-31 15:00 UTC is already New Year's Day in Tokyo
    parts = format_timestamp(1640962800000, "Asia/Tokyo")
    assert (parts.year, parts.date, parts.time) == ("2022", "2022-01-01", "00:00")
    utc = format_timestamp(1640962800000, "UTC")
    assert (utc.year, utc.date, utc.time) == ("2021", "2021-12-31", "15:00")


def test_host_zone_is_ignored(monkeypatch):
    if not hasattr(time, "tzset"):
        pytest.skip("tzset unavailable")
    monkeypatch.setenv("TZ", "America/New_York")
    time.tzset()
    try:
        assert format_timestamp(HELLO_TS_MS, "Asia/Tokyo").time == "14:30"
    finally:
        monkeypatch.delenv("TZ")
        time.tzset()


@pytest.mark.parametrize("bad", [-1, "1750829400000", 1.5, True, 10**20])
def test_invalid_epoch_rejected(bad):
    with pytest.raises(InputError):
        format_timestamp(bad, "Asia/Tokyo")


def test_unknown_zone_rejected():
    with pytest.raises(InputError):
        format_timestamp(HELLO_TS_MS, "Mars/Olympus_Mons")
