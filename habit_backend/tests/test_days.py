from datetime import datetime, timedelta, timezone

import pytest

from src.api.days import normalize_day, parse_day_key, resolve_timezone

EST = timezone(timedelta(hours=-5))


class TestNormalizeDay:
    def test_key_is_midnight_iso_in_reference_zone(self):
        key = normalize_day(datetime(2024, 3, 5, 8, 0, tzinfo=timezone.utc), timezone.utc)
        assert key == "2024-03-05T00:00:00+00:00"

    @pytest.mark.parametrize("hour,minute", [(0, 0), (8, 0), (12, 30), (23, 59)])
    def test_same_day_same_key(self, hour, minute):
        base = normalize_day(datetime(2024, 3, 5, 0, 0, tzinfo=timezone.utc), timezone.utc)
        other = normalize_day(datetime(2024, 3, 5, hour, minute, tzinfo=timezone.utc), timezone.utc)
        assert other == base

    def test_next_day_differs(self):
        a = normalize_day(datetime(2024, 3, 5, 23, 59, 59, tzinfo=timezone.utc), timezone.utc)
        b = normalize_day(datetime(2024, 3, 6, 0, 0, 0, tzinfo=timezone.utc), timezone.utc)
        assert a != b

    def test_aware_instant_is_converted_into_reference_zone(self):
        # 23:30 in UTC-5 is already the next day in UTC
        late_evening = datetime(2024, 3, 5, 23, 30, tzinfo=EST)
        assert normalize_day(late_evening, timezone.utc) == "2024-03-06T00:00:00+00:00"
        assert normalize_day(late_evening, EST) == "2024-03-05T00:00:00-05:00"

    def test_same_instant_in_different_offsets_gives_same_key(self):
        utc = datetime(2024, 3, 5, 15, 0, tzinfo=timezone.utc)
        assert normalize_day(utc, EST) == normalize_day(utc.astimezone(EST), EST)

    def test_naive_instant_taken_as_wall_clock_in_reference_zone(self):
        assert normalize_day(datetime(2024, 3, 5, 23, 30), EST) == "2024-03-05T00:00:00-05:00"


class TestTimezoneHelpers:
    @pytest.mark.parametrize("name", ["UTC", "utc", " UTC "])
    def test_utc_resolves_without_tz_database(self, name):
        assert resolve_timezone(name) is timezone.utc

    def test_parse_day_key(self):
        parsed = parse_day_key("2024-03-05T00:00:00-05:00")
        assert parsed == datetime(2024, 3, 5, tzinfo=EST)
        assert parsed.utcoffset() == timedelta(hours=-5)
