from datetime import date, timedelta

from freezegun import freeze_time

from tiffin.core.clock import (
    ServiceClock,
    inclusive_days,
    is_before_cutoff,
    service_window,
    tomorrow,
    week_start,
)


class TestServiceClock:
    @freeze_time("2025-01-15 14:29:00")
    def test_local_time_is_utc_plus_five_thirty(self):
        clock = ServiceClock()
        now = clock.now()
        assert (now.hour, now.minute) == (19, 59)
        assert now.utcoffset() == timedelta(hours=5, minutes=30)

    @freeze_time("2025-01-15 14:29:59")
    def test_before_cutoff_one_second_early(self):
        assert is_before_cutoff(ServiceClock()) is True

    @freeze_time("2025-01-15 14:30:00")
    def test_cutoff_reached_at_twenty_hundred(self):
        assert is_before_cutoff(ServiceClock()) is False

    @freeze_time("2025-01-15 18:30:00")
    def test_today_rolls_over_at_local_midnight(self):
        clock = ServiceClock()
        assert clock.today() == date(2025, 1, 16)
        assert tomorrow(clock) == date(2025, 1, 17)

    @freeze_time("2025-01-15 18:29:00")
    def test_today_before_local_midnight(self):
        assert ServiceClock().today() == date(2025, 1, 15)

    @freeze_time("2025-01-15 10:00:00")
    def test_custom_offset_and_cutoff(self):
        clock = ServiceClock(utc_offset_minutes=0, cutoff_hour=11)
        assert clock.now().hour == 10
        assert is_before_cutoff(clock) is True
        assert ServiceClock(utc_offset_minutes=0, cutoff_hour=10).now().hour == 10
        assert is_before_cutoff(ServiceClock(utc_offset_minutes=0, cutoff_hour=10)) is False


class TestCalendarHelpers:
    def test_week_start_is_monday(self):
        assert week_start(date(2025, 1, 15)) == date(2025, 1, 13)
        assert week_start(date(2025, 1, 13)) == date(2025, 1, 13)
        assert week_start(date(2025, 1, 19)) == date(2025, 1, 13)

    def test_week_start_crosses_year_boundary(self):
        assert week_start(date(2025, 1, 1)) == date(2024, 12, 30)

    def test_inclusive_days(self):
        assert inclusive_days(date(2025, 1, 15), date(2025, 1, 17)) == 3
        assert inclusive_days(date(2025, 1, 15), date(2025, 1, 15)) == 1

    def test_service_window(self, clock):
        assert service_window(clock) == (date(2025, 1, 15), date(2025, 1, 16))
