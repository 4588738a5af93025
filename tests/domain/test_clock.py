"""Tests for the clock abstraction."""

from datetime import date, datetime, timezone

from billing_kernel.domain.clock import DeterministicClock, SystemClock


class TestDeterministicClock:

    def test_on_pins_noon_utc(self):
        clock = DeterministicClock.on(date(2024, 3, 1))

        assert clock.now() == datetime(2024, 3, 1, 12, tzinfo=timezone.utc)
        assert clock.today() == date(2024, 3, 1)

    def test_does_not_move_on_its_own(self):
        clock = DeterministicClock()
        assert clock.now() == clock.now()

    def test_advance_days_changes_today(self):
        clock = DeterministicClock.on(date(2024, 2, 28))
        clock.advance_days(2)
        assert clock.today() == date(2024, 3, 1)

    def test_set_time_resets_advance(self):
        clock = DeterministicClock()
        clock.advance(3600)
        clock.set_time(datetime(2025, 1, 1, tzinfo=timezone.utc))
        assert clock.now_utc() == datetime(2025, 1, 1, tzinfo=timezone.utc)


class TestSystemClock:

    def test_timezone_aware(self):
        now = SystemClock().now()
        assert now.tzinfo is not None
