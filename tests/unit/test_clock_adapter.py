from datetime import UTC, datetime

from src.adapters.clock import FixedClock, SystemClock


def test_system_clock_is_utc_aware():
    now = SystemClock().now()

    assert now.tzinfo is not None
    assert now.utcoffset().total_seconds() == 0
    assert abs((datetime.now(UTC) - now).total_seconds()) < 1.0


def test_fixed_clock_advances():
    start = datetime(2025, 1, 1, tzinfo=UTC)
    clock = FixedClock(start)

    clock.advance(90)

    assert (clock.now() - start).total_seconds() == 90
