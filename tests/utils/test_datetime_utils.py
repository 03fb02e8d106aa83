from __future__ import annotations

from datetime import datetime, timedelta, timezone

from membership_app.utils.datetime_utils import ensure_utc, membership_period, seconds_until_next_run


def test_seconds_until_next_run_same_day():
    # 02:00 UTC is 04:00 in Rome during summer time
    now = datetime(2026, 7, 1, 2, 0, tzinfo=timezone.utc)

    assert seconds_until_next_run(now, 5, "Europe/Rome") == 3600


def test_seconds_until_next_run_rolls_to_next_day():
    # 04:00 UTC is 06:00 in Rome, past today's run
    now = datetime(2026, 7, 1, 4, 0, tzinfo=timezone.utc)

    assert seconds_until_next_run(now, 5, "Europe/Rome") == 23 * 3600


def test_seconds_until_next_run_across_dst_change():
    # Clocks go back on 2026-10-25: 05:00 CET is 04:00 UTC
    now = datetime(2026, 10, 24, 4, 0, tzinfo=timezone.utc)

    assert seconds_until_next_run(now, 5, "Europe/Rome") == 24 * 3600


def test_ensure_utc_tags_naive_values():
    naive = datetime(2026, 1, 1, 12, 0)

    assert ensure_utc(naive) == datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)
    assert ensure_utc(None) is None


def test_membership_period_is_rolling():
    start = datetime(2026, 3, 1, tzinfo=timezone.utc)

    assert membership_period(start, 365) == (start, start + timedelta(days=365))
