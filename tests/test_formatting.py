"""Tests for CLI text helpers."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from cumon.formatting import sparkline, time_ago, time_until, usage_bar

NOW = datetime(2020, 9, 13, 12, 26, 40, tzinfo=UTC)


def test_time_ago() -> None:
    assert time_ago(NOW - timedelta(seconds=30), NOW) == "30 secs"
    assert time_ago(NOW - timedelta(seconds=1), NOW) == "1 sec"
    assert time_ago(NOW + timedelta(seconds=5), NOW) == "0 secs"
    assert time_ago(NOW - timedelta(minutes=5), NOW) == "5 mins"
    assert time_ago(NOW - timedelta(hours=2), NOW) == "2 hrs"
    assert time_ago(NOW - timedelta(days=1), NOW) == "1 day"


def test_time_until() -> None:
    assert time_until(NOW - timedelta(seconds=1), NOW) == "now"
    assert time_until(NOW + timedelta(seconds=30), NOW) == "30 secs"
    assert time_until(NOW + timedelta(minutes=1), NOW) == "1 min"
    assert time_until(NOW + timedelta(hours=2), NOW) == "2 hrs"
    assert time_until(NOW + timedelta(hours=3, minutes=20), NOW) == "3h 20m"
    assert time_until(NOW + timedelta(hours=25), NOW) == "1d 1h"
    assert time_until(NOW + timedelta(days=2), NOW) == "2d"
    assert time_until(NOW + timedelta(days=8, hours=3), NOW) == "8d"


def test_usage_bar() -> None:
    assert usage_bar(0, width=10) == "[----------]"
    assert usage_bar(50, width=10) == "[#####-----]"
    assert usage_bar(150, width=10) == "[##########]"
    assert usage_bar(-5, width=4) == "[----]"


def test_sparkline() -> None:
    assert sparkline([]) == ""
    assert sparkline([0, 100]) == "▁█"
    assert len(sparkline([float(i) for i in range(100)], width=10)) == 10
