"""Tests for TimeWindow construction and clamping."""

# pylint: disable=missing-function-docstring

from datetime import date

from regionstats.analytics.windows import TimeWindow


def test_full_year_windows_are_contiguous_and_disjoint():
    windows = [TimeWindow.for_year(y) for y in range(2013, 2025)]
    for prev, nxt in zip(windows, windows[1:]):
        assert prev.end == nxt.start
    assert windows[0].label == "2013 (year median)"
    assert windows[0].start == date(2013, 1, 1)
    assert windows[0].last_day == date(2013, 12, 31)


def test_month_window():
    win = TimeWindow.for_month(2020, 6)
    assert (win.start, win.end) == (date(2020, 6, 1), date(2020, 7, 1))
    assert win.label == "2020-06"
    assert win.month == 6

    dec = TimeWindow.for_month(2020, 12)
    assert dec.end == date(2021, 1, 1)


def test_season_window_includes_last_day_of_end_month():
    win = TimeWindow.for_season(2020, 5, 9)
    assert win.start == date(2020, 5, 1)
    assert win.last_day == date(2020, 9, 30)
    assert win.season == (5, 9)
    assert win.label == "2020 (season 5-9)"
    assert win.ee_range() == ("2020-05-01", "2020-10-01")


def test_clamp_stays_within_search_range():
    lower, upper = date(2013, 3, 18), date(2024, 12, 31)
    first = TimeWindow.for_year(2013).clamp(lower, upper)
    last = TimeWindow.for_year(2024).clamp(lower, upper)
    assert first.start == lower
    assert last.end == upper
    assert first.label == "2013 (year median)"
    assert not first.is_empty


def test_clamp_outside_range_is_empty():
    win = TimeWindow.for_year(2025).clamp(date(2013, 1, 1), date(2024, 12, 31))
    assert win.is_empty
