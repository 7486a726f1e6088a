"""Tests for working-day and working-window resolution."""

from datetime import date, time, timedelta

from shopplan.models import BreakInterval, Holiday, WorkingHoursRule
from shopplan.scheduler.calendar import CalendarResolver, day_of_week
from tests.conftest import FRIDAY, MONDAY, NEXT_MONDAY, TEAM, at, make_calendar, weekday_rules


class TestDayOfWeek:
    """Tests for the Sunday-based day numbering."""

    def test_sunday_is_zero(self):
        assert day_of_week(date(2025, 1, 5)) == 0

    def test_monday_is_one(self):
        assert day_of_week(MONDAY) == 1

    def test_saturday_is_six(self):
        assert day_of_week(date(2025, 1, 11)) == 6


class TestIsWorkingDay:
    """Tests for CalendarResolver.is_working_day."""

    def test_weekdays_with_rules_are_working(self):
        calendar = make_calendar()
        for offset in range(5):
            assert calendar.is_working_day(MONDAY + timedelta(days=offset), TEAM)

    def test_weekend_is_never_working(self):
        """A Saturday rule does not make Saturday a working day."""
        rules = weekday_rules() + [
            WorkingHoursRule(team=TEAM, day_of_week=6, start_time=time(8), end_time=time(12))
        ]
        calendar = CalendarResolver(rules, [])

        assert not calendar.is_working_day(date(2025, 1, 11), TEAM)
        assert not calendar.is_working_day(date(2025, 1, 12), TEAM)

    def test_weekend_rule_honoured_when_skip_disabled(self):
        rules = weekday_rules() + [
            WorkingHoursRule(team=TEAM, day_of_week=6, start_time=time(8), end_time=time(12))
        ]
        calendar = CalendarResolver(rules, [], skip_weekends=False)

        assert calendar.is_working_day(date(2025, 1, 11), TEAM)
        assert not calendar.is_working_day(date(2025, 1, 12), TEAM)

    def test_holiday_is_not_working(self):
        calendar = make_calendar(holidays=[date(2025, 1, 8)])

        assert not calendar.is_working_day(date(2025, 1, 8), TEAM)
        assert calendar.is_working_day(date(2025, 1, 9), TEAM)

    def test_holiday_only_applies_to_its_team(self):
        rules = weekday_rules() + weekday_rules(team="install")
        calendar = CalendarResolver(rules, [Holiday(team="install", day=MONDAY)])

        assert calendar.is_working_day(MONDAY, TEAM)
        assert not calendar.is_working_day(MONDAY, "install")

    def test_missing_rule_means_not_working(self):
        calendar = make_calendar()
        assert not calendar.is_working_day(MONDAY, "unknown-team")

    def test_inactive_rule_ignored(self):
        rules = [
            WorkingHoursRule(
                team=TEAM, day_of_week=1, start_time=time(8), end_time=time(16), is_active=False
            )
        ]
        calendar = CalendarResolver(rules, [])
        assert not calendar.is_working_day(MONDAY, TEAM)


class TestWorkingWindow:
    """Tests for CalendarResolver.working_window."""

    def test_window_bounds_and_breaks(self):
        window = make_calendar().working_window(MONDAY, TEAM)

        assert window is not None
        assert window.start == at(MONDAY, 8)
        assert window.end == at(MONDAY, 16)
        assert [(b.start, b.end) for b in window.breaks] == [(at(MONDAY, 12), at(MONDAY, 12, 30))]

    def test_breaks_sorted_by_start(self):
        rule = WorkingHoursRule(
            team=TEAM,
            day_of_week=1,
            start_time=time(7),
            end_time=time(17),
            breaks=[
                BreakInterval(start=time(15), end=time(15, 15)),
                BreakInterval(start=time(9), end=time(9, 15)),
            ],
        )
        window = CalendarResolver([rule], []).working_window(MONDAY, TEAM)

        assert window is not None
        assert [b.start for b in window.breaks] == [at(MONDAY, 9), at(MONDAY, 15)]

    def test_no_window_on_holiday(self):
        calendar = make_calendar(holidays=[MONDAY])
        assert calendar.working_window(MONDAY, TEAM) is None

    def test_no_window_on_weekend(self):
        assert make_calendar().working_window(date(2025, 1, 11), TEAM) is None

    def test_break_lookup(self):
        window = make_calendar().working_window(MONDAY, TEAM)
        assert window is not None

        assert window.break_at(at(MONDAY, 12, 15)) is not None
        assert window.break_at(at(MONDAY, 12, 30)) is None  # half-open
        assert window.next_break_after(at(MONDAY, 9)) == window.breaks[0]
        assert window.next_break_after(at(MONDAY, 13)) is None


class TestNextWorkingDay:
    """Tests for CalendarResolver.next_working_day."""

    def test_skips_weekend(self):
        assert make_calendar().next_working_day(FRIDAY, TEAM) == NEXT_MONDAY

    def test_skips_holidays(self):
        calendar = make_calendar(holidays=[NEXT_MONDAY, date(2025, 1, 14)])
        assert calendar.next_working_day(FRIDAY, TEAM) == date(2025, 1, 15)

    def test_strictly_after(self):
        assert make_calendar().next_working_day(MONDAY, TEAM) == date(2025, 1, 7)

    def test_gives_up_after_search_limit(self):
        calendar = CalendarResolver(weekday_rules(), [], max_search_days=10)
        assert calendar.next_working_day(MONDAY, "unknown-team") is None
