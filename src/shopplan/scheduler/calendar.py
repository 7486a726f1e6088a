"""Working-day and working-window resolution per team."""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

from shopplan.logger import get_logger
from shopplan.models import Holiday, WorkingHoursRule

from .core import Segment

logger = get_logger()

SATURDAY = 6  # Upstream day-of-week numbering (0 = Sunday)
SUNDAY = 0
WEEKEND_DAYS = frozenset({SATURDAY, SUNDAY})


def day_of_week(day: date) -> int:
    """Day of week with 0 = Sunday .. 6 = Saturday, as the working-hours rules use."""
    return (day.weekday() + 1) % 7


@dataclass(frozen=True)
class WorkingWindow:
    """The working period of a single date, with its breaks sorted by start."""

    day: date
    start: datetime
    end: datetime
    breaks: tuple[Segment, ...]

    def break_at(self, instant: datetime) -> Segment | None:
        """Return the break containing instant, if any."""
        for brk in self.breaks:
            if brk.contains(instant):
                return brk
        return None

    def next_break_after(self, instant: datetime) -> Segment | None:
        """Return the first break starting strictly after instant."""
        for brk in self.breaks:
            if brk.start > instant:
                return brk
        return None


class CalendarResolver:
    """Answers working-day questions over preloaded rules and holidays.

    Maps are built once per run; every lookup is pure.
    """

    def __init__(
        self,
        rules: Iterable[WorkingHoursRule],
        holidays: Iterable[Holiday],
        *,
        skip_weekends: bool = True,
        max_search_days: int = 365,
    ) -> None:
        """Build lookup maps.

        Args:
            rules: Working-hours rules; inactive rules are ignored and a later
                rule for the same (team, day) replaces an earlier one
            holidays: Team holidays
            skip_weekends: Treat Saturday and Sunday as non-working regardless of rules
            max_search_days: Limit for next_working_day()
        """
        self._rules: dict[tuple[str, int], WorkingHoursRule] = {}
        for rule in rules:
            if rule.is_active:
                self._rules[(rule.team, rule.day_of_week)] = rule

        self._holidays: dict[str, set[date]] = {}
        for holiday in holidays:
            self._holidays.setdefault(holiday.team, set()).add(holiday.day)

        self.skip_weekends = skip_weekends
        self.max_search_days = max_search_days
        self._window_cache: dict[tuple[str, date], WorkingWindow | None] = {}

    def is_holiday(self, day: date, team: str) -> bool:
        return day in self._holidays.get(team, ())

    def is_working_day(self, day: date, team: str) -> bool:
        """True unless day is a weekend, a team holiday, or has no active rule."""
        dow = day_of_week(day)
        if self.skip_weekends and dow in WEEKEND_DAYS:
            return False
        if self.is_holiday(day, team):
            return False
        return (team, dow) in self._rules

    def working_window(self, day: date, team: str) -> WorkingWindow | None:
        """Return the working window for day, or None if it is not a working day."""
        key = (team, day)
        if key in self._window_cache:
            return self._window_cache[key]

        window: WorkingWindow | None = None
        if self.is_working_day(day, team):
            rule = self._rules[(team, day_of_week(day))]
            breaks = sorted(
                (Segment(_at(day, brk.start), _at(day, brk.end)) for brk in rule.breaks),
                key=lambda s: s.start,
            )
            window = WorkingWindow(
                day=day,
                start=_at(day, rule.start_time),
                end=_at(day, rule.end_time),
                breaks=tuple(breaks),
            )

        self._window_cache[key] = window
        return window

    def next_working_day(self, day: date, team: str) -> date | None:
        """Return the first working day strictly after day.

        Returns None if none is found within max_search_days.
        """
        candidate = day
        for _ in range(self.max_search_days):
            candidate += timedelta(days=1)
            if self.is_working_day(candidate, team):
                return candidate
        logger.debug(
            f"      No working day for team {team} within {self.max_search_days} days of {day}"
        )
        return None

    def next_window(self, day: date, team: str) -> WorkingWindow | None:
        """Working window of the first working day after day, if any."""
        next_day = self.next_working_day(day, team)
        if next_day is None:
            return None
        return self.working_window(next_day, team)


def _at(day: date, clock: time) -> datetime:
    return datetime.combine(day, clock)
