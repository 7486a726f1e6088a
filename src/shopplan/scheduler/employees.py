"""Employee reservation tracking and eligibility matching."""

import bisect
from collections.abc import Iterable, Mapping
from datetime import datetime

from shopplan.logger import get_logger
from shopplan.models import Employee

logger = get_logger()


class EmployeeSchedule:
    """Tracks reserved time for one employee as sorted, non-overlapping intervals.

    Intervals are half-open ``[start, end)``. Overlapping or touching intervals
    are merged on insert so lookups can use binary search.
    """

    def __init__(
        self,
        employee_id: str,
        reserved: list[tuple[datetime, datetime]] | None = None,
    ) -> None:
        self.employee_id = employee_id
        self.busy_periods: list[tuple[datetime, datetime]] = []
        for start, end in reserved or []:
            self.add_block(start, end)

    def add_block(self, start: datetime, end: datetime) -> None:
        """Reserve ``[start, end)``, merging with any overlapping or touching period."""
        if end <= start:
            return

        idx = bisect.bisect_left(self.busy_periods, start, key=lambda x: x[0])

        # Merge with the previous period if it reaches start
        if idx > 0:
            prev_start, prev_end = self.busy_periods[idx - 1]
            if prev_end >= start:
                start = prev_start
                end = max(prev_end, end)
                idx -= 1
                del self.busy_periods[idx]

        # Merge with following periods that begin before end
        while idx < len(self.busy_periods):
            next_start, next_end = self.busy_periods[idx]
            if next_start <= end:
                end = max(end, next_end)
                del self.busy_periods[idx]
            else:
                break

        self.busy_periods.insert(idx, (start, end))

    def is_free(self, start: datetime, end: datetime) -> bool:
        """True if no reserved period intersects ``[start, end)``."""
        # Leftmost period whose end is after start
        lo, hi = 0, len(self.busy_periods)
        while lo < hi:
            mid = (lo + hi) // 2
            if self.busy_periods[mid][1] <= start:
                lo = mid + 1
            else:
                hi = mid

        if lo == len(self.busy_periods):
            return True
        busy_start, _ = self.busy_periods[lo]
        return busy_start >= end


def eligible_employees(skill: str | None, employees: Iterable[Employee]) -> list[Employee]:
    """Employees able to perform skill, in the order supplied."""
    return [employee for employee in employees if employee.can_perform(skill)]


def find_eligible(
    skill: str | None,
    start: datetime,
    end: datetime,
    employees: Iterable[Employee],
    reservations: Mapping[str, EmployeeSchedule],
) -> Employee | None:
    """Return the first eligible employee with nothing reserved in ``[start, end)``.

    Args:
        skill: Required skill; None matches nobody
        start: Span start (inclusive)
        end: Span end (exclusive)
        employees: Candidates in preference order
        reservations: Existing reservations by employee id

    Returns:
        The first free eligible employee, or None
    """
    for employee in eligible_employees(skill, employees):
        schedule = reservations.get(employee.id)
        if schedule is None or schedule.is_free(start, end):
            return employee
        logger.debug(f"        {employee.id}: busy between {start} and {end}")
    return None
