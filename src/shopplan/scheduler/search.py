"""Earliest feasible slot search combining the splitter and the employee matcher."""

from collections.abc import Mapping, Sequence
from datetime import datetime

from shopplan.logger import get_logger
from shopplan.models import Employee

from .calendar import CalendarResolver
from .config import SchedulingConfig
from .core import SlotMatch, minutes
from .employees import EmployeeSchedule, eligible_employees, find_eligible
from .slots import split_into_segments

logger = get_logger()


def find_earliest_slots(  # noqa: PLR0913 - search needs calendar, staff and limits
    calendar: CalendarResolver,
    duration_minutes: int,
    skill: str | None,
    employees: Sequence[Employee],
    min_start: datetime,
    reservations: Mapping[str, EmployeeSchedule],
    config: SchedulingConfig | None = None,
) -> SlotMatch | None:
    """Find the earliest start from which the task fits and someone is free.

    Candidate starts begin at min_start and advance by ``config.step_minutes``
    within each working day (jumping over breaks), then move to the next
    working day, for up to ``config.horizon_days`` calendar days. For each
    candidate the duration is split into segments and an eligible employee
    must be free over the whole span from the first segment's start to the
    last segment's end.

    Args:
        calendar: Working-day resolver
        duration_minutes: Work required
        skill: Required skill
        employees: All employees, in preference order
        min_start: Earliest permissible start
        reservations: Current reservations by employee id
        config: Search limits (defaults used if omitted)

    Returns:
        Segments and the chosen employee, or None if nothing fits in the horizon
    """
    config = config or SchedulingConfig()
    team = config.team
    step = minutes(config.step_minutes)

    candidates = eligible_employees(skill, employees)
    if not candidates:
        logger.debug(f"      No employee can perform skill {skill!r}")
        return None

    day = min_start.date()
    last_day = day.toordinal() + config.horizon_days

    while day.toordinal() < last_day:
        window = calendar.working_window(day, team)
        if window is None:
            next_day = calendar.next_working_day(day, team)
            if next_day is None:
                break
            day = next_day
            continue

        slot_start = max(min_start, window.start) if day == min_start.date() else window.start
        attempts = 0
        while slot_start < window.end and attempts < config.max_slot_attempts_per_day:
            attempts += 1

            current_break = window.break_at(slot_start)
            if current_break is not None:
                slot_start = current_break.end
                continue

            segments = split_into_segments(
                calendar,
                team,
                slot_start,
                duration_minutes,
                max_iterations=config.max_split_iterations,
            )
            if not segments:
                break

            employee = find_eligible(
                skill, segments[0].start, segments[-1].end, candidates, reservations
            )
            if employee is not None:
                logger.debug(
                    f"      Slot found at {segments[0].start} for {employee.id} "
                    f"({len(segments)} segment(s))"
                )
                return SlotMatch(segments=segments, employee=employee)

            slot_start += step

        next_day = calendar.next_working_day(day, team)
        if next_day is None:
            break
        day = next_day

    logger.debug(f"      No slot within {config.horizon_days} days of {min_start}")
    return None
