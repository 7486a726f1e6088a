"""Splitting a required duration into break- and day-respecting segments."""

from datetime import datetime

from shopplan.logger import get_logger

from .calendar import CalendarResolver, WorkingWindow
from .core import SECONDS_PER_MINUTE, Segment, minutes

logger = get_logger()


def split_into_segments(  # noqa: PLR0913 - calendar context plus limits
    calendar: CalendarResolver,
    team: str,
    start: datetime,
    duration_minutes: int,
    *,
    max_iterations: int = 1000,
) -> list[Segment] | None:
    """Lay out duration_minutes of work starting no earlier than start.

    Walks forward through the calendar: an instant outside a working window
    jumps to the next working day's start, an instant inside a break jumps to
    the break's end, and otherwise as much work as fits before the next break
    or the end of the day is emitted as one segment.

    Args:
        calendar: Working-day resolver
        team: Team whose calendar applies
        start: Earliest instant work may begin
        duration_minutes: Total work required, in whole minutes
        max_iterations: Safety limit on cursor moves

    Returns:
        Segments in time order whose lengths sum to duration_minutes, or None
        if the duration cannot be placed within the calendar's search limits
    """
    if duration_minutes <= 0:
        return None

    window = _window_for(calendar, team, start)
    if window is None:
        return None
    cursor = max(start, window.start)

    segments: list[Segment] = []
    remaining = duration_minutes

    for _ in range(max_iterations):
        if remaining == 0:
            break

        if cursor >= window.end:
            next_window = calendar.next_window(window.day, team)
            if next_window is None:
                return None
            window = next_window
            cursor = window.start
            continue

        current_break = window.break_at(cursor)
        if current_break is not None:
            cursor = current_break.end
            continue

        next_break = window.next_break_after(cursor)
        available_end = window.end
        if next_break is not None and next_break.start < window.end:
            available_end = next_break.start

        available = int((available_end - cursor).total_seconds() // SECONDS_PER_MINUTE)
        if available > 0:
            used = min(remaining, available)
            segment_end = cursor + minutes(used)
            segments.append(Segment(cursor, segment_end))
            remaining -= used
            cursor = segment_end
        else:
            cursor = next_break.end if next_break is not None else window.end

    if remaining > 0:
        logger.debug(
            f"      Could not place {duration_minutes}min from {start} "
            f"({remaining}min left after {max_iterations} iterations)"
        )
        return None

    return segments


def _window_for(calendar: CalendarResolver, team: str, instant: datetime) -> WorkingWindow | None:
    """Window containing or following instant: today's if not yet over, else the next one."""
    window = calendar.working_window(instant.date(), team)
    if window is not None and instant < window.end:
        return window
    return calendar.next_window(instant.date(), team)
