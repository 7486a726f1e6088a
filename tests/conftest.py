"""Pytest configuration and fixtures for shopplan tests."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, datetime, time
from typing import Any

import pytest

from shopplan.logger import reset_logger
from shopplan.models import (
    BreakInterval,
    Employee,
    Holiday,
    LimitDependency,
    Project,
    RecurringCommitment,
    Snapshot,
    Task,
    TaskStatus,
    WorkingHoursRule,
)
from shopplan.scheduler import (
    CalendarResolver,
    EmployeeTimeBlock,
    SchedulingConfig,
    SchedulingResult,
)

TEAM = "production"

# Calendar used throughout: 2025-01-06 is a Monday
MONDAY = date(2025, 1, 6)
FRIDAY = date(2025, 1, 10)
NEXT_MONDAY = date(2025, 1, 13)
WEEKDAYS = (1, 2, 3, 4, 5)  # Monday..Friday, 0 = Sunday


@pytest.fixture(autouse=True)
def silent_logger() -> None:
    """Reset logger state before each test for isolation."""
    reset_logger()


def at(day: date, hour: int, minute: int = 0) -> datetime:
    """Shorthand for a naive datetime on day."""
    return datetime.combine(day, time(hour, minute))


def weekday_rules(
    team: str = TEAM,
    start: time = time(8, 0),
    end: time = time(16, 0),
    breaks: Iterable[tuple[time, time]] = ((time(12, 0), time(12, 30)),),
) -> list[WorkingHoursRule]:
    """Mon-Fri working-hours rules, 08:00-16:00 with a 12:00-12:30 break by default."""
    break_list = [BreakInterval(start=s, end=e) for s, e in breaks]
    return [
        WorkingHoursRule(
            team=team,
            day_of_week=dow,
            start_time=start,
            end_time=end,
            breaks=list(break_list),
        )
        for dow in WEEKDAYS
    ]


def make_calendar(
    holidays: Iterable[date] = (),
    rules: list[WorkingHoursRule] | None = None,
) -> CalendarResolver:
    """Calendar resolver over weekday rules plus the given holidays."""
    return CalendarResolver(
        rules if rules is not None else weekday_rules(),
        [Holiday(team=TEAM, day=day) for day in holidays],
    )


def make_task(  # noqa: PLR0913 - test builder with many defaults
    task_id: str,
    skill: str | None,
    project_id: str = "p1",
    *,
    duration: int = 60,
    status: TaskStatus = TaskStatus.TODO,
    sequence: int = 1,
    workstations: Iterable[str] = ("ws1",),
) -> Task:
    """Create a task with test-friendly defaults."""
    return Task(
        id=task_id,
        title=task_id,
        duration_minutes=duration,
        status=status,
        skill=skill,
        project_id=project_id,
        sequence=sequence,
        workstation_ids=list(workstations),
    )


def make_employee(employee_id: str, *skills: str) -> Employee:
    """Create an employee with the given skills."""
    return Employee(id=employee_id, name=employee_id.title(), skills=list(skills))


def make_project(project_id: str, target: date, status: str = "planned") -> Project:
    """Create a project with the given target date."""
    return Project(
        id=project_id, name=project_id.upper(), client="ACME", target_date=target, status=status
    )


def make_snapshot(  # noqa: PLR0913 - test builder with many optional parts
    *,
    tasks: list[Task],
    employees: list[Employee],
    projects: list[Project] | None = None,
    holidays: Iterable[date] = (),
    dependencies: dict[str, list[str]] | None = None,
    commitments: list[RecurringCommitment] | None = None,
    final_step_skill: str | None = None,
) -> Snapshot:
    """Assemble a snapshot; projects default to one per task project, due in 2025-03."""
    if projects is None:
        project_ids = sorted({task.project_id for task in tasks})
        projects = [make_project(pid, date(2025, 3, 31)) for pid in project_ids]
    return Snapshot(
        working_hours=weekday_rules(),
        holidays=[Holiday(team=TEAM, day=day) for day in holidays],
        projects=projects,
        tasks=tasks,
        employees=employees,
        limit_dependencies=[
            LimitDependency(skill=skill, requires=requires)
            for skill, requires in (dependencies or {}).items()
        ],
        recurring_commitments=commitments or [],
        final_step_skill=final_step_skill,
    )


def assert_valid_schedule(
    result: SchedulingResult,
    snapshot: Snapshot,
    config: SchedulingConfig | None = None,
    *,
    check_all_scheduled: bool = False,
) -> None:
    """Assert the invariants every schedule must satisfy.

    Checks per-employee non-overlap, exact durations, segments inside working
    windows and outside breaks, HOLD tasks starting after their prerequisites,
    and one lane per (workstation, employee) pair.
    """
    config = config or SchedulingConfig()
    calendar = CalendarResolver(
        snapshot.working_hours, snapshot.holidays, skip_weekends=config.skip_weekends
    )
    placements = {p.task.id: p for p in result.placements}

    if check_all_scheduled:
        missing = {t.id for t in snapshot.tasks} - set(placements)
        assert not missing, f"Tasks not scheduled: {missing}"

    # Durations are met exactly
    for placement in result.placements:
        assert placement.scheduled_minutes == placement.task.duration_minutes, (
            f"Task {placement.task.id} got {placement.scheduled_minutes} minutes, "
            f"expected {placement.task.duration_minutes}"
        )

    # Segments inside working windows and outside breaks
    for slot in result.slots:
        window = calendar.working_window(slot.scheduled_date, config.team)
        assert window is not None, (
            f"Slot of {slot.task_id} on non-working day {slot.scheduled_date}"
        )
        assert window.start <= slot.start < slot.end <= window.end, (
            f"Slot of {slot.task_id} {slot.start}-{slot.end} outside {window.start}-{window.end}"
        )
        for brk in window.breaks:
            assert not brk.overlaps(slot.start, slot.end), (
                f"Slot of {slot.task_id} {slot.start}-{slot.end} overlaps break {brk}"
            )

    # Every placement reserved its span from first to last segment
    task_blocks = {b.task_id: b for b in result.blocks if b.task_id is not None}
    assert set(task_blocks) == set(placements)
    for task_id, block in task_blocks.items():
        placement = placements[task_id]
        assert (block.employee_id, block.start, block.end) == (
            placement.employee_id,
            placement.start,
            placement.end,
        )

    # No employee double-booked; only commitments may overlap each other
    by_employee: dict[str, list[EmployeeTimeBlock]] = {}
    for block in result.blocks:
        by_employee.setdefault(block.employee_id, []).append(block)
    for employee_id, blocks in by_employee.items():
        blocks.sort(key=lambda b: (b.start, b.end))
        for index, block in enumerate(blocks):
            for other in blocks[index + 1 :]:
                if other.start >= block.end:
                    break
                if block.task_id is None and other.task_id is None:
                    continue
                pytest.fail(
                    f"{employee_id} double-booked: {block.task_id or 'commitment'} "
                    f"{block.start}-{block.end} overlaps {other.task_id or 'commitment'} "
                    f"{other.start}-{other.end}"
                )

    # HOLD tasks start after every same-project prerequisite
    limit_map: dict[str, set[str]] = {}
    for dependency in snapshot.limit_dependencies:
        limit_map.setdefault(dependency.skill, set()).update(dependency.requires)
    for placement in result.placements:
        task = placement.task
        if not task.is_on_hold or task.skill is None:
            continue
        for other in snapshot.tasks:
            if other.id == task.id or other.project_id != task.project_id:
                continue
            if other.skill in limit_map.get(task.skill, set()):
                assert other.id in placements, (
                    f"HOLD task {task.id} scheduled before prerequisite {other.id}"
                )
                assert placement.start >= placements[other.id].end

    # One stable lane per (workstation, employee)
    lanes: dict[tuple[str, str], int] = {}
    for slot in result.slots:
        key = (slot.workstation_id, slot.employee_id)
        assert lanes.setdefault(key, slot.lane) == slot.lane, f"Lane changed for {key}"


def slot_rows(result: SchedulingResult) -> list[dict[str, Any]]:
    """Output records of a result, for comparing runs."""
    return [slot.to_row() for slot in result.slots]
