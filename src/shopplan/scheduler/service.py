"""High-level scheduling service."""

from collections import Counter
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import TYPE_CHECKING

from shopplan.logger import changes_enabled, get_logger
from shopplan.models import Employee, Project, RecurringCommitment, Snapshot, Task

from .calendar import CalendarResolver, day_of_week
from .completion import summarize_completions
from .config import SchedulingConfig
from .core import (
    Blocked,
    EmployeeTimeBlock,
    HoldPassResult,
    Placement,
    SchedulingResult,
    SlotMatch,
    TaskWarning,
    WarningKind,
)
from .dependencies import build_limit_map, minimum_start
from .employees import EmployeeSchedule
from .lanes import LaneAssigner
from .search import find_earliest_slots
from .store import replace_schedule

if TYPE_CHECKING:
    from .protocols import ReferenceDataSource, ScheduleStore

logger = get_logger()


def _empty_reservations() -> dict[str, EmployeeSchedule]:
    return {}


def _empty_blocks() -> list[EmployeeTimeBlock]:
    return []


def _empty_end_times() -> dict[str, datetime]:
    return {}


def _empty_placements() -> list[Placement]:
    return []


def _empty_commitments() -> list[RecurringCommitment]:
    return []


@dataclass
class SchedulingContext:
    """All mutable state of one run.

    A fresh context is built for every run and passed explicitly to each
    step, so nothing carries over between runs.

    Recurring commitments are reserved lazily: every day before
    ``commitments_until`` already holds its commitment blocks, and
    cover_commitments() extends that range whenever a search may reach
    further.
    """

    calendar: CalendarResolver
    config: SchedulingConfig
    employees: list[Employee]
    limit_map: dict[str, tuple[str, ...]]
    timeline_start: datetime
    lanes: LaneAssigner
    commitments: list[RecurringCommitment] = field(default_factory=_empty_commitments)
    commitments_until: date | None = None
    reservations: dict[str, EmployeeSchedule] = field(default_factory=_empty_reservations)
    blocks: list[EmployeeTimeBlock] = field(default_factory=_empty_blocks)
    end_times: dict[str, datetime] = field(default_factory=_empty_end_times)
    placements: list[Placement] = field(default_factory=_empty_placements)
    passes_run: int = 0

    def reserve(
        self, employee_id: str, start: datetime, end: datetime, task_id: str | None = None
    ) -> None:
        """Record a time block so the employee cannot be double-booked."""
        schedule = self.reservations.setdefault(employee_id, EmployeeSchedule(employee_id))
        schedule.add_block(start, end)
        self.blocks.append(EmployeeTimeBlock(employee_id, start, end, task_id))

    def record(self, placement: Placement) -> None:
        """Commit a placement: reserve its span and remember the task's end."""
        self.reserve(placement.employee_id, placement.start, placement.end, placement.task.id)
        self.end_times[placement.task.id] = placement.end
        self.placements.append(placement)

    def covers(self, instant: datetime) -> bool:
        """True if commitments are already reserved on instant's day."""
        return self.commitments_until is not None and instant.date() < self.commitments_until

    def cover_commitments(self, until: date) -> None:
        """Reserve recurring commitments on every day before until not yet covered."""
        start = self.commitments_until or self.timeline_start.date()
        if until <= start:
            return

        blocks = expand_commitments(
            self.commitments, self.calendar, self.config.team, start, (until - start).days
        )
        for block in blocks:
            self.reserve(block.employee_id, block.start, block.end)
        self.commitments_until = until
        if blocks:
            logger.checks(f"Reserved {len(blocks)} recurring commitment block(s) before {until}")


def normalize_start(instant: datetime) -> datetime:
    """Naive local time truncated to a whole minute.

    Working windows are naive shop-local datetimes, so an instant with a UTC
    offset is first converted to local time and its offset dropped.
    """
    if instant.tzinfo is not None:
        instant = instant.astimezone().replace(tzinfo=None)
    return instant.replace(second=0, microsecond=0)


def select_projects(
    projects: Iterable[Project],
    as_of: date,
    statuses: Sequence[str],
    limit: int | None = None,
) -> list[Project]:
    """Pick the projects to schedule, most urgent first.

    Keeps projects whose status is in statuses and whose target date is not
    before as_of, ordered by target date then id. With limit, only the first
    ``limit`` projects are kept.
    """
    selected = sorted(
        (p for p in projects if p.status in statuses and p.target_date >= as_of),
        key=lambda p: (p.target_date, p.id),
    )
    if limit is not None:
        selected = selected[:limit]
    return selected


def order_tasks(tasks: Iterable[Task]) -> tuple[list[Task], list[Task]]:
    """Split a project's tasks into (TODO/IN_PROGRESS, HOLD), each by sequence then id."""
    active: list[Task] = []
    held: list[Task] = []
    for task in tasks:
        (held if task.is_on_hold else active).append(task)

    def sort_key(task: Task) -> tuple[int, str]:
        return (task.sequence, task.id)

    return sorted(active, key=sort_key), sorted(held, key=sort_key)


def expand_commitments(
    commitments: Iterable[RecurringCommitment],
    calendar: CalendarResolver,
    team: str,
    start: date,
    days: int,
) -> list[EmployeeTimeBlock]:
    """Turn weekly commitments into concrete blocks on each working day.

    Args:
        commitments: Recurring commitments; inactive ones are ignored
        calendar: Working-day resolver
        team: Team whose working days apply
        start: First date to expand
        days: Number of calendar days to cover

    Returns:
        One block per employee per matching working day, in date order
    """
    by_weekday: dict[int, list[RecurringCommitment]] = {}
    for commitment in commitments:
        if commitment.is_active:
            by_weekday.setdefault(commitment.day_of_week, []).append(commitment)
    if not by_weekday:
        return []

    blocks: list[EmployeeTimeBlock] = []
    for offset in range(days):
        day = start + timedelta(days=offset)
        todays = by_weekday.get(day_of_week(day))
        if not todays or not calendar.is_working_day(day, team):
            continue
        for commitment in todays:
            block_start = datetime.combine(day, commitment.start_time)
            block_end = datetime.combine(day, commitment.end_time)
            blocks.extend(
                EmployeeTimeBlock(employee_id, block_start, block_end)
                for employee_id in commitment.employee_ids
            )
    return blocks


def place_task(ctx: SchedulingContext, task: Task, min_start: datetime) -> Placement | TaskWarning:
    """Search for and commit the earliest placement of task at or after min_start.

    Returns:
        The committed placement, or a warning explaining why the task was left out
    """
    if task.skill is None:
        return _warning(task, WarningKind.NO_SKILL, f"Task '{task.id}' has no required skill")
    if not task.workstation_ids:
        return _warning(
            task, WarningKind.NO_WORKSTATION, f"Task '{task.id}' has no eligible workstation"
        )

    ctx.cover_commitments(min_start.date() + timedelta(days=ctx.config.horizon_days + 1))
    match = _search(ctx, task, min_start)
    # A span reaching past the covered days may cross commitments not reserved yet
    while match is not None and not ctx.covers(match.end):
        ctx.cover_commitments(match.end.date() + timedelta(days=1))
        match = _search(ctx, task, min_start)
    if match is None:
        return _warning(
            task,
            WarningKind.UNSCHEDULABLE,
            f"Task '{task.id}' could not be scheduled: no eligible employee free for "
            f"{task.duration_minutes} minutes of '{task.skill}' within "
            f"{ctx.config.horizon_days} days of {min_start}",
        )

    placement = Placement(
        task=task,
        workstation_id=task.workstation_ids[0],
        employee_id=match.employee.id,
        employee_name=match.employee.name,
        segments=match.segments,
    )
    ctx.record(placement)
    logger.changes(
        f"  Scheduled {task.id} on {placement.workstation_id} with {placement.employee_id}: "
        f"{placement.start} -> {placement.end} ({len(placement.segments)} segment(s))"
    )
    return placement


def run_hold_pass(
    ctx: SchedulingContext, pending: Sequence[Task], project_tasks: Sequence[Task]
) -> HoldPassResult:
    """Try each pending HOLD task once, in order.

    Blocked tasks stay pending. Ready tasks are searched from the later of
    their dependency-derived start and the timeline start; each one either
    becomes a placement or a warning.
    """
    result = HoldPassResult(placements=[], pending=[], warnings=[])
    for task in pending:
        resolution = minimum_start(
            task, project_tasks, ctx.limit_map, ctx.end_times, ctx.timeline_start
        )
        if isinstance(resolution, Blocked):
            result.pending.append(task)
            continue

        outcome = place_task(ctx, task, max(resolution.earliest, ctx.timeline_start))
        if isinstance(outcome, Placement):
            result.placements.append(outcome)
        else:
            logger.changes(f"  Warning: {outcome}")
            result.warnings.append(outcome)
    return result


class SchedulingService:
    """Computes a complete production schedule for one snapshot.

    Projects are taken most urgent first. Within a project, TODO and
    IN_PROGRESS tasks are placed first from the timeline start; HOLD tasks
    then go through repeated passes until their prerequisites are placed or
    no further progress is possible.
    """

    def __init__(
        self,
        snapshot: Snapshot,
        timeline_start: datetime | None = None,
        config: SchedulingConfig | None = None,
    ):
        """Initialize scheduling service.

        Args:
            snapshot: Reference data for the run
            timeline_start: Earliest instant any work may start (defaults to now)
            config: Optional scheduling configuration
        """
        self.snapshot = snapshot
        self.timeline_start = normalize_start(
            timeline_start or datetime.now()  # noqa: DTZ005
        )
        self.config = config or SchedulingConfig()

    def create_context(self) -> SchedulingContext:
        """Build a fresh run context with the first horizon of commitments reserved."""
        calendar = CalendarResolver(
            self.snapshot.working_hours,
            self.snapshot.holidays,
            skip_weekends=self.config.skip_weekends,
            max_search_days=self.config.horizon_days,
        )
        ctx = SchedulingContext(
            calendar=calendar,
            config=self.config,
            employees=list(self.snapshot.employees),
            limit_map=build_limit_map(self.snapshot.limit_dependencies),
            timeline_start=self.timeline_start,
            lanes=LaneAssigner(self.config.lane_multiplier),
            commitments=list(self.snapshot.recurring_commitments),
        )
        ctx.cover_commitments(self.timeline_start.date() + timedelta(days=self.config.horizon_days))
        return ctx

    def schedule(self) -> SchedulingResult:
        """Schedule all selected projects.

        Returns:
            SchedulingResult with output slots, placements, completion
            summaries, warnings and run counts
        """
        ctx = self.create_context()
        projects = select_projects(
            self.snapshot.projects,
            self.timeline_start.date(),
            self.config.active_statuses,
            self.config.project_limit,
        )
        tasks_by_project = self.snapshot.tasks_by_project()
        warnings: list[TaskWarning] = []
        task_count = 0

        logger.changes(f"Scheduling {len(projects)} project(s) from {self.timeline_start}")
        for project in projects:
            project_tasks = tasks_by_project.get(project.id, [])
            task_count += len(project_tasks)
            warnings.extend(self._schedule_project(ctx, project, project_tasks))

        slots = [slot for placement in ctx.placements for slot in ctx.lanes.to_slots(placement)]
        completions = summarize_completions(
            projects,
            self._last_step_ends(ctx.placements),
            self.timeline_start,
            self.config.at_risk_days,
        )

        kinds = Counter(w.kind for w in warnings)
        metadata = {
            "timeline_start": self.timeline_start,
            "projects": len(projects),
            "tasks": task_count,
            "tasks_placed": len(ctx.placements),
            "slots": len(slots),
            "unschedulable": len(warnings) - kinds[WarningKind.UNRESOLVED_DEPENDENCY],
            "unresolved": kinds[WarningKind.UNRESOLVED_DEPENDENCY],
            "warnings_by_kind": {kind.value: count for kind, count in kinds.items()},
            "passes": ctx.passes_run,
            "lanes": ctx.lanes.lanes(),
        }
        if changes_enabled():
            logger.changes(
                f"Placed {metadata['tasks_placed']}/{task_count} task(s) in "
                f"{len(slots)} slot(s); {len(warnings)} warning(s)"
            )

        return SchedulingResult(
            slots=slots,
            placements=list(ctx.placements),
            completions=completions,
            warnings=warnings,
            blocks=list(ctx.blocks),
            metadata=metadata,
        )

    def _schedule_project(
        self, ctx: SchedulingContext, project: Project, project_tasks: list[Task]
    ) -> list[TaskWarning]:
        """Place one project's tasks; returns the warnings for tasks left out."""
        logger.changes(f"Project {project.id} (target {project.target_date})")
        active, pending = order_tasks(project_tasks)
        warnings: list[TaskWarning] = []

        for task in active:
            logger.checks(f"  Considering {task.id} (sequence {task.sequence})")
            outcome = place_task(ctx, task, ctx.timeline_start)
            if isinstance(outcome, TaskWarning):
                logger.changes(f"  Warning: {outcome}")
                warnings.append(outcome)

        passes = 0
        while (
            pending
            and passes < self.config.max_passes_per_project
            and ctx.passes_run < self.config.max_total_passes
        ):
            passes += 1
            ctx.passes_run += 1
            logger.checks(f"  HOLD pass {passes}: {len(pending)} pending task(s)")
            result = run_hold_pass(ctx, pending, project_tasks)
            warnings.extend(result.warnings)
            pending = result.pending
            if not result.made_progress:
                break

        for task in pending:
            warning = _warning(
                task,
                WarningKind.UNRESOLVED_DEPENDENCY,
                f"Task '{task.id}' not scheduled: prerequisites of '{task.skill}' "
                "never finished",
            )
            logger.changes(f"  Warning: {warning}")
            warnings.append(warning)
        return warnings

    def _last_step_ends(self, placements: Iterable[Placement]) -> Mapping[str, datetime]:
        """Latest end of the final production step per project.

        Without a configured final-step skill every placement counts.
        """
        final_skill = self.snapshot.final_step_skill
        last_ends: dict[str, datetime] = {}
        for placement in placements:
            if final_skill is not None and placement.task.skill != final_skill:
                continue
            project_id = placement.task.project_id
            current = last_ends.get(project_id)
            if current is None or placement.end > current:
                last_ends[project_id] = placement.end
        return last_ends


def run_batch(
    source: "ReferenceDataSource",
    store: "ScheduleStore",
    timeline_start: datetime | None = None,
    config: SchedulingConfig | None = None,
) -> SchedulingResult:
    """Load reference data, compute the schedule and replace the stored one.

    Raises:
        ReferenceDataError: If the snapshot cannot be loaded (nothing is written)
        PersistenceError: If the write phase fails
    """
    config = config or SchedulingConfig()
    snapshot = source.load_snapshot()
    result = SchedulingService(snapshot, timeline_start, config).schedule()
    replace_schedule(store, result.slots, config.insert_batch_size)
    return result


def _search(ctx: SchedulingContext, task: Task, min_start: datetime) -> SlotMatch | None:
    return find_earliest_slots(
        ctx.calendar,
        task.duration_minutes,
        task.skill,
        ctx.employees,
        min_start,
        ctx.reservations,
        ctx.config,
    )


def _warning(task: Task, kind: WarningKind, message: str) -> TaskWarning:
    return TaskWarning(task_id=task.id, project_id=task.project_id, kind=kind, message=message)
