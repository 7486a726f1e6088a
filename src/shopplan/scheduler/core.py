"""Core dataclasses for the scheduling engine."""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from shopplan.models import Employee, Task

    from .completion import ProjectCompletion


def _default_dict() -> dict[str, Any]:
    return {}


def _default_list() -> list[Any]:
    return []


SECONDS_PER_MINUTE = 60


@dataclass(frozen=True, order=True)
class Segment:
    """A contiguous, half-open stretch of work ``[start, end)``."""

    start: datetime
    end: datetime

    @property
    def minutes(self) -> int:
        """Length of the segment in whole minutes."""
        return int((self.end - self.start).total_seconds() // SECONDS_PER_MINUTE)

    def contains(self, instant: datetime) -> bool:
        """True if instant falls inside the half-open interval."""
        return self.start <= instant < self.end

    def overlaps(self, start: datetime, end: datetime) -> bool:
        """True if ``[start, end)`` intersects this segment."""
        return start < self.end and end > self.start


@dataclass(frozen=True)
class EmployeeTimeBlock:
    """A run-local reservation preventing double-booking of an employee."""

    employee_id: str
    start: datetime
    end: datetime
    task_id: str | None = None  # None for a recurring commitment


@dataclass(frozen=True)
class Ready:
    """Dependency resolution: the task may start at or after ``earliest``."""

    earliest: datetime


@dataclass(frozen=True)
class Blocked:
    """Dependency resolution: a prerequisite in the project is not scheduled yet."""

    waiting_on: str  # Id of the first unscheduled prerequisite task found


Resolution = Ready | Blocked


@dataclass(frozen=True)
class SlotMatch:
    """Result of an earliest-slot search: where the work goes and who does it."""

    segments: list[Segment]
    employee: "Employee"

    @property
    def start(self) -> datetime:
        return self.segments[0].start

    @property
    def end(self) -> datetime:
        return self.segments[-1].end


@dataclass
class Placement:
    """A task that has been given segments, an employee and a workstation."""

    task: "Task"
    workstation_id: str
    employee_id: str
    employee_name: str
    segments: list[Segment]

    @property
    def start(self) -> datetime:
        return self.segments[0].start

    @property
    def end(self) -> datetime:
        return self.segments[-1].end

    @property
    def scheduled_minutes(self) -> int:
        return sum(segment.minutes for segment in self.segments)


@dataclass(frozen=True)
class ScheduleSlot:
    """One output record: a single segment of a task on a workstation lane."""

    task_id: str
    workstation_id: str
    employee_id: str
    employee_name: str
    scheduled_date: date
    start: datetime
    end: datetime
    lane: int
    worker_index: int  # lane * multiplier + segment ordinal

    def to_row(self) -> dict[str, Any]:
        """Serialize to a flat, storage-friendly mapping."""
        return {
            "task_id": self.task_id,
            "workstation_id": self.workstation_id,
            "employee_id": self.employee_id,
            "employee_name": self.employee_name,
            "scheduled_date": self.scheduled_date.isoformat(),
            "start_time": self.start.isoformat(),
            "end_time": self.end.isoformat(),
            "lane": self.lane,
            "worker_index": self.worker_index,
        }

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "ScheduleSlot":
        """Inverse of to_row()."""
        return cls(
            task_id=str(row["task_id"]),
            workstation_id=str(row["workstation_id"]),
            employee_id=str(row["employee_id"]),
            employee_name=str(row.get("employee_name", "")),
            scheduled_date=date.fromisoformat(str(row["scheduled_date"])),
            start=datetime.fromisoformat(str(row["start_time"])),
            end=datetime.fromisoformat(str(row["end_time"])),
            lane=int(row["lane"]),
            worker_index=int(row["worker_index"]),
        )


class WarningKind(str, Enum):
    """Why a task was left out of the schedule."""

    UNSCHEDULABLE = "unschedulable"  # No employee/time found within the horizon
    UNRESOLVED_DEPENDENCY = "unresolved_dependency"  # Prerequisite never scheduled
    NO_WORKSTATION = "no_workstation"
    NO_SKILL = "no_skill"


@dataclass(frozen=True)
class TaskWarning:
    """A task omitted from the schedule, with the reason."""

    task_id: str
    project_id: str
    kind: WarningKind
    message: str

    def __str__(self) -> str:
        return self.message


@dataclass
class HoldPassResult:
    """Outcome of one pass over the pending HOLD tasks."""

    placements: list[Placement]
    pending: "list[Task]"
    warnings: list[TaskWarning]

    @property
    def made_progress(self) -> bool:
        """True if any task left the pending list during the pass."""
        return bool(self.placements or self.warnings)


@dataclass
class SchedulingResult:
    """Complete result of a scheduling run."""

    slots: list[ScheduleSlot]
    placements: list[Placement]
    completions: "list[ProjectCompletion]"
    warnings: list[TaskWarning]
    blocks: list[EmployeeTimeBlock] = field(default_factory=_default_list)  # Every reservation
    metadata: dict[str, Any] = field(default_factory=_default_dict)

    def slots_for_task(self, task_id: str) -> list[ScheduleSlot]:
        """All output segments belonging to one task, in time order."""
        return sorted((s for s in self.slots if s.task_id == task_id), key=lambda s: s.start)


def minutes(count: int) -> timedelta:
    """Shorthand for a whole-minute timedelta."""
    return timedelta(minutes=count)
