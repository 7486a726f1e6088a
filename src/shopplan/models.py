"""Reference-data models consumed by the scheduler.

Everything here is read-only input: calendar rules, projects, tasks,
employee eligibility, limit dependencies and recurring commitments, all
supplied by the surrounding application as one snapshot per run.
"""

from __future__ import annotations

from datetime import date, time
from enum import Enum
from typing import Annotated, Any

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

DEFAULT_TEAM = "production"
DEFAULT_SEQUENCE = 999  # Tasks without a sequence number sort last
DEFAULT_DURATION_MINUTES = 60
MINUTES_PER_HOUR = 60


def _coerce_time(value: Any) -> Any:
    """Accept times written as unquoted YAML.

    YAML 1.1 reads an unquoted ``12:30`` as the base-60 integer 750, which is
    exactly the number of minutes since midnight.
    """
    if isinstance(value, int) and not isinstance(value, bool):
        hours, minutes = divmod(value, MINUTES_PER_HOUR)
        return time(hours, minutes)
    return value


ClockTime = Annotated[time, BeforeValidator(_coerce_time)]


class TaskStatus(str, Enum):
    """Lifecycle status of a production task."""

    TODO = "TODO"
    IN_PROGRESS = "IN_PROGRESS"
    HOLD = "HOLD"


class BreakInterval(BaseModel):
    """A rest break inside a working day."""

    start: ClockTime
    end: ClockTime

    @model_validator(mode="after")
    def validate_end_after_start(self) -> BreakInterval:
        """Ensure the break has a positive length."""
        if self.end <= self.start:
            raise ValueError("break end must be after break start")
        return self


class WorkingHoursRule(BaseModel):
    """Working window for one team on one day of the week.

    ``day_of_week`` follows the upstream convention: 0 = Sunday .. 6 = Saturday.
    """

    team: str = DEFAULT_TEAM
    day_of_week: int = Field(ge=0, le=6)
    start_time: ClockTime
    end_time: ClockTime
    breaks: list[BreakInterval] = Field(default_factory=list[BreakInterval])
    is_active: bool = True

    @model_validator(mode="after")
    def validate_window(self) -> WorkingHoursRule:
        """Ensure the working window has a positive length."""
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class Holiday(BaseModel):
    """A non-working calendar date for a team."""

    model_config = ConfigDict(populate_by_name=True)

    team: str = DEFAULT_TEAM
    day: date = Field(alias="date")


class Project(BaseModel):
    """A customer project with a target completion (installation) date."""

    id: str
    name: str = ""
    client: str = ""
    target_date: date
    status: str = "planned"


class Task(BaseModel):
    """A unit of production work waiting to be scheduled."""

    id: str
    title: str = ""
    duration_minutes: int = Field(default=DEFAULT_DURATION_MINUTES, gt=0)
    status: TaskStatus = TaskStatus.TODO
    skill: str | None = None  # Required skill (standard task) identifier
    project_id: str
    sequence: int = DEFAULT_SEQUENCE
    workstation_ids: list[str] = Field(default_factory=list)

    @property
    def is_on_hold(self) -> bool:
        """True if this task is gated by limit dependencies."""
        return self.status == TaskStatus.HOLD


class Employee(BaseModel):
    """An employee and the skills they may perform."""

    id: str
    name: str = ""
    skills: list[str] = Field(default_factory=list)

    def can_perform(self, skill: str | None) -> bool:
        """True if this employee is eligible for the given skill."""
        return skill is not None and skill in self.skills


class LimitDependency(BaseModel):
    """Prerequisite skills that must finish before ``skill`` may start.

    Scoped within a single project.
    """

    skill: str
    requires: list[str]

    @field_validator("requires", mode="before")
    @classmethod
    def coerce_single_requirement(cls, value: Any) -> Any:
        """Allow ``requires: cut`` as shorthand for ``requires: [cut]``."""
        if isinstance(value, str):
            return [value]
        return value


class RecurringCommitment(BaseModel):
    """A fixed weekly time reservation for one or more employees."""

    employee_ids: list[str]
    day_of_week: int = Field(ge=0, le=6)
    start_time: ClockTime
    end_time: ClockTime
    is_active: bool = True

    @model_validator(mode="after")
    def validate_window(self) -> RecurringCommitment:
        """Ensure the commitment has a positive length."""
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class Snapshot(BaseModel):
    """All reference data for one scheduling run."""

    working_hours: list[WorkingHoursRule] = Field(default_factory=list[WorkingHoursRule])
    holidays: list[Holiday] = Field(default_factory=list[Holiday])
    projects: list[Project] = Field(default_factory=list[Project])
    tasks: list[Task] = Field(default_factory=list[Task])
    employees: list[Employee] = Field(default_factory=list[Employee])
    limit_dependencies: list[LimitDependency] = Field(default_factory=list[LimitDependency])
    recurring_commitments: list[RecurringCommitment] = Field(
        default_factory=list[RecurringCommitment]
    )
    final_step_skill: str | None = None  # Skill marking a project's last production step

    @model_validator(mode="after")
    def validate_unique_ids(self) -> Snapshot:
        """Ensure project, task and employee ids are unique."""
        for label, ids in (
            ("project", [p.id for p in self.projects]),
            ("task", [t.id for t in self.tasks]),
            ("employee", [e.id for e in self.employees]),
        ):
            seen: set[str] = set()
            for item_id in ids:
                if item_id in seen:
                    raise ValueError(f"Duplicate {label} id '{item_id}'")
                seen.add(item_id)
        return self

    def tasks_by_project(self) -> dict[str, list[Task]]:
        """Group tasks by owning project id, preserving input order."""
        grouped: dict[str, list[Task]] = {}
        for task in self.tasks:
            grouped.setdefault(task.project_id, []).append(task)
        return grouped
