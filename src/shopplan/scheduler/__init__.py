"""Scheduler package - calendar-aware batch scheduling of production tasks.

This package places each pending task on a workstation with a qualified
employee, honouring working hours, breaks, holidays and same-project limit
dependencies.

Main entry points:
- SchedulingService: Compute a full schedule for one snapshot
- run_batch: Load, schedule and persist in one call
- replace_schedule: Full-replace write of schedule records

Building blocks:
- CalendarResolver: Working days and daily windows per team
- split_into_segments: Break/day-aware splitting of a duration
- find_earliest_slots: Earliest feasible start with a free employee
- minimum_start: Dependency gate for HOLD tasks
- LaneAssigner: Stable lanes per (workstation, employee)
"""

# Calendar and slot arithmetic
from .calendar import CalendarResolver, WorkingWindow, day_of_week

# Completion risk
from .completion import (
    CompletionStatus,
    ProjectCompletion,
    classify_completion,
    summarize_completions,
)

# Configuration
from .config import SchedulingConfig

# Core dataclasses
from .core import (
    Blocked,
    EmployeeTimeBlock,
    HoldPassResult,
    Placement,
    Ready,
    Resolution,
    ScheduleSlot,
    SchedulingResult,
    Segment,
    SlotMatch,
    TaskWarning,
    WarningKind,
)

# Dependencies
from .dependencies import build_limit_map, minimum_start

# Employee matching
from .employees import EmployeeSchedule, eligible_employees, find_eligible

# Lanes
from .lanes import LaneAssigner

# Protocols
from .protocols import ReferenceDataSource, ScheduleStore
from .search import find_earliest_slots

# High-level service
from .service import (
    SchedulingContext,
    SchedulingService,
    expand_commitments,
    order_tasks,
    place_task,
    run_batch,
    run_hold_pass,
    select_projects,
)
from .slots import split_into_segments

# Persistence
from .store import (
    SCHEDULE_FILE_VERSION,
    InMemoryScheduleStore,
    YamlScheduleStore,
    read_schedule_file,
    replace_schedule,
)

__all__ = [
    # Core dataclasses
    "Segment",
    "EmployeeTimeBlock",
    "Ready",
    "Blocked",
    "Resolution",
    "SlotMatch",
    "Placement",
    "ScheduleSlot",
    "WarningKind",
    "TaskWarning",
    "HoldPassResult",
    "SchedulingResult",
    # Configuration
    "SchedulingConfig",
    # Calendar and slots
    "CalendarResolver",
    "WorkingWindow",
    "day_of_week",
    "split_into_segments",
    # Employees and search
    "EmployeeSchedule",
    "eligible_employees",
    "find_eligible",
    "find_earliest_slots",
    # Dependencies
    "build_limit_map",
    "minimum_start",
    # Lanes
    "LaneAssigner",
    # Completion
    "CompletionStatus",
    "ProjectCompletion",
    "classify_completion",
    "summarize_completions",
    # Protocols
    "ReferenceDataSource",
    "ScheduleStore",
    # High-level service
    "SchedulingContext",
    "SchedulingService",
    "expand_commitments",
    "order_tasks",
    "place_task",
    "run_batch",
    "run_hold_pass",
    "select_projects",
    # Persistence
    "SCHEDULE_FILE_VERSION",
    "InMemoryScheduleStore",
    "YamlScheduleStore",
    "read_schedule_file",
    "replace_schedule",
]
