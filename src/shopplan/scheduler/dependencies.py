"""Limit-dependency resolution within a project."""

from collections.abc import Iterable, Mapping
from datetime import datetime

from shopplan.logger import get_logger
from shopplan.models import LimitDependency, Task

from .core import Blocked, Ready, Resolution

logger = get_logger()


def build_limit_map(dependencies: Iterable[LimitDependency]) -> dict[str, tuple[str, ...]]:
    """Merge dependency records into skill -> prerequisite skills.

    Duplicate records for the same skill are combined; first-seen order is kept.
    """
    merged: dict[str, list[str]] = {}
    for dependency in dependencies:
        prerequisites = merged.setdefault(dependency.skill, [])
        for required in dependency.requires:
            if required not in prerequisites:
                prerequisites.append(required)
    return {skill: tuple(required) for skill, required in merged.items()}


def minimum_start(
    task: Task,
    project_tasks: Iterable[Task],
    limit_map: Mapping[str, tuple[str, ...]],
    end_times: Mapping[str, datetime],
    timeline_start: datetime,
) -> Resolution:
    """Compute the earliest instant task may start given its limit dependencies.

    For each prerequisite skill, every other task of the same project carrying
    that skill must already have a recorded end time. Prerequisite skills with
    no task in the project do not block.

    Args:
        task: The gated task
        project_tasks: All tasks of the task's project
        limit_map: Skill -> prerequisite skills
        end_times: Task id -> scheduled end, for tasks placed so far
        timeline_start: Start of the scheduling timeline

    Returns:
        Ready(latest prerequisite end) or Ready(timeline_start) when nothing
        constrains the task, or Blocked if a prerequisite is still unscheduled
    """
    if task.skill is None:
        return Ready(timeline_start)

    prerequisites = limit_map.get(task.skill, ())
    if not prerequisites:
        return Ready(timeline_start)

    latest: datetime | None = None
    for other in project_tasks:
        if other.id == task.id or other.skill not in prerequisites:
            continue
        if other.project_id != task.project_id:
            continue

        end = end_times.get(other.id)
        if end is None:
            logger.checks(f"    {task.id} blocked: prerequisite {other.id} not scheduled yet")
            return Blocked(waiting_on=other.id)
        if latest is None or end > latest:
            latest = end

    if latest is None:
        return Ready(timeline_start)

    logger.checks(f"    {task.id} ready after prerequisites ending {latest}")
    return Ready(latest)
