"""Completion-risk summaries comparing the final production step to target dates."""

import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date, datetime, time
from enum import Enum

from shopplan.models import Project

SECONDS_PER_DAY = 24 * 60 * 60


class CompletionStatus(str, Enum):
    """Risk classification of a project's production completion."""

    ON_TRACK = "on_track"
    AT_RISK = "at_risk"
    OVERDUE = "overdue"
    PENDING = "pending"  # Final production step not scheduled


@dataclass(frozen=True)
class ProjectCompletion:
    """Completion summary for one project."""

    project_id: str
    project_name: str
    client: str
    target_date: date
    last_step_end: datetime | None
    status: CompletionStatus
    days_remaining: int  # Whole days from the reference instant to the target date

    @property
    def slack_days(self) -> float | None:
        """Days between the final step's end and the target date, if scheduled."""
        if self.last_step_end is None:
            return None
        return _days_between(self.last_step_end, _target_instant(self.target_date))


def classify_completion(
    target_date: date, last_step_end: datetime | None, at_risk_days: float = 3.0
) -> CompletionStatus:
    """Classify a project by the slack left after its final production step.

    Overdue if the step ends after the start of the target date, at risk if
    fewer than at_risk_days remain, otherwise on track. Pending if unscheduled.
    """
    if last_step_end is None:
        return CompletionStatus.PENDING

    slack = _days_between(last_step_end, _target_instant(target_date))
    if slack < 0:
        return CompletionStatus.OVERDUE
    if slack < at_risk_days:
        return CompletionStatus.AT_RISK
    return CompletionStatus.ON_TRACK


def summarize_completions(
    projects: Iterable[Project],
    last_step_ends: Mapping[str, datetime],
    as_of: datetime,
    at_risk_days: float = 3.0,
) -> list[ProjectCompletion]:
    """Build a completion summary for each project, in the order given.

    Args:
        projects: Projects to summarize
        last_step_ends: Project id -> end of its last scheduled final-step task
        as_of: Reference instant for days_remaining
        at_risk_days: Slack threshold for the at-risk classification
    """
    summaries: list[ProjectCompletion] = []
    for project in projects:
        last_end = last_step_ends.get(project.id)
        summaries.append(
            ProjectCompletion(
                project_id=project.id,
                project_name=project.name,
                client=project.client,
                target_date=project.target_date,
                last_step_end=last_end,
                status=classify_completion(project.target_date, last_end, at_risk_days),
                days_remaining=math.floor(
                    _days_between(as_of, _target_instant(project.target_date))
                ),
            )
        )
    return summaries


def _target_instant(target_date: date) -> datetime:
    return datetime.combine(target_date, time.min)


def _days_between(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() / SECONDS_PER_DAY
