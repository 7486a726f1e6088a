"""Configuration classes for the scheduling engine."""

from pydantic import BaseModel, Field

from shopplan.models import DEFAULT_TEAM


class SchedulingConfig(BaseModel):
    """Tunables for one scheduling run."""

    # Calendar
    team: str = DEFAULT_TEAM  # Team whose working hours and holidays apply
    skip_weekends: bool = True  # Saturday/Sunday never count as working days

    # Earliest-slot search
    step_minutes: int = Field(default=15, gt=0)  # Candidate start increment within a day
    horizon_days: int = Field(default=365, gt=0)  # Calendar days searched before giving up
    max_slot_attempts_per_day: int = Field(default=100, gt=0)
    max_split_iterations: int = Field(default=1000, gt=0)  # Safety limit for the splitter

    # Dependency retry passes
    max_passes_per_project: int = Field(default=10, gt=0)
    max_total_passes: int = Field(default=100, gt=0)

    # Project selection
    project_limit: int | None = None  # Keep only the N most urgent projects
    active_statuses: list[str] = Field(default_factory=lambda: ["planned", "in_progress"])

    # Output
    lane_multiplier: int = Field(default=1000, gt=0)  # worker_index = lane * multiplier + ordinal
    insert_batch_size: int = Field(default=500, gt=0)

    # Completion risk
    at_risk_days: float = 3.0  # Less slack than this before the target date is "at risk"
