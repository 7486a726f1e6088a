"""Reference-data snapshot loading."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pydantic
import yaml

from .exceptions import MissingReferenceError, ReferenceDataError
from .logger import get_logger
from .models import Snapshot

logger = get_logger()


def load_snapshot(path: Path | str) -> Snapshot:
    """Load and validate a reference-data snapshot from YAML.

    Args:
        path: Path to the snapshot file

    Returns:
        Validated snapshot

    Raises:
        ReferenceDataError: If the file cannot be read, parsed or validated
        MissingReferenceError: If records reference unknown ids
    """
    path = Path(path)

    try:
        with path.open() as f:
            data: Any = yaml.safe_load(f)
    except OSError as e:
        raise ReferenceDataError(f"Cannot read snapshot {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ReferenceDataError(f"Invalid YAML in snapshot {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ReferenceDataError(
            f"Invalid snapshot format in {path}: expected a mapping, got {type(data).__name__}"
        )

    try:
        snapshot = Snapshot.model_validate(data)
    except pydantic.ValidationError as e:
        raise ReferenceDataError(f"Invalid snapshot {path}: {e}") from e

    validate_snapshot(snapshot)
    logger.checks(
        f"Loaded snapshot {path}: {len(snapshot.projects)} project(s), "
        f"{len(snapshot.tasks)} task(s), {len(snapshot.employees)} employee(s)"
    )
    return snapshot


def validate_snapshot(snapshot: Snapshot) -> None:
    """Check that tasks and commitments only reference known records."""
    project_ids = {project.id for project in snapshot.projects}
    for task in snapshot.tasks:
        if task.project_id not in project_ids:
            raise MissingReferenceError(
                f"Task {task.id} references unknown project: {task.project_id}"
            )

    employee_ids = {employee.id for employee in snapshot.employees}
    for commitment in snapshot.recurring_commitments:
        for employee_id in commitment.employee_ids:
            if employee_id not in employee_ids:
                raise MissingReferenceError(
                    f"Recurring commitment on day {commitment.day_of_week} "
                    f"references unknown employee: {employee_id}"
                )


class YamlSnapshotSource:
    """Reference-data source backed by a snapshot YAML file."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def load_snapshot(self) -> Snapshot:
        return load_snapshot(self.path)
