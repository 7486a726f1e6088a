"""Protocol definitions for the collaborators around the scheduling engine."""

from collections.abc import Sequence
from typing import Any, Protocol

from shopplan.models import Snapshot


class ReferenceDataSource(Protocol):
    """Supplies the read-only reference data for one run."""

    def load_snapshot(self) -> Snapshot:
        """Load projects, tasks, employees, calendar and dependency data.

        Raises:
            ReferenceDataError: If the data cannot be loaded; the run aborts
        """
        ...


class ScheduleStore(Protocol):
    """Persistence target for schedule records (full replace only)."""

    def delete_all(self) -> None:
        """Remove every previously stored schedule record."""
        ...

    def insert(self, rows: Sequence[dict[str, Any]]) -> None:
        """Insert one batch of schedule records."""
        ...
