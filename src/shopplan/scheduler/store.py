"""Full-replace persistence of schedule records.

A run's output replaces the previous result wholesale: every stored record
is deleted, then the new records are inserted in batches. A failure in
either phase raises PersistenceError naming the phase and the failed batch
so an operator can retry the whole computation.
"""

from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING, Any, cast

import yaml

from shopplan.exceptions import PersistenceError
from shopplan.logger import get_logger

from .core import ScheduleSlot

if TYPE_CHECKING:
    from .protocols import ScheduleStore

logger = get_logger()

SCHEDULE_FILE_VERSION = 1


class InMemoryScheduleStore:
    """Holds schedule records in a list."""

    def __init__(self, rows: list[dict[str, Any]] | None = None) -> None:
        self.rows: list[dict[str, Any]] = list(rows or [])

    def delete_all(self) -> None:
        self.rows.clear()

    def insert(self, rows: Sequence[dict[str, Any]]) -> None:
        self.rows.extend(dict(row) for row in rows)


class YamlScheduleStore:
    """Stores schedule records in a versioned YAML document."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def delete_all(self) -> None:
        self._write([])

    def insert(self, rows: Sequence[dict[str, Any]]) -> None:
        existing = _read_rows(self.path) if self.path.exists() else []
        self._write(existing + [dict(row) for row in rows])

    def _write(self, rows: list[dict[str, Any]]) -> None:
        output: dict[str, Any] = {
            "version": SCHEDULE_FILE_VERSION,
            "schedules": rows,
        }
        with self.path.open("w") as f:
            yaml.safe_dump(output, f, default_flow_style=False, sort_keys=False)


def replace_schedule(
    store: "ScheduleStore",
    slots: Sequence[ScheduleSlot],
    batch_size: int = 500,
) -> int:
    """Replace everything in store with slots.

    Args:
        store: Persistence target
        slots: New schedule records
        batch_size: Records per insert call

    Returns:
        Number of records written

    Raises:
        PersistenceError: If the delete or any insert batch fails
    """
    try:
        store.delete_all()
    except Exception as e:
        raise PersistenceError(
            f"Failed to delete previous schedule: {e}", delete_completed=False
        ) from e

    rows = [slot.to_row() for slot in slots]
    inserted = 0
    for batch_index, offset in enumerate(range(0, len(rows), batch_size)):
        batch = rows[offset : offset + batch_size]
        try:
            store.insert(batch)
        except Exception as e:
            raise PersistenceError(
                f"Failed to insert schedule batch {batch_index} "
                f"(rows {offset}-{offset + len(batch) - 1}) after {inserted} rows: {e}",
                batch_index=batch_index,
                delete_completed=True,
                inserted_count=inserted,
            ) from e
        inserted += len(batch)

    logger.changes(f"Wrote {inserted} schedule records")
    return inserted


def read_schedule_file(path: Path) -> list[ScheduleSlot]:
    """Load schedule records written by YamlScheduleStore.

    Raises:
        ValueError: If the file format is invalid or the version is unsupported
    """
    return [ScheduleSlot.from_row(row) for row in _read_rows(Path(path))]


def _read_rows(path: Path) -> list[dict[str, Any]]:
    with path.open() as f:
        raw_data: Any = yaml.safe_load(f)

    if not isinstance(raw_data, dict):
        raise ValueError(f"Invalid schedule file format: expected dict, got {type(raw_data)}")

    data = cast(dict[str, Any], raw_data)

    version = data.get("version")
    if version is None:
        raise ValueError("Schedule file missing 'version' field")
    if version != SCHEDULE_FILE_VERSION:
        raise ValueError(
            f"Unsupported schedule file version {version}, expected {SCHEDULE_FILE_VERSION}"
        )

    raw_rows = data.get("schedules") or []
    if not isinstance(raw_rows, list):
        raise ValueError("Schedule file 'schedules' field must be a list")

    rows: list[dict[str, Any]] = []
    for row in cast(list[Any], raw_rows):
        if not isinstance(row, dict):
            raise ValueError(f"Schedule record must be a dict, got {type(row)}")
        rows.append(cast(dict[str, Any], row))
    return rows
