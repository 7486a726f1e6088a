"""Stable lane assignment and conversion of placements to output records."""

from .core import Placement, ScheduleSlot


class LaneAssigner:
    """Assigns each (workstation, employee) pair a stable lane within its workstation.

    The first pair seen on a workstation gets lane 0, the next distinct pair
    lane 1, and so on. Assignments never change for the lifetime of the
    assigner, so one assigner is created per run.
    """

    def __init__(self, multiplier: int = 1000) -> None:
        self.multiplier = multiplier
        self._lanes: dict[str, dict[str, int]] = {}

    def lane_index(self, workstation_id: str, employee_id: str) -> int:
        """Return the lane for the pair, assigning the next free one on first sight."""
        lanes = self._lanes.setdefault(workstation_id, {})
        if employee_id not in lanes:
            lanes[employee_id] = len(lanes)
        return lanes[employee_id]

    def worker_index(self, lane: int, ordinal: int) -> int:
        """Per-segment disambiguator: lane * multiplier + segment ordinal."""
        return lane * self.multiplier + ordinal

    def lanes(self) -> dict[str, dict[str, int]]:
        """Snapshot of all assignments: workstation -> employee -> lane."""
        return {ws: dict(lanes) for ws, lanes in self._lanes.items()}

    def to_slots(self, placement: Placement) -> list[ScheduleSlot]:
        """Expand a placement into one output record per segment."""
        lane = self.lane_index(placement.workstation_id, placement.employee_id)
        return [
            ScheduleSlot(
                task_id=placement.task.id,
                workstation_id=placement.workstation_id,
                employee_id=placement.employee_id,
                employee_name=placement.employee_name,
                scheduled_date=segment.start.date(),
                start=segment.start,
                end=segment.end,
                lane=lane,
                worker_index=self.worker_index(lane, ordinal),
            )
            for ordinal, segment in enumerate(placement.segments)
        ]
