"""Tests for lane assignment and output records."""

from shopplan.scheduler.core import Placement, ScheduleSlot, Segment
from shopplan.scheduler.lanes import LaneAssigner
from tests.conftest import FRIDAY, MONDAY, NEXT_MONDAY, at, make_task


class TestLaneAssigner:
    """Tests for LaneAssigner."""

    def test_lanes_numbered_per_workstation(self):
        lanes = LaneAssigner()

        assert lanes.lane_index("ws1", "alice") == 0
        assert lanes.lane_index("ws1", "bob") == 1
        assert lanes.lane_index("ws2", "bob") == 0
        assert lanes.lane_index("ws1", "alice") == 0

        assert lanes.lanes() == {"ws1": {"alice": 0, "bob": 1}, "ws2": {"bob": 0}}

    def test_worker_index(self):
        lanes = LaneAssigner(multiplier=1000)
        assert lanes.worker_index(2, 3) == 2003

    def test_to_slots_one_record_per_segment(self):
        lanes = LaneAssigner()
        lanes.lane_index("ws1", "bob")
        placement = Placement(
            task=make_task("t1", "cut"),
            workstation_id="ws1",
            employee_id="alice",
            employee_name="Alice",
            segments=[
                Segment(at(FRIDAY, 15, 30), at(FRIDAY, 16)),
                Segment(at(NEXT_MONDAY, 8), at(NEXT_MONDAY, 9, 30)),
            ],
        )

        slots = lanes.to_slots(placement)

        assert [(s.scheduled_date, s.lane, s.worker_index) for s in slots] == [
            (FRIDAY, 1, 1000),
            (NEXT_MONDAY, 1, 1001),
        ]
        assert all(s.task_id == "t1" and s.employee_name == "Alice" for s in slots)


class TestScheduleSlotRows:
    """Tests for the flat record format."""

    def test_row_keys_and_values(self):
        slot = ScheduleSlot(
            task_id="t1",
            workstation_id="ws1",
            employee_id="alice",
            employee_name="Alice",
            scheduled_date=MONDAY,
            start=at(MONDAY, 8),
            end=at(MONDAY, 9),
            lane=0,
            worker_index=0,
        )

        row = slot.to_row()

        assert row["scheduled_date"] == "2025-01-06"
        assert row["start_time"] == "2025-01-06T08:00:00"
        assert row["end_time"] == "2025-01-06T09:00:00"
        assert ScheduleSlot.from_row(row) == slot
