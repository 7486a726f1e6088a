"""Tests for scheduler debug output at different verbosity levels."""

from io import StringIO

from shopplan.logger import (
    changes_enabled,
    checks_enabled,
    debug_enabled,
    reset_logger,
    setup_logger,
)
from shopplan.models import TaskStatus
from shopplan.scheduler import SchedulingService
from tests.conftest import MONDAY, at, make_employee, make_snapshot, make_task


def run_with_verbosity(verbosity: int) -> str:
    snapshot = make_snapshot(
        tasks=[
            make_task("cut", "cut", duration=90),
            make_task("finish", "finish", status=TaskStatus.HOLD),
            make_task("weld", "weld", sequence=2),
        ],
        employees=[make_employee("alice", "cut", "finish")],
        dependencies={"finish": ["cut"]},
    )

    output_stream = StringIO()
    setup_logger(verbosity, stream=output_stream)
    try:
        SchedulingService(snapshot, at(MONDAY, 8)).schedule()
        return output_stream.getvalue()
    finally:
        reset_logger()


def test_verbosity_0_silent():
    """Verbosity 0 produces no scheduling output."""
    assert run_with_verbosity(0) == ""


def test_verbosity_1_shows_placements_and_warnings():
    output = run_with_verbosity(1)

    assert "Project p1" in output
    assert "Scheduled cut on ws1 with alice" in output
    assert "Scheduled finish on ws1 with alice" in output
    assert "Warning: Task 'weld' could not be scheduled" in output
    assert "Considering" not in output


def test_verbosity_2_shows_checks():
    output = run_with_verbosity(2)

    assert "Considering cut (sequence 1)" in output
    assert "HOLD pass 1: 1 pending task(s)" in output
    assert "finish ready after prerequisites ending" in output
    assert "Slot found" not in output


def test_verbosity_3_shows_slot_search():
    output = run_with_verbosity(3)

    assert "Slot found at" in output
    assert "No employee can perform skill 'weld'" in output


def test_enabled_helpers():
    setup_logger(2, stream=StringIO())
    try:
        assert changes_enabled()
        assert checks_enabled()
        assert not debug_enabled()
    finally:
        reset_logger()

    assert not changes_enabled()
