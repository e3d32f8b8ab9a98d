from __future__ import annotations

import pytest

from ordboard.progression import (
    STATUS_PROGRESSION_ORDER,
    build_status_timeline,
    get_next_status,
    get_progression_order,
    get_timeline_steps,
)


def test_progression_covers_every_status() -> None:
    assert len(STATUS_PROGRESSION_ORDER) == 15
    assert get_progression_order("confirming") == 1
    assert get_progression_order("error") == -1
    assert get_progression_order("nonsense") == 0
    assert get_progression_order(None) == 0


def test_next_status_walks_to_the_following_stage() -> None:
    assert get_next_status("pending") == "payment-received"
    assert get_next_status("confirming") == "confirmed"
    assert get_next_status("inscribing") == "completed"


def test_no_next_status_after_final_or_failure_stage() -> None:
    assert get_next_status("completed") is None
    assert get_next_status("success") is None
    assert get_next_status("cancelled") is None
    assert get_next_status("failed") is None


def test_timeline_steps() -> None:
    steps = get_timeline_steps()
    assert [step.label for step in steps] == ["Payment", "Confirmation", "Inscribing", "Complete"]
    assert [step.order for step in steps] == [0, 1, 2, 3]


def test_timeline_marks_current_stage() -> None:
    states = [entry.state for entry in build_status_timeline("inscribing")]
    assert states == ["complete", "complete", "current", "upcoming"]


def test_timeline_for_completed_order_keeps_last_step_current() -> None:
    states = [entry.state for entry in build_status_timeline("completed")]
    assert states == ["complete", "complete", "complete", "current"]


@pytest.mark.parametrize("status", ["failed", "cancelled"])
def test_timeline_for_failed_order(status: str) -> None:
    assert [entry.state for entry in build_status_timeline(status)] == ["failed"] * 4


def test_timeline_for_error_status_stays_upcoming() -> None:
    assert [entry.state for entry in build_status_timeline("error")] == ["upcoming"] * 4


def test_timeline_tolerates_odd_input() -> None:
    assert [entry.state for entry in build_status_timeline(None)] == ["current", "upcoming", "upcoming", "upcoming"]
    assert len(build_status_timeline(["failed"])) == 4
