from __future__ import annotations

from dataclasses import dataclass

from ordboard.enums import OrderStatus


# Stage on the linear lifecycle; -1 marks the failure branch.
STATUS_PROGRESSION_ORDER: dict[str, int] = {
    OrderStatus.PENDING.value: 0,
    OrderStatus.PAYMENT_PENDING.value: 0,
    OrderStatus.WAITING_PAYMENT.value: 0,
    OrderStatus.PAYMENT_RECEIVED.value: 1,
    OrderStatus.PAYMENT_CONFIRMED.value: 1,
    OrderStatus.CONFIRMING.value: 1,
    OrderStatus.CONFIRMED.value: 2,
    OrderStatus.READY.value: 2,
    OrderStatus.INSCRIBING.value: 2,
    OrderStatus.PROCESSING.value: 2,
    OrderStatus.COMPLETED.value: 3,
    OrderStatus.SUCCESS.value: 3,
    OrderStatus.FAILED.value: -1,
    OrderStatus.CANCELLED.value: -1,
    OrderStatus.ERROR.value: -1,
}

FINAL_STAGE = 3
FAILED_TIMELINE_STATUSES = frozenset({OrderStatus.FAILED.value, OrderStatus.CANCELLED.value})


@dataclass(frozen=True, slots=True)
class TimelineStep:
    status: str
    label: str
    description: str
    order: int


@dataclass(frozen=True, slots=True)
class TimelineEntry:
    step: TimelineStep
    state: str


TIMELINE_STEPS: tuple[TimelineStep, ...] = (
    TimelineStep(OrderStatus.PAYMENT_PENDING.value, "Payment", "Waiting for payment", 0),
    TimelineStep(OrderStatus.CONFIRMING.value, "Confirmation", "Confirming transaction", 1),
    TimelineStep(OrderStatus.INSCRIBING.value, "Inscribing", "Creating inscription", 2),
    TimelineStep(OrderStatus.COMPLETED.value, "Complete", "Inscription ready", 3),
)


def get_progression_order(status: str | None) -> int:
    if not status or not isinstance(status, str):
        return 0
    return STATUS_PROGRESSION_ORDER.get(status, 0)


def get_next_status(current: str | None) -> str | None:
    """Return the first status of the stage after ``current``.

    Failure-branch and final-stage statuses have no successor.
    """
    stage = get_progression_order(current)
    if stage < 0 or stage >= FINAL_STAGE:
        return None
    for status, order in STATUS_PROGRESSION_ORDER.items():
        if order == stage + 1:
            return status
    return None


def get_timeline_steps() -> list[TimelineStep]:
    return list(TIMELINE_STEPS)


def build_status_timeline(status: str | None) -> list[TimelineEntry]:
    """Mark every timeline step as complete, current, upcoming or failed.

    Only ``failed`` and ``cancelled`` mark steps as failed. ``error`` sits on
    stage -1 like them, so every step stays upcoming. A finished order keeps
    its last step current.
    """
    stage = get_progression_order(status)
    failed = isinstance(status, str) and status in FAILED_TIMELINE_STATUSES
    entries: list[TimelineEntry] = []
    for step in TIMELINE_STEPS:
        if failed:
            state = "failed"
        elif step.order < stage:
            state = "complete"
        elif step.order == stage:
            state = "current"
        else:
            state = "upcoming"
        entries.append(TimelineEntry(step=step, state=state))
    return entries
