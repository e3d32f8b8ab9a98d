"""Status classification and aggregation for inscription orders.

Every function here is total: unknown, empty or ``None`` statuses resolve to
documented defaults instead of raising. ``get_status_config`` falls back to
the ``pending`` entry while ``categorize_order_status`` falls back to the
``failed`` category. The two defaults differ on purpose and both are pinned
by tests.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from ordboard.enums import ALL_STATUSES, OrderStatus, StatusCategory
from ordboard.progression import get_progression_order


@dataclass(frozen=True, slots=True)
class StatusConfig:
    label: str
    short_label: str
    category: StatusCategory
    color: str
    bg_color: str
    border_color: str
    description: str
    is_active: bool
    is_terminal: bool
    icon: str
    badge_variant: str
    progress_weight: int


ORDER_STATUS_CATEGORIES: dict[StatusCategory, tuple[str, ...]] = {
    # "failed" is a retryable payment failure and is bucketed with pending.
    StatusCategory.PENDING: (
        OrderStatus.PENDING.value,
        OrderStatus.PAYMENT_PENDING.value,
        OrderStatus.PAYMENT_RECEIVED.value,
        OrderStatus.CONFIRMING.value,
        OrderStatus.CONFIRMED.value,
        OrderStatus.INSCRIBING.value,
        OrderStatus.FAILED.value,
        OrderStatus.WAITING_PAYMENT.value,
        OrderStatus.PAYMENT_CONFIRMED.value,
        OrderStatus.READY.value,
        OrderStatus.PROCESSING.value,
    ),
    StatusCategory.CONFIRMED: (
        OrderStatus.COMPLETED.value,
        OrderStatus.SUCCESS.value,
    ),
    StatusCategory.FAILED: (
        OrderStatus.CANCELLED.value,
        OrderStatus.ERROR.value,
    ),
}


STATUS_CONFIG: dict[str, StatusConfig] = {
    OrderStatus.PENDING.value: StatusConfig(
        label="Pending",
        short_label="Pending",
        category=StatusCategory.PENDING,
        color="text-slate-400",
        bg_color="bg-slate-800/50",
        border_color="border-slate-600",
        description="Order created, waiting for payment",
        is_active=True,
        is_terminal=False,
        icon="Clock",
        badge_variant="outline",
        progress_weight=0,
    ),
    OrderStatus.PAYMENT_PENDING.value: StatusConfig(
        label="Payment Pending",
        short_label="Payment",
        category=StatusCategory.PENDING,
        color="text-cyan-400",
        bg_color="bg-cyan-900/30",
        border_color="border-cyan-500",
        description="Waiting for payment confirmation",
        is_active=True,
        is_terminal=False,
        icon="CreditCard",
        badge_variant="outline",
        progress_weight=0,
    ),
    OrderStatus.WAITING_PAYMENT.value: StatusConfig(
        label="Waiting Payment",
        short_label="Waiting",
        category=StatusCategory.PENDING,
        color="text-yellow-400",
        bg_color="bg-yellow-900/30",
        border_color="border-yellow-500",
        description="Waiting for payment to be sent",
        is_active=True,
        is_terminal=False,
        icon="Clock",
        badge_variant="outline",
        progress_weight=0,
    ),
    OrderStatus.PAYMENT_RECEIVED.value: StatusConfig(
        label="Payment Received",
        short_label="Paid",
        category=StatusCategory.PENDING,
        color="text-blue-400",
        bg_color="bg-blue-900/30",
        border_color="border-blue-500",
        description="Payment confirmed, processing order",
        is_active=True,
        is_terminal=False,
        icon="CheckCircle",
        badge_variant="default",
        progress_weight=25,
    ),
    OrderStatus.PAYMENT_CONFIRMED.value: StatusConfig(
        label="Payment Confirmed",
        short_label="Confirmed",
        category=StatusCategory.PENDING,
        color="text-blue-400",
        bg_color="bg-blue-900/30",
        border_color="border-blue-500",
        description="Payment has been confirmed",
        is_active=True,
        is_terminal=False,
        icon="CheckCircle",
        badge_variant="default",
        progress_weight=40,
    ),
    OrderStatus.CONFIRMING.value: StatusConfig(
        label="Confirming",
        short_label="Confirming",
        category=StatusCategory.PENDING,
        color="text-blue-400",
        bg_color="bg-blue-900/30",
        border_color="border-blue-500",
        description="Waiting for blockchain confirmations",
        is_active=True,
        is_terminal=False,
        icon="Loader2",
        badge_variant="default",
        progress_weight=50,
    ),
    OrderStatus.CONFIRMED.value: StatusConfig(
        label="Confirmed",
        short_label="Confirmed",
        category=StatusCategory.PENDING,
        color="text-blue-400",
        bg_color="bg-blue-900/30",
        border_color="border-blue-500",
        description="Payment confirmed, ready to inscribe",
        is_active=True,
        is_terminal=False,
        icon="CheckCircle",
        badge_variant="default",
        progress_weight=65,
    ),
    OrderStatus.READY.value: StatusConfig(
        label="Ready",
        short_label="Ready",
        category=StatusCategory.PENDING,
        color="text-blue-400",
        bg_color="bg-blue-900/30",
        border_color="border-blue-500",
        description="Ready for processing",
        is_active=True,
        is_terminal=False,
        icon="CheckCircle",
        badge_variant="default",
        progress_weight=60,
    ),
    OrderStatus.INSCRIBING.value: StatusConfig(
        label="Inscribing",
        short_label="Inscribing",
        category=StatusCategory.PENDING,
        color="text-purple-400",
        bg_color="bg-purple-900/30",
        border_color="border-purple-500",
        description="Creating inscription on Bitcoin",
        is_active=True,
        is_terminal=False,
        icon="Zap",
        badge_variant="default",
        progress_weight=85,
    ),
    OrderStatus.PROCESSING.value: StatusConfig(
        label="Processing",
        short_label="Processing",
        category=StatusCategory.PENDING,
        color="text-purple-400",
        bg_color="bg-purple-900/30",
        border_color="border-purple-500",
        description="Order is being processed",
        is_active=True,
        is_terminal=False,
        icon="Loader2",
        badge_variant="default",
        progress_weight=80,
    ),
    OrderStatus.COMPLETED.value: StatusConfig(
        label="Completed",
        short_label="Complete",
        category=StatusCategory.CONFIRMED,
        color="text-green-400",
        bg_color="bg-green-900/30",
        border_color="border-green-500",
        description="Inscription completed successfully",
        is_active=False,
        is_terminal=True,
        icon="CheckCircle",
        badge_variant="success",
        progress_weight=100,
    ),
    OrderStatus.SUCCESS.value: StatusConfig(
        label="Success",
        short_label="Success",
        category=StatusCategory.CONFIRMED,
        color="text-green-400",
        bg_color="bg-green-900/30",
        border_color="border-green-500",
        description="Order completed successfully",
        is_active=False,
        is_terminal=True,
        icon="CheckCircle",
        badge_variant="success",
        progress_weight=100,
    ),
    OrderStatus.FAILED.value: StatusConfig(
        label="Payment Failed",
        short_label="Failed",
        category=StatusCategory.PENDING,
        color="text-red-400",
        bg_color="bg-red-900/30",
        border_color="border-red-500",
        description="Payment failed - can be retried",
        is_active=True,
        is_terminal=False,
        icon="XCircle",
        badge_variant="destructive",
        progress_weight=0,
    ),
    OrderStatus.CANCELLED.value: StatusConfig(
        label="Cancelled",
        short_label="Cancelled",
        category=StatusCategory.FAILED,
        color="text-gray-400",
        bg_color="bg-gray-800/50",
        border_color="border-gray-600",
        description="Order was cancelled",
        is_active=False,
        is_terminal=True,
        icon="XCircle",
        badge_variant="outline",
        progress_weight=0,
    ),
    OrderStatus.ERROR.value: StatusConfig(
        label="Error",
        short_label="Error",
        category=StatusCategory.FAILED,
        color="text-red-400",
        bg_color="bg-red-900/30",
        border_color="border-red-500",
        description="Order encountered an error",
        is_active=False,
        is_terminal=True,
        icon="XCircle",
        badge_variant="destructive",
        progress_weight=0,
    ),
}


ATTENTION_STATUSES = frozenset(
    {
        OrderStatus.PENDING.value,
        OrderStatus.PAYMENT_PENDING.value,
        OrderStatus.WAITING_PAYMENT.value,
        OrderStatus.FAILED.value,
        OrderStatus.ERROR.value,
    }
)

_TIME_ESTIMATES: dict[str, str] = {
    OrderStatus.PAYMENT_PENDING.value: "Immediate",
    OrderStatus.WAITING_PAYMENT.value: "Immediate",
    OrderStatus.CONFIRMING.value: "10-30 minutes",
    OrderStatus.PAYMENT_CONFIRMED.value: "10-30 minutes",
    OrderStatus.INSCRIBING.value: "1-4 hours",
    OrderStatus.PROCESSING.value: "1-4 hours",
    OrderStatus.COMPLETED.value: "Complete",
    OrderStatus.SUCCESS.value: "Complete",
    OrderStatus.FAILED.value: "N/A",
    OrderStatus.CANCELLED.value: "N/A",
    OrderStatus.ERROR.value: "N/A",
}


def _lookup(status: Any) -> StatusConfig | None:
    if not isinstance(status, str):
        return None
    return STATUS_CONFIG.get(status)


def get_status_config(status: Any) -> StatusConfig:
    return _lookup(status) or STATUS_CONFIG[OrderStatus.PENDING.value]


def categorize_order_status(status: Any) -> StatusCategory:
    if not status or not isinstance(status, str):
        return StatusCategory.FAILED
    normalized = status.lower()
    for category, statuses in ORDER_STATUS_CATEGORIES.items():
        if normalized in statuses:
            return category
    return StatusCategory.FAILED


def is_terminal_status(status: Any) -> bool:
    config = _lookup(status)
    return config.is_terminal if config else False


def is_active_status(status: Any) -> bool:
    config = _lookup(status)
    return config.is_active if config else False


def get_status_progress(status: Any) -> int:
    config = _lookup(status)
    return config.progress_weight if config else 0


def get_status_time_estimate(status: Any) -> str:
    if not isinstance(status, str):
        return "Unknown"
    return _TIME_ESTIMATES.get(status, "Unknown")


def order_needs_attention(status: Any) -> bool:
    return isinstance(status, str) and status in ATTENTION_STATUSES


def format_status_display(
    status: Any,
    *,
    short: bool = False,
    with_icon: bool = False,
    with_color: bool = False,
) -> str | dict[str, str]:
    config = get_status_config(status)
    display = config.short_label if short else config.label
    if with_icon:
        display = f"{config.icon} {display}"
    if with_color:
        return {
            "text": display,
            "class_name": config.color,
            "bg_class_name": config.bg_color,
            "border_class_name": config.border_color,
        }
    return display


def get_status_badge_props(status: Any) -> dict[str, str]:
    config = get_status_config(status)
    return {
        "variant": config.badge_variant,
        "class_name": f"{config.color} {config.bg_color} {config.border_color}",
        "label": config.label,
    }


def timestamp_ms(value: Any) -> float:
    """Convert an ISO string or epoch-milliseconds value to milliseconds."""
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return 0.0
        return parsed.timestamp() * 1000
    return 0.0


@dataclass(slots=True)
class StatusCounts:
    all: int = 0
    by_status: dict[str, int] = field(default_factory=lambda: {status.value: 0 for status in OrderStatus})
    categorized: dict[str, int] = field(
        default_factory=lambda: {category.value: 0 for category in StatusCategory}
    )

    def __getitem__(self, status: str) -> int:
        return self.by_status[status]

    def as_dict(self) -> dict[str, Any]:
        return {"all": self.all, **self.by_status, "categorized": dict(self.categorized)}


def calculate_status_counts(orders: Iterable[Mapping[str, Any] | None]) -> StatusCounts:
    """Roll orders up into per-status and per-category counters.

    ``all`` counts every order with a truthy status, recognized or not, so it
    can exceed the sum of the per-status counters. ``categorized`` always sums
    to ``all``.
    """
    counts = StatusCounts()
    for order in orders:
        if not order:
            continue
        status = order.get("status")
        if not status:
            continue
        counts.all += 1
        if isinstance(status, str) and status in ALL_STATUSES:
            counts.by_status[status] += 1
        counts.categorized[categorize_order_status(status).value] += 1
    return counts


def filter_orders_by_category(
    orders: list[Mapping[str, Any]],
    category: str,
) -> list[Mapping[str, Any]]:
    if category == "all":
        return orders
    return [
        order
        for order in orders
        if order and order.get("status") and categorize_order_status(order["status"]) == category
    ]


def sort_orders_by_status(
    orders: Iterable[Mapping[str, Any]],
    direction: str = "desc",
) -> list[Mapping[str, Any]]:
    """Sort by lifecycle stage, then by creation time within a stage."""
    reverse = direction == "desc"
    return sorted(
        orders,
        key=lambda order: (
            get_progression_order(order.get("status")),
            timestamp_ms(order.get("createdAt")),
        ),
        reverse=reverse,
    )
