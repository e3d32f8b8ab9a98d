"""Normalization of upstream order payloads.

The order service has reported status through ``status``, ``state`` or both,
with vocabularies that changed over time. ``get_order_status`` is the single
place that maps those onto ``OrderStatus``; unrecognized values always
resolve to ``pending``.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from ordboard.enums import OrderStatus, OrderType
from ordboard.order_status import (
    StatusCounts,
    calculate_status_counts,
    categorize_order_status,
    is_active_status,
    timestamp_ms,
)
from ordboard.progression import get_progression_order


# Sentinel some upstream responses put in ``status`` while ``state`` carries the real value.
GENERIC_STATUS = "ok"

STATE_MAP: dict[str, OrderStatus] = {
    "waiting-payment": OrderStatus.PAYMENT_PENDING,
    "pending": OrderStatus.PENDING,
    "confirming": OrderStatus.CONFIRMING,
    "inscribing": OrderStatus.INSCRIBING,
    "completed": OrderStatus.COMPLETED,
    "failed": OrderStatus.FAILED,
    "cancelled": OrderStatus.CANCELLED,
}

STATUS_MAP: dict[str, OrderStatus] = {
    "waiting-payment": OrderStatus.PAYMENT_PENDING,
    "payment-confirmed": OrderStatus.PAYMENT_RECEIVED,
    "ready": OrderStatus.CONFIRMED,
    "processing": OrderStatus.INSCRIBING,
    "success": OrderStatus.COMPLETED,
    "error": OrderStatus.FAILED,
    "pending": OrderStatus.PENDING,
    "payment-pending": OrderStatus.PAYMENT_PENDING,
    "payment-received": OrderStatus.PAYMENT_RECEIVED,
    "confirming": OrderStatus.CONFIRMING,
    "confirmed": OrderStatus.CONFIRMED,
    "inscribing": OrderStatus.INSCRIBING,
    "completed": OrderStatus.COMPLETED,
    "failed": OrderStatus.FAILED,
    "cancelled": OrderStatus.CANCELLED,
}

ORDER_TYPE_TITLES: dict[str, str] = {
    OrderType.INSCRIPTION.value: "Inscription",
    OrderType.BRC20_MINT.value: "BRC-20 Mint",
    OrderType.BRC20_TRANSFER.value: "BRC-20 Transfer",
    OrderType.BRC20_DEPLOY.value: "BRC-20 Deploy",
    OrderType.COLLECTION.value: "Collection",
    OrderType.BULK.value: "Bulk Order",
}

SORT_FIELDS = ("newest", "createdAt", "status", "amount", "type")

_UUID_RE = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE)


@dataclass(frozen=True, slots=True)
class ValidationResult:
    is_valid: bool
    error: str | None = None


def _field(order: Any, key: str) -> Any:
    if isinstance(order, Mapping):
        return order.get(key)
    return None


def _lookup(table: dict[str, OrderStatus], value: Any) -> OrderStatus:
    if isinstance(value, str):
        return table.get(value, OrderStatus.PENDING)
    return OrderStatus.PENDING


def get_order_status(order: Any) -> OrderStatus:
    state = _field(order, "state")
    status = _field(order, "status")
    if state and (not status or status == GENERIC_STATUS):
        return _lookup(STATE_MAP, state)
    return _lookup(STATUS_MAP, status or OrderStatus.PENDING.value)


def is_active_order(order: Any) -> bool:
    return is_active_status(get_order_status(order))


def get_active_orders(orders: Iterable[Mapping[str, Any]]) -> list[Mapping[str, Any]]:
    return [order for order in orders if is_active_order(order)]


def calculate_normalized_status_counts(orders: Iterable[Mapping[str, Any]]) -> StatusCounts:
    normalized = [{**order, "status": get_order_status(order).value} for order in orders if order]
    return calculate_status_counts(normalized)


def get_order_type_display(order_type: Any) -> str:
    if isinstance(order_type, str) and order_type in ORDER_TYPE_TITLES:
        return ORDER_TYPE_TITLES[order_type]
    return order_type if isinstance(order_type, str) and order_type else "Order"


def _summarize_items(items: list[Any], name_keys: tuple[str, str], single: str, noun: str) -> str:
    if len(items) == 1:
        first = items[0] if isinstance(items[0], Mapping) else {}
        return first.get(name_keys[0]) or first.get(name_keys[1]) or single
    return f"{len(items)} {noun}"


def get_order_description(order: Any) -> str:
    """Describe an order for list views.

    Falls back from BRC-20 details to inscriptions, then raw files, then the
    order type label.
    """
    details = _field(order, "brc20Details")
    if isinstance(details, Mapping) and details.get("ticker"):
        operation = details.get("operation")
        operation_text = operation.upper() if isinstance(operation, str) and operation else "UNKNOWN"
        amount = details.get("amount")
        amount_text = f" {amount}" if amount else ""
        return f"{operation_text}{amount_text} {details['ticker']}".strip()

    inscriptions = _field(order, "inscriptions")
    if isinstance(inscriptions, list) and inscriptions:
        return _summarize_items(inscriptions, ("fileName", "fileType"), "Single inscription", "inscriptions")

    files = _field(order, "files")
    if isinstance(files, list) and files:
        return _summarize_items(files, ("name", "type"), "Single file", "files")

    return get_order_type_display(_field(order, "type"))


def _sort_key(order: Mapping[str, Any], sort_by: str) -> Any:
    if sort_by in ("newest", "createdAt"):
        return timestamp_ms(order.get("createdAt"))
    if sort_by == "status":
        return get_progression_order(get_order_status(order).value)
    if sort_by == "amount":
        amount = order.get("paymentAmount")
        return amount if isinstance(amount, (int, float)) else 0
    return str(order.get("type") or "")


def sort_orders(
    orders: Iterable[Mapping[str, Any]],
    sort_by: str = "newest",
    direction: str = "desc",
) -> list[Mapping[str, Any]]:
    result = list(orders)
    if sort_by not in SORT_FIELDS:
        return result
    return sorted(result, key=lambda order: _sort_key(order, sort_by), reverse=direction != "asc")


def filter_orders_by_search(orders: list[Mapping[str, Any]], query: str | None) -> list[Mapping[str, Any]]:
    if not query or not query.strip():
        return orders
    needle = query.strip().lower()

    def matches(order: Mapping[str, Any]) -> bool:
        details = order.get("brc20Details")
        ticker = details.get("ticker") if isinstance(details, Mapping) else None
        candidates = (order.get("id"), order.get("type"), ticker)
        return any(isinstance(value, str) and needle in value.lower() for value in candidates)

    return [order for order in orders if matches(order)]


def filter_orders_by_status(orders: list[Mapping[str, Any]], status_filter: str) -> list[Mapping[str, Any]]:
    if status_filter == "all":
        return orders
    return [order for order in orders if get_order_status(order) == status_filter]


def filter_orders_by_category(orders: list[Mapping[str, Any]], category: str) -> list[Mapping[str, Any]]:
    if category == "all":
        return orders
    return [order for order in orders if categorize_order_status(get_order_status(order).value) == category]


def validate_order_id(order_id: Any) -> ValidationResult:
    if not order_id or not isinstance(order_id, str):
        return ValidationResult(is_valid=False, error="Order ID is required")
    if not _UUID_RE.match(order_id):
        return ValidationResult(is_valid=False, error="Please enter a valid UUID format order ID")
    return ValidationResult(is_valid=True)


def normalize_upstream_order(raw: Mapping[str, Any], order_id: str, network: str) -> dict[str, Any]:
    """Build the dashboard order shape out of an order API payload."""
    data = raw.get("data") if isinstance(raw.get("data"), Mapping) else raw
    charge = data.get("charge") or {}
    fee_charge = data.get("feeCharge") or {}
    created_at = data.get("createdAt") or data.get("timestamp")
    payment_amount = data.get("paymentAmount") or charge.get("amount") or fee_charge.get("amount") or 0
    order = {
        "id": data.get("id") or order_id,
        "type": data.get("type") or OrderType.INSCRIPTION.value,
        "state": data.get("state"),
        "createdAt": created_at,
        "updatedAt": data.get("updatedAt") or created_at,
        "paymentAddress": data.get("paymentAddress") or charge.get("address") or fee_charge.get("address") or "",
        "paymentAmount": payment_amount,
        "feeRate": data.get("feeRate") or 15,
        "totalFee": data.get("totalFee") or data.get("fee") or payment_amount,
        "receiveAddress": data.get("receiveAddress") or data.get("paymentAddress") or "",
        "network": network,
        "txid": data.get("txid"),
        "inscriptionId": data.get("inscriptionId"),
        "inscriptionNumber": data.get("inscriptionNumber"),
        "confirmations": data.get("confirmations"),
        "files": data.get("files"),
        "inscriptions": data.get("inscriptions"),
        "brc20Details": data.get("brc20Details"),
    }
    order["status"] = get_order_status({"status": data.get("status"), "state": data.get("state")}).value
    return order
