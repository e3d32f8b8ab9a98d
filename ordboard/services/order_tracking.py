from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from ordboard.brc20 import build_order_payload
from ordboard.config import Settings
from ordboard.order_manager import (
    calculate_normalized_status_counts,
    filter_orders_by_search,
    filter_orders_by_status,
    get_order_status,
    is_active_order,
    normalize_upstream_order,
    sort_orders,
    validate_order_id,
)
from ordboard.order_status import StatusCounts, is_active_status
from ordboard.repository import Repository
from ordboard.services.mempool import MempoolClient
from ordboard.services.order_api import OrderApiClient, OrderApiError


logger = logging.getLogger(__name__)


@dataclass(slots=True)
class DashboardView:
    orders: list[dict[str, Any]]
    status_counts: StatusCounts
    active_order_count: int
    network: str
    refetch_interval: int | None = None


@dataclass(slots=True)
class StatusChange:
    order_id: str
    previous_status: str | None
    current_status: str


@dataclass(slots=True)
class PaymentCheck:
    address: str
    required_amount: int
    balance: int
    transactions: int

    @property
    def paid(self) -> bool:
        return self.balance > 0 or self.transactions > 0

    @property
    def fully_funded(self) -> bool:
        return self.balance >= self.required_amount


class OrderTrackingService:
    def __init__(
        self,
        repository: Repository,
        order_api: OrderApiClient,
        mempool: MempoolClient,
        settings: Settings,
    ):
        self.repository = repository
        self.order_api = order_api
        self.mempool = mempool
        self.settings = settings

    @property
    def network(self) -> str:
        return self.settings.network

    def tracked_order_ids(self) -> list[str]:
        ids = self.repository.list_tracked_order_ids(self.network)
        if ids:
            return ids
        defaults = self.settings.default_order_ids
        self.repository.replace_tracked_orders(self.network, defaults)
        return defaults

    def add_order_id(self, order_id: str) -> bool:
        validation = validate_order_id(order_id)
        if not validation.is_valid:
            logger.warning("Rejected order id %r: %s", order_id, validation.error)
            return False
        self.tracked_order_ids()
        added = self.repository.add_tracked_order(self.network, order_id)
        if added:
            self.repository.log_event("order_tracked", {"order_id": order_id, "network": self.network})
        return added

    def remove_order_id(self, order_id: str) -> bool:
        removed = self.repository.remove_tracked_order(self.network, order_id)
        if removed:
            self.repository.log_event("order_untracked", {"order_id": order_id, "network": self.network})
        return removed

    def reset_to_defaults(self) -> list[str]:
        defaults = self.settings.default_order_ids
        self.repository.replace_tracked_orders(self.network, defaults)
        return defaults

    def fetch_order(self, order_id: str) -> dict[str, Any] | None:
        try:
            raw = self.order_api.get_order(order_id)
        except OrderApiError as exc:
            logger.warning("Failed to fetch order %s: %s", order_id, exc)
            return None
        if not isinstance(raw, Mapping):
            logger.warning("Invalid order data for %s: %r", order_id, raw)
            return None
        return normalize_upstream_order(raw, order_id=order_id, network=self.network)

    def fetch_orders(self, order_ids: list[str]) -> list[dict[str, Any]]:
        orders = (self.fetch_order(order_id) for order_id in order_ids)
        return [order for order in orders if order is not None]

    def fetch_tracked_orders(self) -> list[dict[str, Any]]:
        return self.fetch_orders(self.tracked_order_ids())

    def build_dashboard(
        self,
        *,
        search: str | None = None,
        status_filter: str = "all",
        sort_by: str = "newest",
        direction: str = "desc",
        max_orders: int | None = None,
    ) -> DashboardView:
        orders = self.fetch_tracked_orders()
        view = filter_orders_by_search(orders, search)
        view = filter_orders_by_status(view, status_filter)
        view = sort_orders(view, sort_by, direction)
        if max_orders:
            view = view[:max_orders]
        return DashboardView(
            orders=list(view),
            status_counts=calculate_normalized_status_counts(orders),
            active_order_count=sum(1 for order in orders if is_active_order(order)),
            network=self.network,
            refetch_interval=self.refetch_interval(orders),
        )

    def refresh_active_orders(self) -> list[StatusChange]:
        """Re-fetch tracked orders that may still move and record status changes.

        Orders whose last snapshot is terminal are skipped.
        """
        changes: list[StatusChange] = []
        for order_id in self.tracked_order_ids():
            snapshot = self.repository.get_snapshot(order_id)
            previous = snapshot["status"] if snapshot else None
            if previous is not None and not is_active_status(previous):
                continue
            order = self.fetch_order(order_id)
            if order is None:
                continue
            current = get_order_status(order).value
            if current == previous:
                continue
            self.repository.save_snapshot(order_id, self.network, current)
            self.repository.log_event(
                "status_changed",
                {"order_id": order_id, "from": previous, "to": current, "network": self.network},
            )
            changes.append(StatusChange(order_id=order_id, previous_status=previous, current_status=current))
        return changes

    def refetch_interval(self, orders: list[Mapping[str, Any]] | None) -> int | None:
        if not orders:
            return None
        if any(is_active_order(order) for order in orders):
            return self.settings.poll_interval_seconds
        return None

    def check_payment(self, address: str, amount: int) -> PaymentCheck:
        balance = self.mempool.get_address_balance(address)
        return PaymentCheck(
            address=address,
            required_amount=amount,
            balance=balance.balance,
            transactions=balance.transactions,
        )

    def update_order(self, order_id: str, update: Mapping[str, Any]) -> dict[str, Any]:
        updated = self.order_api.update_order(order_id, dict(update))
        self.repository.log_event(
            "order_updated",
            {"order_id": order_id, "fields": sorted(update), "network": self.network},
        )
        return updated

    def cancel_order(self, order_id: str) -> dict[str, Any]:
        """Cancel upstream; the order stays tracked so its final state remains visible."""
        cancelled = self.order_api.cancel_order(order_id)
        self.repository.log_event("order_cancelled", {"order_id": order_id, "network": self.network})
        return cancelled

    def create_order(self, request: Mapping[str, Any]) -> dict[str, Any]:
        payload = build_order_payload(request, self.network)
        created = self.order_api.create_order(payload)
        order_id = created["orderId"]
        self.tracked_order_ids()
        self.repository.add_tracked_order(self.network, order_id)
        self.repository.log_event(
            "order_created",
            {"order_id": order_id, "type": request.get("type"), "network": self.network},
        )
        return created
