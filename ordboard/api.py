from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Any

import httpx
from fastapi import FastAPI, HTTPException

from ordboard.bitcoin import (
    InsufficientFundsError,
    calculate_fee,
    estimate_inscription_fee,
    filter_spendable_utxos,
    format_btc,
    format_sats,
    select_utxos,
)
from ordboard.brc20 import OrderValidationError, get_address_type, get_network_from_address
from ordboard.enums import OrderStatus
from ordboard.order_manager import get_order_description, validate_order_id
from ordboard.order_status import (
    categorize_order_status,
    get_status_config,
    get_status_time_estimate,
    order_needs_attention,
)
from ordboard.progression import build_status_timeline, get_next_status
from ordboard.runtime import AppContainer
from ordboard.services.order_api import OrderApiError


logger = logging.getLogger(__name__)


def _order_api_http_error(exc: OrderApiError) -> HTTPException:
    status_code = 404 if exc.status_code == 404 else 502
    return HTTPException(status_code=status_code, detail=str(exc))


def _require_order_id(order_id: str) -> None:
    validation = validate_order_id(order_id)
    if not validation.is_valid:
        raise HTTPException(status_code=400, detail=validation.error)


def _status_payload(status: str) -> dict[str, Any]:
    config = asdict(get_status_config(status))
    config["category"] = str(config["category"])
    return {
        "status": status,
        "config": config,
        "category": categorize_order_status(status).value,
        "time_estimate": get_status_time_estimate(status),
        "next_status": get_next_status(status),
        "needs_attention": order_needs_attention(status),
    }


def _order_payload(order: dict[str, Any]) -> dict[str, Any]:
    return {
        **order,
        "description": get_order_description(order),
        "statusInfo": _status_payload(order["status"]),
        "timeline": [
            {**asdict(entry.step), "state": entry.state} for entry in build_status_timeline(order["status"])
        ],
    }


def create_api(container: AppContainer) -> FastAPI:
    app = FastAPI(title="ordboard API")
    tracking = container.tracking

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok", "network": container.settings.network}

    @app.get("/statuses")
    async def list_statuses() -> dict[str, Any]:
        return {"success": True, "data": [_status_payload(status.value) for status in OrderStatus]}

    @app.get("/statuses/{status}")
    async def status_info(status: str) -> dict[str, Any]:
        return {"success": True, "data": _status_payload(status)}

    @app.get("/orders")
    def list_orders(
        search: str | None = None,
        status: str = "all",
        sort_by: str = "newest",
        direction: str = "desc",
        limit: int | None = None,
    ) -> dict[str, Any]:
        view = tracking.build_dashboard(
            search=search,
            status_filter=status,
            sort_by=sort_by,
            direction=direction,
            max_orders=limit,
        )
        return {
            "success": True,
            "data": [_order_payload(order) for order in view.orders],
            "network": view.network,
            "refetch_interval": view.refetch_interval,
        }

    @app.get("/orders/summary")
    def orders_summary() -> dict[str, Any]:
        view = tracking.build_dashboard()
        return {
            "success": True,
            "data": {
                "status_counts": view.status_counts.as_dict(),
                "active_order_count": view.active_order_count,
                "tracked_order_ids": tracking.tracked_order_ids(),
            },
            "network": view.network,
        }

    @app.post("/orders", status_code=201)
    def create_order(payload: dict[str, Any]) -> dict[str, Any]:
        try:
            created = tracking.create_order(payload)
        except OrderValidationError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except OrderApiError as exc:
            logger.error("Order creation failed: %s", exc)
            raise HTTPException(status_code=502, detail=str(exc)) from exc
        return {"success": True, "data": created}

    @app.post("/orders/tracked", status_code=201)
    async def track_order(payload: dict[str, Any]) -> dict[str, Any]:
        order_id = payload.get("orderId")
        _require_order_id(order_id)
        if not tracking.add_order_id(order_id):
            raise HTTPException(status_code=409, detail="This order is already in your tracking list")
        return {"success": True, "data": tracking.tracked_order_ids()}

    @app.post("/orders/tracked/reset")
    async def reset_tracked_orders() -> dict[str, Any]:
        return {"success": True, "data": tracking.reset_to_defaults()}

    @app.delete("/orders/tracked/{order_id}")
    async def untrack_order(order_id: str) -> dict[str, Any]:
        if not tracking.remove_order_id(order_id):
            raise HTTPException(status_code=404, detail="Order is not tracked")
        return {"success": True, "data": tracking.tracked_order_ids()}

    @app.get("/orders/{order_id}")
    def get_order(order_id: str) -> dict[str, Any]:
        order = tracking.fetch_order(order_id)
        if order is None:
            raise HTTPException(status_code=404, detail="Order not found")
        return {"success": True, "data": _order_payload(order)}

    @app.put("/orders/{order_id}")
    def update_order(order_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        _require_order_id(order_id)
        if not payload:
            raise HTTPException(status_code=400, detail="Update body required")
        try:
            updated = tracking.update_order(order_id, payload)
        except OrderApiError as exc:
            raise _order_api_http_error(exc) from exc
        return {"success": True, "data": updated}

    @app.delete("/orders/{order_id}")
    def cancel_order(order_id: str) -> dict[str, Any]:
        _require_order_id(order_id)
        try:
            cancelled = tracking.cancel_order(order_id)
        except OrderApiError as exc:
            raise _order_api_http_error(exc) from exc
        return {"success": True, "data": cancelled}

    @app.get("/blockchain/height")
    def block_height() -> dict[str, Any]:
        try:
            height = container.mempool.get_block_height()
        except httpx.HTTPError as exc:
            raise HTTPException(status_code=502, detail=f"Mempool API error: {exc}") from exc
        return {"success": True, "data": {"blockHeight": height, "network": container.settings.network}}

    @app.get("/blockchain/fees")
    def recommended_fees() -> dict[str, Any]:
        try:
            fees = container.mempool.get_recommended_fees()
        except httpx.HTTPError as exc:
            raise HTTPException(status_code=502, detail=f"Mempool API error: {exc}") from exc
        return {"success": True, "data": asdict(fees)}

    @app.get("/blockchain/fee-estimate")
    def fee_estimate(content_size: int, fee_rate: float | None = None) -> dict[str, Any]:
        """Inscription fee plus a one-input commit transaction at ``fee_rate`` sat/vB."""
        if content_size < 0:
            raise HTTPException(status_code=400, detail="content_size must not be negative")
        if fee_rate is None:
            try:
                fee_rate = container.mempool.get_recommended_fees().half_hour_fee
            except httpx.HTTPError as exc:
                raise HTTPException(status_code=502, detail=f"Mempool API error: {exc}") from exc
        elif fee_rate <= 0:
            raise HTTPException(status_code=400, detail="fee_rate must be positive")
        inscription_fee = estimate_inscription_fee(content_size, fee_rate)
        commit_fee = calculate_fee(1, 2, fee_rate)
        total = inscription_fee + commit_fee
        return {
            "success": True,
            "data": {
                "content_size": content_size,
                "fee_rate": fee_rate,
                "inscription_fee": inscription_fee,
                "commit_fee": commit_fee,
                "total_fee": total,
                "total_fee_display": format_sats(total),
                "total_fee_btc": format_btc(total),
            },
        }

    @app.get("/blockchain/address/{address}")
    def address_balance(address: str) -> dict[str, Any]:
        try:
            balance = container.mempool.get_address_balance(address)
        except httpx.HTTPError as exc:
            raise HTTPException(status_code=502, detail=f"Mempool API error: {exc}") from exc
        return {
            "success": True,
            "data": {
                **asdict(balance),
                "has_balance": balance.has_balance,
                "has_transactions": balance.has_transactions,
                "address_type": get_address_type(address),
                "address_network": get_network_from_address(address),
            },
        }

    @app.get("/blockchain/address/{address}/utxos")
    def address_utxos(address: str, amount: int, fee_rate: float) -> dict[str, Any]:
        try:
            utxos = container.mempool.get_address_utxos(address)
        except httpx.HTTPError as exc:
            raise HTTPException(status_code=502, detail=f"Mempool API error: {exc}") from exc
        try:
            selection = select_utxos(utxos, amount, fee_rate)
        except InsufficientFundsError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return {
            "success": True,
            "data": {
                **asdict(selection),
                "spendable_count": len(filter_spendable_utxos(utxos)),
            },
        }

    @app.get("/payments/check")
    def check_payment(address: str, amount: int = 0) -> dict[str, Any]:
        try:
            result = tracking.check_payment(address, amount)
        except httpx.HTTPError as exc:
            raise HTTPException(status_code=502, detail=f"Mempool API error: {exc}") from exc
        return {
            "success": True,
            "data": {**asdict(result), "paid": result.paid, "fully_funded": result.fully_funded},
        }

    @app.get("/price")
    def btc_price() -> dict[str, Any]:
        quote = container.price.get_btc_price()
        return {"success": not quote.fallback, "data": asdict(quote), "network": container.settings.network}

    return app
