from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

import httpx

from ordboard.config import Settings


logger = logging.getLogger(__name__)


@dataclass(slots=True)
class OrderApiError(Exception):
    message: str
    status_code: int | None = None

    def __str__(self) -> str:
        if self.status_code is not None:
            return f"Order API error {self.status_code}: {self.message}"
        return self.message


class OrderApiClient:
    """Bearer-authenticated client for the upstream inscription order service."""

    def __init__(self, settings: Settings, client: httpx.Client | None = None):
        self.settings = settings
        self._client = client or httpx.Client(
            base_url=settings.order_api_url,
            timeout=settings.http_timeout_seconds,
        )

    def close(self) -> None:
        self._client.close()

    def _request(self, method: str, path: str, payload: dict[str, Any] | None = None) -> Any:
        if not self.settings.order_api_key:
            raise OrderApiError("Order API key is not configured")
        headers = {
            "Authorization": f"Bearer {self.settings.order_api_key}",
            "Content-Type": "application/json",
        }
        try:
            response = self._client.request(method, path, json=payload, headers=headers)
        except httpx.HTTPError as exc:
            raise OrderApiError(f"Order API request failed: {exc}") from exc

        if response.is_error:
            raise OrderApiError(response.text, status_code=response.status_code)
        try:
            return response.json()
        except ValueError as exc:
            raise OrderApiError(f"Invalid JSON response: {response.text}") from exc

    def get_order(self, order_id: str) -> dict[str, Any]:
        return self._request("GET", f"/order?id={quote(order_id)}")

    def create_order(self, payload: dict[str, Any]) -> dict[str, Any]:
        data = self._request("POST", "/order", payload)
        body = data.get("data") if isinstance(data.get("data"), dict) else data
        order_id = body.get("id")
        if not order_id:
            raise OrderApiError("Order API response did not include an order id")
        logger.info("Created upstream order %s", order_id)
        return {
            "orderId": order_id,
            "paymentAddress": body.get("paymentAddress") or (body.get("charge") or {}).get("address"),
            "amount": body.get("amount") or (body.get("charge") or {}).get("amount") or payload.get("fee"),
            "feeRate": body.get("feeRate") or payload.get("fee"),
            "network": self.settings.network,
        }

    def update_order(self, order_id: str, update: dict[str, Any]) -> dict[str, Any]:
        data = self._request("PUT", f"/order/{quote(order_id)}", update)
        return data.get("data") if isinstance(data.get("data"), dict) else data

    def cancel_order(self, order_id: str) -> dict[str, Any]:
        data = self._request("DELETE", f"/order/{quote(order_id)}")
        return data.get("data") if isinstance(data.get("data"), dict) else data
