from __future__ import annotations

import json
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import httpx
import pytest

from ordboard.config import Settings
from ordboard.db import init_db
from ordboard.repository import Repository
from ordboard.runtime import AppContainer
from ordboard.services.mempool import MempoolClient
from ordboard.services.order_api import OrderApiClient
from ordboard.services.order_tracking import OrderTrackingService
from ordboard.services.price import PriceClient


ORDER_A = "11111111-1111-4111-8111-111111111111"
ORDER_B = "22222222-2222-4222-8222-222222222222"
ORDER_C = "33333333-3333-4333-8333-333333333333"


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    db_path = tmp_path / "test.sqlite3"
    return Settings(
        use_testnet=False,
        order_api_key="test-key",
        order_api_base_url="https://orders.test",
        mempool_api_url_mainnet="https://mempool.test/api",
        mempool_api_url_testnet="https://mempool.test/testnet/api",
        coingecko_api_url="https://prices.test/api/v3",
        database_path=str(db_path),
        web_host="127.0.0.1",
        web_port=8080,
        poll_interval_seconds=30,
        http_timeout_seconds=5.0,
        default_order_ids_mainnet=[ORDER_A, ORDER_B],
        default_order_ids_testnet=[ORDER_C],
    )


class FakeUpstream:
    """In-memory stand-in for the order, mempool and price services."""

    def __init__(self) -> None:
        self.orders: dict[str, dict[str, Any]] = {}
        self.created: list[dict[str, Any]] = []
        self.addresses: dict[str, dict[str, Any]] = {}
        self.utxos: dict[str, list[dict[str, Any]]] = {}
        self.updates: list[tuple[str, dict[str, Any]]] = []
        self.price_status = 200
        self.requests: list[httpx.Request] = []

    def order_handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path == "/order" and request.method == "GET":
            order_id = request.url.params.get("id")
            if order_id not in self.orders:
                return httpx.Response(404, text="order not found")
            return httpx.Response(200, json=self.orders[order_id])
        if request.url.path == "/order" and request.method == "POST":
            payload = json.loads(request.content)
            self.created.append(payload)
            return httpx.Response(
                200,
                json={"id": ORDER_C, "charge": {"address": "bc1qpayment", "amount": 21000}},
            )
        if request.url.path.startswith("/order/"):
            order_id = request.url.path.rsplit("/", 1)[-1]
            if order_id not in self.orders:
                return httpx.Response(404, text="order not found")
            if request.method == "PUT":
                update = json.loads(request.content)
                self.updates.append((order_id, update))
                return httpx.Response(200, json={"data": {"id": order_id, **update}})
            if request.method == "DELETE":
                self.orders[order_id]["state"] = "cancelled"
                return httpx.Response(200, json={"data": {"id": order_id, "state": "cancelled"}})
        return httpx.Response(404, text="unknown endpoint")

    def mempool_handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path.endswith("/blocks/tip/height"):
            return httpx.Response(200, json=850000)
        if path.endswith("/v1/fees/recommended"):
            return httpx.Response(
                200,
                json={"fastestFee": 30, "halfHourFee": 20, "hourFee": 12, "economyFee": 6, "minimumFee": 2},
            )
        if path.endswith("/utxo"):
            return httpx.Response(200, json=self.utxos.get(path.split("/")[-2], []))
        address = path.rsplit("/", 1)[-1]
        if address in self.addresses:
            return httpx.Response(200, json=self.addresses[address])
        return httpx.Response(400, text="Invalid Bitcoin address")

    def price_handler(self, request: httpx.Request) -> httpx.Response:
        if self.price_status != 200:
            return httpx.Response(self.price_status, text="rate limited")
        return httpx.Response(
            200,
            json={"bitcoin": {"usd": 64000.5, "usd_24h_change": -1.2, "last_updated_at": 1718000000}},
        )


@pytest.fixture()
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture()
def container(settings: Settings, upstream: FakeUpstream) -> Iterator[AppContainer]:
    init_db(settings.database_path)
    repository = Repository(settings.database_path)
    order_api = OrderApiClient(
        settings,
        client=httpx.Client(base_url=settings.order_api_url, transport=httpx.MockTransport(upstream.order_handler)),
    )
    mempool = MempoolClient(
        settings,
        client=httpx.Client(
            base_url=settings.mempool_api_url,
            transport=httpx.MockTransport(upstream.mempool_handler),
        ),
    )
    price = PriceClient(
        settings,
        client=httpx.Client(
            base_url=settings.coingecko_api_url,
            transport=httpx.MockTransport(upstream.price_handler),
        ),
    )
    tracking = OrderTrackingService(repository=repository, order_api=order_api, mempool=mempool, settings=settings)
    built = AppContainer(
        settings=settings,
        repository=repository,
        order_api=order_api,
        mempool=mempool,
        price=price,
        tracking=tracking,
    )
    yield built
    built.close()
