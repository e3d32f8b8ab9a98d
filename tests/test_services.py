from __future__ import annotations

from dataclasses import replace

import httpx
import pytest

from ordboard.services.mempool import FeeEstimate, MempoolClient
from ordboard.services.order_api import OrderApiClient, OrderApiError
from ordboard.services.price import PriceClient

from conftest import ORDER_A, ORDER_C


def _client(base_url: str, handler) -> httpx.Client:
    return httpx.Client(base_url=base_url, transport=httpx.MockTransport(handler))


def test_get_order_sends_bearer_token(container, upstream) -> None:
    upstream.orders[ORDER_A] = {"id": ORDER_A, "status": "ok", "state": "inscribing"}
    data = container.order_api.get_order(ORDER_A)
    assert data["state"] == "inscribing"
    request = upstream.requests[-1]
    assert request.headers["Authorization"] == "Bearer test-key"
    assert request.url.params["id"] == ORDER_A


def test_missing_api_key_fails_before_any_request(settings) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    client = OrderApiClient(replace(settings, order_api_key=""), client=_client("https://orders.test", handler))
    with pytest.raises(OrderApiError) as exc_info:
        client.get_order(ORDER_A)
    assert str(exc_info.value) == "Order API key is not configured"


def test_error_status_is_reported_with_body(container) -> None:
    with pytest.raises(OrderApiError) as exc_info:
        container.order_api.get_order(ORDER_A)
    assert exc_info.value.status_code == 404
    assert str(exc_info.value) == "Order API error 404: order not found"


def test_transport_failure_is_wrapped(settings) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = OrderApiClient(settings, client=_client("https://orders.test", handler))
    with pytest.raises(OrderApiError) as exc_info:
        client.get_order(ORDER_A)
    assert exc_info.value.status_code is None
    assert str(exc_info.value).startswith("Order API request failed")


def test_invalid_json_is_rejected(settings) -> None:
    client = OrderApiClient(
        settings,
        client=_client("https://orders.test", lambda request: httpx.Response(200, text="not json")),
    )
    with pytest.raises(OrderApiError) as exc_info:
        client.get_order(ORDER_A)
    assert str(exc_info.value) == "Invalid JSON response: not json"


def test_create_order_reads_charge_fields(container, upstream) -> None:
    created = container.order_api.create_order({"receiveAddress": "bc1qdest", "fee": 15000, "files": []})
    assert created == {
        "orderId": ORDER_C,
        "paymentAddress": "bc1qpayment",
        "amount": 21000,
        "feeRate": 15000,
        "network": "mainnet",
    }
    assert upstream.created == [{"receiveAddress": "bc1qdest", "fee": 15000, "files": []}]


def test_create_order_without_id_fails(settings) -> None:
    client = OrderApiClient(
        settings,
        client=_client("https://orders.test", lambda request: httpx.Response(200, json={"status": "ok"})),
    )
    with pytest.raises(OrderApiError):
        client.create_order({"fee": 1})


def test_block_height_and_fees(container) -> None:
    assert container.mempool.get_block_height() == 850000
    assert container.mempool.get_recommended_fees() == FeeEstimate(
        fastest_fee=30,
        half_hour_fee=20,
        hour_fee=12,
        economy_fee=6,
        minimum_fee=2,
    )


def test_address_balance_sums_chain_and_mempool(container, upstream) -> None:
    upstream.addresses["bc1qfunded"] = {
        "chain_stats": {"funded_txo_sum": 10_000, "spent_txo_sum": 2000, "tx_count": 2},
        "mempool_stats": {"funded_txo_sum": 500, "spent_txo_sum": 0, "tx_count": 1},
    }
    balance = container.mempool.get_address_balance("bc1qfunded")
    assert balance.balance == 8500
    assert balance.confirmed_balance == 8000
    assert balance.unconfirmed_balance == 500
    assert balance.transactions == 3
    assert balance.has_balance and balance.has_transactions


def test_unknown_address_reports_zero_balance(container) -> None:
    balance = container.mempool.get_address_balance("bc1qnever")
    assert balance.balance == 0
    assert not balance.has_balance
    assert not balance.has_transactions
    assert balance.network == "mainnet"


def test_mempool_server_error_propagates(settings) -> None:
    client = MempoolClient(
        settings,
        client=_client("https://mempool.test/api", lambda request: httpx.Response(500, text="boom")),
    )
    with pytest.raises(httpx.HTTPStatusError):
        client.get_address_balance("bc1qany")


def test_price_quote(container) -> None:
    quote = container.price.get_btc_price()
    assert quote.usd == 64000.5
    assert quote.usd_24h_change == -1.2
    assert quote.last_updated == 1718000000
    assert quote.fallback is False


def test_price_falls_back_per_network(container, upstream, settings) -> None:
    upstream.price_status = 429
    quote = container.price.get_btc_price()
    assert quote.fallback is True
    assert quote.usd == 45000.0

    testnet = PriceClient(
        replace(settings, use_testnet=True),
        client=_client("https://prices.test/api/v3", upstream.price_handler),
    )
    assert testnet.get_btc_price().usd == 30000.0


def test_update_and_cancel_unwrap_data(settings) -> None:
    seen: list[tuple[str, str]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append((request.method, request.url.path))
        return httpx.Response(200, json={"data": {"id": ORDER_A, "state": "cancelled"}})

    client = OrderApiClient(settings, client=_client("https://orders.test", handler))
    assert client.update_order(ORDER_A, {"fee": 20})["id"] == ORDER_A
    assert client.cancel_order(ORDER_A)["state"] == "cancelled"
    assert seen == [("PUT", f"/order/{ORDER_A}"), ("DELETE", f"/order/{ORDER_A}")]
