from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from ordboard.config import Settings


logger = logging.getLogger(__name__)


@dataclass(slots=True)
class AddressBalance:
    address: str
    balance: int
    confirmed_balance: int
    unconfirmed_balance: int
    transactions: int
    confirmed_transactions: int
    unconfirmed_transactions: int
    network: str

    @property
    def has_balance(self) -> bool:
        return self.balance > 0

    @property
    def has_transactions(self) -> bool:
        return self.transactions > 0


@dataclass(slots=True)
class FeeEstimate:
    fastest_fee: int
    half_hour_fee: int
    hour_fee: int
    economy_fee: int
    minimum_fee: int


class MempoolClient:
    def __init__(self, settings: Settings, client: httpx.Client | None = None):
        self.settings = settings
        self._client = client or httpx.Client(
            base_url=settings.mempool_api_url,
            timeout=settings.http_timeout_seconds,
            headers={"Accept": "application/json"},
        )

    def close(self) -> None:
        self._client.close()

    def _get(self, path: str) -> Any:
        response = self._client.get(path)
        response.raise_for_status()
        return response.json()

    def get_block_height(self) -> int:
        return int(self._get("/blocks/tip/height"))

    def get_recommended_fees(self) -> FeeEstimate:
        fees = self._get("/v1/fees/recommended")
        return FeeEstimate(
            fastest_fee=int(fees["fastestFee"]),
            half_hour_fee=int(fees["halfHourFee"]),
            hour_fee=int(fees["hourFee"]),
            economy_fee=int(fees["economyFee"]),
            minimum_fee=int(fees.get("minimumFee") or 1),
        )

    def get_address_balance(self, address: str) -> AddressBalance:
        """Balance of ``address`` in sats; unknown addresses report zero."""
        try:
            data = self._get(f"/address/{address}")
        except httpx.HTTPStatusError as exc:
            if exc.response.status_code not in (400, 404):
                raise
            logger.info("Address %s not found upstream, treating as unused", address)
            return AddressBalance(
                address=address,
                balance=0,
                confirmed_balance=0,
                unconfirmed_balance=0,
                transactions=0,
                confirmed_transactions=0,
                unconfirmed_transactions=0,
                network=self.settings.network,
            )

        chain = data["chain_stats"]
        mempool = data["mempool_stats"]
        confirmed = int(chain["funded_txo_sum"]) - int(chain["spent_txo_sum"])
        unconfirmed = int(mempool["funded_txo_sum"]) - int(mempool["spent_txo_sum"])
        return AddressBalance(
            address=address,
            balance=confirmed + unconfirmed,
            confirmed_balance=confirmed,
            unconfirmed_balance=unconfirmed,
            transactions=int(chain["tx_count"]) + int(mempool["tx_count"]),
            confirmed_transactions=int(chain["tx_count"]),
            unconfirmed_transactions=int(mempool["tx_count"]),
            network=self.settings.network,
        )

    def get_address_utxos(self, address: str) -> list[dict[str, Any]]:
        return list(self._get(f"/address/{address}/utxo"))
