from __future__ import annotations

import logging
import time
from dataclasses import dataclass

import httpx

from ordboard.config import Settings
from ordboard.enums import Network


logger = logging.getLogger(__name__)

FALLBACK_BTC_USD = {Network.MAINNET.value: 45000.0, Network.TESTNET.value: 30000.0}


@dataclass(slots=True)
class PriceQuote:
    usd: float
    usd_24h_change: float | None
    last_updated: int
    fallback: bool = False


class PriceClient:
    def __init__(self, settings: Settings, client: httpx.Client | None = None):
        self.settings = settings
        self._client = client or httpx.Client(
            base_url=settings.coingecko_api_url,
            timeout=settings.http_timeout_seconds,
            headers={"Accept": "application/json", "User-Agent": "ordboard/0.1"},
        )

    def close(self) -> None:
        self._client.close()

    def get_btc_price(self) -> PriceQuote:
        try:
            response = self._client.get(
                "/simple/price",
                params={
                    "ids": "bitcoin",
                    "vs_currencies": "usd",
                    "include_last_updated_at": "true",
                    "include_24hr_change": "true",
                },
            )
            response.raise_for_status()
            bitcoin = response.json()["bitcoin"]
            return PriceQuote(
                usd=float(bitcoin["usd"]),
                usd_24h_change=bitcoin.get("usd_24h_change"),
                last_updated=int(bitcoin.get("last_updated_at") or time.time()),
            )
        except (httpx.HTTPError, KeyError, ValueError) as exc:
            logger.warning("Price feed unavailable, using fallback quote: %s", exc)
            return PriceQuote(
                usd=FALLBACK_BTC_USD[self.settings.network],
                usd_24h_change=None,
                last_updated=int(time.time()),
                fallback=True,
            )
