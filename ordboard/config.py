from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from ordboard.enums import Network


DEFAULT_ORDER_IDS: dict[str, tuple[str, ...]] = {
    Network.MAINNET.value: (
        "39c9bdcf-6459-4509-b7a6-7138ac826378",
        "7d138fda-001c-4421-b1df-cbb5b8571d20",
        "8bb1d29e-171a-4a63-9b38-c5ee3e7fe2e1",
        "800fa3c4-7004-43e8-823e-928a2e5c30a0",
    ),
    Network.TESTNET.value: (
        "b1a8e829-5411-4b3e-8b41-c1a2894ee023",
        "961a4f59-d6e7-4d08-b351-f9872f98b9d5",
        "d857c9cd-b628-4b8c-8d03-e765563a4e50",
    ),
}

ORDER_API_URLS = {
    Network.MAINNET.value: "https://api.ordinalsbot.com",
    Network.TESTNET.value: "https://testnet-api.ordinalsbot.com",
}


def _parse_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on", "y"}


def _parse_int(value: str | None, default: int) -> int:
    if value is None:
        return default
    return int(value.strip())


def _parse_float(value: str | None, default: float) -> float:
    if value is None:
        return default
    return float(value.strip())


def _parse_list(value: str | None, default: tuple[str, ...]) -> list[str]:
    if value is None:
        return list(default)
    return [item.strip() for item in value.split(",") if item.strip()]


def _read_dotenv(path: Path) -> dict[str, str]:
    if not path.exists():
        return {}
    result: dict[str, str] = {}
    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        result[key.strip()] = value.strip().strip("'").strip('"')
    return result


def _read_first(
    env: dict[str, str],
    *keys: str,
    required: bool = False,
    default: str | None = None,
) -> str | None:
    for key in keys:
        if key in os.environ:
            return os.environ[key]
        if key in env:
            return env[key]
    if required and default is None:
        joined = ", ".join(keys)
        raise ValueError(f"Required setting is missing. Expected one of: {joined}")
    return default


@dataclass(slots=True)
class Settings:
    use_testnet: bool
    order_api_key: str
    order_api_base_url: str | None
    mempool_api_url_mainnet: str
    mempool_api_url_testnet: str
    coingecko_api_url: str
    database_path: str
    web_host: str
    web_port: int
    poll_interval_seconds: int
    http_timeout_seconds: float
    default_order_ids_mainnet: list[str] = field(
        default_factory=lambda: list(DEFAULT_ORDER_IDS[Network.MAINNET.value])
    )
    default_order_ids_testnet: list[str] = field(
        default_factory=lambda: list(DEFAULT_ORDER_IDS[Network.TESTNET.value])
    )

    @property
    def network(self) -> str:
        return Network.TESTNET.value if self.use_testnet else Network.MAINNET.value

    @property
    def order_api_url(self) -> str:
        if self.order_api_base_url:
            return self.order_api_base_url.rstrip("/")
        return ORDER_API_URLS[self.network]

    @property
    def mempool_api_url(self) -> str:
        url = self.mempool_api_url_testnet if self.use_testnet else self.mempool_api_url_mainnet
        return url.rstrip("/")

    @property
    def default_order_ids(self) -> list[str]:
        ids = self.default_order_ids_testnet if self.use_testnet else self.default_order_ids_mainnet
        return list(ids)


def load_settings(env_file: str = ".env") -> Settings:
    env = _read_dotenv(Path(env_file))

    poll_interval = _parse_int(_read_first(env, "POLL_INTERVAL_SECONDS", default="30"), 30)
    if poll_interval <= 0:
        raise ValueError("POLL_INTERVAL_SECONDS must be positive")

    settings = Settings(
        use_testnet=_parse_bool(_read_first(env, "USE_TESTNET", "NEXT_PUBLIC_USE_TESTNET", default="false"), False),
        order_api_key=_read_first(env, "ORDER_API_KEY", "ORDINALSBOT_API_KEY", default="") or "",
        order_api_base_url=_read_first(env, "ORDER_API_BASE_URL", default=None),
        mempool_api_url_mainnet=_read_first(
            env,
            "MEMPOOL_API_BASE_URL_MAINNET",
            default="https://mempool.space/api",
        )
        or "https://mempool.space/api",
        mempool_api_url_testnet=_read_first(
            env,
            "MEMPOOL_API_BASE_URL_TESTNET",
            default="https://mempool.space/testnet/api",
        )
        or "https://mempool.space/testnet/api",
        coingecko_api_url=_read_first(
            env,
            "COINGECKO_API_BASE_URL",
            default="https://api.coingecko.com/api/v3",
        )
        or "https://api.coingecko.com/api/v3",
        database_path=_read_first(env, "SQLITE_DB_PATH", default="ordboard.db") or "ordboard.db",
        web_host=_read_first(env, "WEB_HOST", default="0.0.0.0") or "0.0.0.0",
        web_port=_parse_int(_read_first(env, "PORT", "WEB_PORT", default="8080"), 8080),
        poll_interval_seconds=poll_interval,
        http_timeout_seconds=_parse_float(_read_first(env, "HTTP_TIMEOUT_SECONDS", default="15"), 15.0),
        default_order_ids_mainnet=_parse_list(
            _read_first(env, "DEFAULT_ORDER_IDS_MAINNET", default=None),
            DEFAULT_ORDER_IDS[Network.MAINNET.value],
        ),
        default_order_ids_testnet=_parse_list(
            _read_first(env, "DEFAULT_ORDER_IDS_TESTNET", default=None),
            DEFAULT_ORDER_IDS[Network.TESTNET.value],
        ),
    )
    return settings
