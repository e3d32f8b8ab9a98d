from __future__ import annotations

import base64
import json
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from ordboard.enums import Network, OrderType


MAINNET_ADDRESS_PATTERNS = (
    re.compile(r"^1[1-9A-HJ-NP-Za-km-z]{25,34}$"),
    re.compile(r"^3[1-9A-HJ-NP-Za-km-z]{25,34}$"),
    re.compile(r"^bc1[a-z0-9]{39,59}$"),
    re.compile(r"^bc1p[a-z0-9]{58}$"),
)
TESTNET_ADDRESS_PATTERNS = (
    re.compile(r"^[mn][1-9A-HJ-NP-Za-km-z]{25,34}$"),
    re.compile(r"^2[1-9A-HJ-NP-Za-km-z]{25,34}$"),
    re.compile(r"^tb1[a-z0-9]{39,59}$"),
    re.compile(r"^tb1p[a-z0-9]{58}$"),
)
TICKER_RE = re.compile(r"^[a-zA-Z0-9]{1,4}$")

BRC20_OPERATIONS = ("deploy", "mint", "transfer")
FILE_ORDER_TYPES = (OrderType.INSCRIPTION.value, OrderType.COLLECTION.value, OrderType.BULK.value)
DEFAULT_FEE_SATS = {Network.MAINNET.value: 15000, Network.TESTNET.value: 3000}
MAX_DECIMALS = 18


@dataclass(slots=True)
class OrderValidationError(Exception):
    message: str

    def __str__(self) -> str:
        return self.message


def is_valid_bitcoin_address(address: Any, network: str = Network.MAINNET.value) -> bool:
    if not isinstance(address, str) or not address:
        return False
    patterns = TESTNET_ADDRESS_PATTERNS if network == Network.TESTNET.value else MAINNET_ADDRESS_PATTERNS
    return any(pattern.match(address) for pattern in patterns)


def get_address_type(address: str) -> str:
    if address.startswith(("bc1p", "tb1p")):
        return "p2tr"
    if address.startswith(("1", "m", "n")):
        return "p2pkh"
    if address.startswith(("3", "2")):
        return "p2sh"
    if address.startswith("bc1") and len(address) == 42:
        return "p2wpkh"
    return "unknown"


def get_network_from_address(address: str) -> str:
    if address.startswith(("1", "3", "bc1")):
        return Network.MAINNET.value
    if address.startswith(("m", "n", "2", "tb1")):
        return Network.TESTNET.value
    return "unknown"


def is_valid_ticker(ticker: Any) -> bool:
    return isinstance(ticker, str) and bool(TICKER_RE.match(ticker))


def _positive_number(value: Any) -> float | None:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if number != number or number <= 0:
        return None
    return number


def validate_brc20_details(details: Any, operation: str) -> str | None:
    """Return the first problem with ``details`` for ``operation``, or None."""
    if not isinstance(details, Mapping):
        return "BRC-20 details required"
    ticker = details.get("ticker")
    if not isinstance(ticker, str):
        return "Ticker must be a string"
    if not 1 <= len(ticker) <= 4:
        return "Ticker must be 1-4 chars"
    if not is_valid_ticker(ticker):
        return "Ticker must be alphanumeric"
    if details.get("operation") != operation:
        return f'Operation must be "{operation}"'

    if operation == "deploy":
        max_supply = _positive_number(details.get("maxSupply"))
        if max_supply is None:
            return "Max supply must be positive"
        mint_limit = _positive_number(details.get("mintLimit"))
        if mint_limit is None:
            return "Mint limit must be positive"
        if mint_limit > max_supply:
            return "Mint limit cannot exceed maxSupply"
        decimals = details.get("decimals")
        if decimals is not None:
            try:
                decimals_value = float(decimals)
            except (TypeError, ValueError):
                return f"Decimals must be 0-{MAX_DECIMALS}"
            if not 0 <= decimals_value <= MAX_DECIMALS:
                return f"Decimals must be 0-{MAX_DECIMALS}"
    elif operation in ("mint", "transfer"):
        if _positive_number(details.get("amount")) is None:
            return "Amount must be positive"
        if operation == "transfer":
            recipient = details.get("to")
            if not isinstance(recipient, str):
                return "Recipient must be a string"
            if not (
                is_valid_bitcoin_address(recipient, Network.MAINNET.value)
                or is_valid_bitcoin_address(recipient, Network.TESTNET.value)
            ):
                return "Recipient address invalid"
    return None


def build_brc20_envelope(operation: str, details: Mapping[str, Any]) -> dict[str, str]:
    envelope = {"p": "brc-20", "op": operation, "tick": str(details["ticker"])}
    if operation == "deploy":
        envelope["max"] = str(details["maxSupply"])
        envelope["lim"] = str(details["mintLimit"])
        if details.get("decimals") is not None:
            envelope["dec"] = str(details["decimals"])
    else:
        envelope["amt"] = str(details["amount"])
        if operation == "transfer" and details.get("to"):
            envelope["to"] = str(details["to"])
    return envelope


def _data_url(mime_type: str, raw: bytes) -> str:
    return f"data:{mime_type};base64,{base64.b64encode(raw).decode('ascii')}"


def _file_entry(item: Mapping[str, Any]) -> dict[str, Any]:
    content = item.get("content") or ""
    if isinstance(content, str) and content.startswith("data:"):
        data_url = content
    else:
        raw = content if isinstance(content, bytes) else str(content).encode("utf-8")
        data_url = _data_url(item.get("type") or "application/octet-stream", raw)
    return {"name": item.get("name"), "dataURL": data_url, "size": item.get("size") or 0}


def _file_entries(request: Mapping[str, Any]) -> list[dict[str, Any]]:
    files = request.get("files") or []
    text = request.get("textContent")
    if not isinstance(files, list):
        raise OrderValidationError("Files must be a list")
    if text is not None and not isinstance(text, str):
        raise OrderValidationError("Text content must be a string")
    if files:
        if not all(isinstance(item, Mapping) for item in files):
            raise OrderValidationError("Each file must be an object")
        return [_file_entry(item) for item in files]
    if text:
        encoded = text.encode("utf-8")
        return [
            {
                "name": request.get("title") or "text.txt",
                "dataURL": _data_url("text/plain", encoded),
                "size": len(encoded),
            }
        ]
    raise OrderValidationError("Files or text required for inscription")


def build_order_payload(request: Mapping[str, Any], network: str) -> dict[str, Any]:
    """Convert a create-order request into the order API payload.

    Raises ``OrderValidationError`` when the request cannot produce an order.
    """
    if not isinstance(request, Mapping):
        raise OrderValidationError("Order request must be an object")
    receive_address = request.get("receiveAddress")
    if not receive_address:
        raise OrderValidationError("Receive address required")
    if not isinstance(receive_address, str):
        raise OrderValidationError("Receive address must be a string")
    order_type = request.get("type")
    if not order_type:
        raise OrderValidationError("Order type required")
    if not isinstance(order_type, str):
        raise OrderValidationError("Order type must be a string")
    fee = request.get("fee")
    if fee is not None and (isinstance(fee, bool) or not isinstance(fee, int) or fee <= 0):
        raise OrderValidationError("Fee must be a positive integer")

    payload: dict[str, Any] = {
        "receiveAddress": receive_address,
        "fee": fee or DEFAULT_FEE_SATS.get(network, DEFAULT_FEE_SATS[Network.MAINNET.value]),
    }

    operation = order_type.removeprefix("brc20-")
    if order_type in FILE_ORDER_TYPES:
        payload["files"] = _file_entries(request)
    elif order_type.startswith("brc20-") and operation in BRC20_OPERATIONS:
        details = request.get("brc20Details")
        problem = validate_brc20_details(details, operation)
        if problem:
            raise OrderValidationError(f"BRC-20 validation failed: {problem}")
        text = json.dumps(build_brc20_envelope(operation, details), separators=(",", ":"))
        encoded = text.encode("utf-8")
        payload["files"] = [
            {
                "name": f"{details['ticker']}-{operation}.txt",
                "dataURL": _data_url("application/json", encoded),
                "size": len(encoded),
            }
        ]
    else:
        raise OrderValidationError(f"Unsupported order type: {order_type}")

    if request.get("title"):
        payload["title"] = request["title"]
    if request.get("description"):
        payload["description"] = request["description"]
    return payload
