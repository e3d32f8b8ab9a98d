from __future__ import annotations

import base64
import json

import pytest

from ordboard.brc20 import (
    OrderValidationError,
    build_brc20_envelope,
    build_order_payload,
    get_address_type,
    get_network_from_address,
    is_valid_bitcoin_address,
    is_valid_ticker,
    validate_brc20_details,
)


TAPROOT = "bc1p" + "q" * 58
SEGWIT = "bc1q" + "a" * 38
TESTNET_SEGWIT = "tb1q" + "a" * 38
LEGACY = "1BoatSLRHtKNngkdXEeobR76b53LETtpyT"


def _decode_data_url(data_url: str) -> str:
    return base64.b64decode(data_url.split(",", 1)[1]).decode("utf-8")


def test_address_validation_per_network() -> None:
    assert is_valid_bitcoin_address(LEGACY, "mainnet")
    assert is_valid_bitcoin_address(TAPROOT, "mainnet")
    assert is_valid_bitcoin_address(SEGWIT, "mainnet")
    assert not is_valid_bitcoin_address(SEGWIT, "testnet")
    assert is_valid_bitcoin_address(TESTNET_SEGWIT, "testnet")
    assert not is_valid_bitcoin_address("", "mainnet")
    assert not is_valid_bitcoin_address(None, "mainnet")


def test_address_type_and_network() -> None:
    assert get_address_type(TAPROOT) == "p2tr"
    assert get_address_type(LEGACY) == "p2pkh"
    assert get_address_type("3J98t1WpEZ73CNmQviecrnyiWrnqRhWNLy") == "p2sh"
    assert get_address_type("bc1q" + "a" * 38) == "p2wpkh"
    assert get_address_type("xyz") == "unknown"
    assert get_network_from_address(TESTNET_SEGWIT) == "testnet"
    assert get_network_from_address(LEGACY) == "mainnet"
    assert get_network_from_address("xyz") == "unknown"


def test_ticker_validation() -> None:
    assert is_valid_ticker("ORDI")
    assert not is_valid_ticker("TOOLONG")
    assert not is_valid_ticker("")


def test_validate_deploy() -> None:
    details = {"ticker": "ordi", "operation": "deploy", "maxSupply": "21000000", "mintLimit": "1000"}
    assert validate_brc20_details(details, "deploy") is None
    assert validate_brc20_details({**details, "mintLimit": "0"}, "deploy") == "Mint limit must be positive"
    assert (
        validate_brc20_details({**details, "mintLimit": "99999999"}, "deploy")
        == "Mint limit cannot exceed maxSupply"
    )
    assert validate_brc20_details({**details, "decimals": 19}, "deploy") == "Decimals must be 0-18"
    assert validate_brc20_details({**details, "operation": "mint"}, "deploy") == 'Operation must be "deploy"'


def test_validate_mint_and_transfer() -> None:
    assert validate_brc20_details(None, "mint") == "BRC-20 details required"
    assert validate_brc20_details({"ticker": 5, "operation": "mint"}, "mint") == "Ticker must be a string"
    assert validate_brc20_details({"ticker": "abcde", "operation": "mint"}, "mint") == "Ticker must be 1-4 chars"
    assert validate_brc20_details({"ticker": "or-d", "operation": "mint"}, "mint") == "Ticker must be alphanumeric"
    assert validate_brc20_details({"ticker": "sats", "operation": "mint", "amount": "-1"}, "mint") == (
        "Amount must be positive"
    )
    transfer = {"ticker": "sats", "operation": "transfer", "amount": "10", "to": "nope"}
    assert validate_brc20_details(transfer, "transfer") == "Recipient address invalid"
    assert validate_brc20_details({**transfer, "to": TAPROOT}, "transfer") is None


def test_envelope_stringifies_values() -> None:
    envelope = build_brc20_envelope(
        "deploy",
        {"ticker": "ordi", "maxSupply": 21000000, "mintLimit": 1000, "decimals": 18},
    )
    assert envelope == {"p": "brc-20", "op": "deploy", "tick": "ordi", "max": "21000000", "lim": "1000", "dec": "18"}
    assert build_brc20_envelope("mint", {"ticker": "sats", "amount": 5}) == {
        "p": "brc-20",
        "op": "mint",
        "tick": "sats",
        "amt": "5",
    }


def test_text_inscription_payload() -> None:
    payload = build_order_payload(
        {"type": "inscription", "receiveAddress": TAPROOT, "textContent": "gm", "title": "hello.txt"},
        "testnet",
    )
    assert payload["fee"] == 3000
    assert payload["title"] == "hello.txt"
    (entry,) = payload["files"]
    assert entry["name"] == "hello.txt"
    assert entry["dataURL"].startswith("data:text/plain;base64,")
    assert _decode_data_url(entry["dataURL"]) == "gm"
    assert entry["size"] == 2


def test_file_inscription_payload_keeps_existing_data_urls() -> None:
    payload = build_order_payload(
        {
            "type": "inscription",
            "receiveAddress": TAPROOT,
            "fee": 9000,
            "files": [
                {"name": "a.png", "type": "image/png", "size": 4, "content": "data:image/png;base64,AAAA"},
                {"name": "b.txt", "type": "text/plain", "size": 2, "content": "hi"},
            ],
        },
        "mainnet",
    )
    assert payload["fee"] == 9000
    assert payload["files"][0]["dataURL"] == "data:image/png;base64,AAAA"
    assert _decode_data_url(payload["files"][1]["dataURL"]) == "hi"


def test_brc20_payload_contains_json_envelope() -> None:
    payload = build_order_payload(
        {
            "type": "brc20-mint",
            "receiveAddress": TAPROOT,
            "brc20Details": {"ticker": "sats", "operation": "mint", "amount": "1000"},
        },
        "mainnet",
    )
    assert payload["fee"] == 15000
    (entry,) = payload["files"]
    assert entry["name"] == "sats-mint.txt"
    assert entry["dataURL"].startswith("data:application/json;base64,")
    assert json.loads(_decode_data_url(entry["dataURL"])) == {"p": "brc-20", "op": "mint", "tick": "sats", "amt": "1000"}


@pytest.mark.parametrize(
    ("request_body", "message"),
    [
        ({"type": "inscription"}, "Receive address required"),
        ({"receiveAddress": TAPROOT}, "Order type required"),
        ({"type": "inscription", "receiveAddress": TAPROOT}, "Files or text required for inscription"),
        (
            {"type": "brc20-deploy", "receiveAddress": TAPROOT, "brc20Details": {"ticker": "x", "operation": "deploy"}},
            "BRC-20 validation failed: Max supply must be positive",
        ),
        ({"receiveAddress": 42, "type": "inscription"}, "Receive address must be a string"),
        ({"receiveAddress": TAPROOT, "type": 5}, "Order type must be a string"),
        ({"receiveAddress": TAPROOT, "type": "inscription", "textContent": 123}, "Text content must be a string"),
        ({"receiveAddress": TAPROOT, "type": "inscription", "files": "a.txt"}, "Files must be a list"),
        ({"receiveAddress": TAPROOT, "type": "inscription", "files": ["a.txt"]}, "Each file must be an object"),
        ({"receiveAddress": TAPROOT, "type": "rune-etch", "textContent": "gm"}, "Unsupported order type: rune-etch"),
        ({"receiveAddress": TAPROOT, "type": "brc20-burn"}, "Unsupported order type: brc20-burn"),
        (
            {"receiveAddress": TAPROOT, "type": "inscription", "textContent": "gm", "fee": "cheap"},
            "Fee must be a positive integer",
        ),
    ],
)
def test_invalid_requests_raise(request_body, message: str) -> None:
    with pytest.raises(OrderValidationError) as exc_info:
        build_order_payload(request_body, "mainnet")
    assert str(exc_info.value) == message


def test_collection_orders_carry_their_files() -> None:
    payload = build_order_payload(
        {
            "type": "collection",
            "receiveAddress": TAPROOT,
            "files": [{"name": "1.txt", "type": "text/plain", "size": 1, "content": "1"}],
        },
        "mainnet",
    )
    assert [entry["name"] for entry in payload["files"]] == ["1.txt"]


def test_non_mapping_request_is_rejected() -> None:
    with pytest.raises(OrderValidationError):
        build_order_payload(["inscription"], "mainnet")
