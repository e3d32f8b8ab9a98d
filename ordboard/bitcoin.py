from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any


SATS_PER_BTC = 100_000_000
DUST_LIMIT_SATS = 546
P2PKH_INPUT_VBYTES = 148
P2PKH_OUTPUT_VBYTES = 34
INSCRIPTION_OVERHEAD_VBYTES = 150


@dataclass(slots=True)
class InsufficientFundsError(Exception):
    required: int
    available: int

    def __str__(self) -> str:
        return f"Insufficient funds for transaction: {self.available} sats available, {self.required} sats required"


@dataclass(slots=True)
class UtxoSelection:
    selected: list[Mapping[str, Any]]
    total_input: int
    estimated_fee: int
    change: int


def sats_to_btc(sats: int) -> float:
    return sats / SATS_PER_BTC


def format_sats(sats: int, show_unit: bool = True) -> str:
    formatted = f"{sats:,}"
    return f"{formatted} sats" if show_unit else formatted


def format_btc(sats: int | None, decimals: int = 8) -> str:
    if not sats:
        return "0 BTC"
    return f"{sats_to_btc(sats):.{decimals}f} BTC"


def estimate_transaction_size(input_count: int, output_count: int) -> int:
    return input_count * 68 + output_count * 31 + 10


def calculate_fee(input_count: int, output_count: int, fee_rate: float) -> int:
    return math.ceil(estimate_transaction_size(input_count, output_count) * fee_rate)


def estimate_inscription_fee(content_size: int, fee_rate: float) -> int:
    return math.ceil((content_size + INSCRIPTION_OVERHEAD_VBYTES) * fee_rate)


def filter_spendable_utxos(utxos: Iterable[Mapping[str, Any]]) -> list[Mapping[str, Any]]:
    """Drop outputs carrying inscriptions and dust so they are never spent as fees."""
    return [
        utxo
        for utxo in utxos
        if not utxo.get("inscriptions") and int(utxo.get("value", 0)) > DUST_LIMIT_SATS
    ]


def select_utxos(
    utxos: Iterable[Mapping[str, Any]],
    target_amount: int,
    fee_rate: float,
    input_size: int = P2PKH_INPUT_VBYTES,
    output_size: int = P2PKH_OUTPUT_VBYTES,
) -> UtxoSelection:
    candidates = sorted(filter_spendable_utxos(utxos), key=lambda utxo: int(utxo["value"]), reverse=True)
    selected: list[Mapping[str, Any]] = []
    total_input = 0
    estimated_fee = 0
    for utxo in candidates:
        selected.append(utxo)
        total_input += int(utxo["value"])
        estimated_size = len(selected) * input_size + 2 * output_size + 10
        estimated_fee = math.ceil(estimated_size * fee_rate)
        if total_input >= target_amount + estimated_fee:
            return UtxoSelection(
                selected=selected,
                total_input=total_input,
                estimated_fee=estimated_fee,
                change=total_input - target_amount - estimated_fee,
            )
    raise InsufficientFundsError(required=target_amount + estimated_fee, available=total_input)
