from __future__ import annotations

from enum import StrEnum


class OrderStatus(StrEnum):
    PENDING = "pending"
    PAYMENT_PENDING = "payment-pending"
    WAITING_PAYMENT = "waiting-payment"
    PAYMENT_RECEIVED = "payment-received"
    PAYMENT_CONFIRMED = "payment-confirmed"
    CONFIRMING = "confirming"
    CONFIRMED = "confirmed"
    READY = "ready"
    INSCRIBING = "inscribing"
    PROCESSING = "processing"
    COMPLETED = "completed"
    SUCCESS = "success"
    FAILED = "failed"
    CANCELLED = "cancelled"
    ERROR = "error"


class StatusCategory(StrEnum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    FAILED = "failed"


class OrderType(StrEnum):
    INSCRIPTION = "inscription"
    BRC20_MINT = "brc20-mint"
    BRC20_TRANSFER = "brc20-transfer"
    BRC20_DEPLOY = "brc20-deploy"
    COLLECTION = "collection"
    BULK = "bulk"


class Network(StrEnum):
    MAINNET = "mainnet"
    TESTNET = "testnet"


ALL_STATUSES = frozenset(status.value for status in OrderStatus)
