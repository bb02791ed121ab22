"""
Value objects shared by the policy, codec, signer and client.

All of them are immutable and scoped to a single logical fetch call.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Any, Dict, Mapping, Optional, Union

import requests

__all__ = [
    "Accept",
    "Decision",
    "FetchOutcome",
    "FetchRequest",
    "PaymentAuthorization",
    "PaymentEnvelope",
    "PaymentRequirement",
    "Reject",
    "SettlementReceipt",
    "format_amount",
]

CEILING_EXCEEDED = "ceiling-exceeded"
NETWORK_MISMATCH = "network-mismatch"
EXPIRED = "expired"
UNSUPPORTED_SCHEME = "unsupported-scheme"


def format_amount(amount: int, decimals: int = 6, symbol: str = "USDC") -> str:
    """Render base units as ``"0.500000 USDC"``."""
    value = Decimal(amount) / (Decimal(10) ** decimals)
    return f"{value:.{decimals}f} {symbol}"


@dataclass(frozen=True)
class PaymentRequirement:
    """Terms a server asks for in a 402 challenge."""

    x402_version: int
    scheme: str
    network: str
    pay_to: str
    asset: str
    amount: int
    max_timeout_seconds: int
    issued_at: int
    resource: str = ""
    description: str = ""
    mime_type: str = ""
    extra: Mapping[str, Any] = field(default_factory=dict)

    @property
    def expires_at(self) -> int:
        return self.issued_at + self.max_timeout_seconds

    def is_expired(self, now: int) -> bool:
        return now >= self.expires_at


@dataclass(frozen=True)
class PaymentAuthorization:
    """
    A signed EIP-3009 ``TransferWithAuthorization``.

    The signature covers exactly ``(payer, pay_to, amount, valid_after,
    valid_before, nonce)`` in the asset's EIP-712 domain.
    """

    x402_version: int
    scheme: str
    network: str
    payer: str
    pay_to: str
    asset: str
    amount: int
    valid_after: int
    valid_before: int
    nonce: str
    signature: str

    def authorization_fields(self) -> Dict[str, str]:
        return {
            "from": self.payer,
            "to": self.pay_to,
            "value": str(self.amount),
            "validAfter": str(self.valid_after),
            "validBefore": str(self.valid_before),
            "nonce": self.nonce,
        }


@dataclass(frozen=True)
class PaymentEnvelope:
    """Transport form of an authorization: one request header."""

    header: str
    value: str

    def as_headers(self) -> Dict[str, str]:
        return {self.header: self.value}


@dataclass(frozen=True)
class SettlementReceipt:
    tx_hash: Optional[str]
    amount: Optional[int]
    settled: bool
    network: str
    raw: Mapping[str, Any] = field(default_factory=dict)

    @property
    def amount_display(self) -> Optional[str]:
        if self.amount is None:
            return None
        return format_amount(self.amount)


@dataclass(frozen=True)
class Accept:
    amount: int


@dataclass(frozen=True)
class Reject:
    reason: str
    detail: str = ""


Decision = Union[Accept, Reject]


@dataclass(frozen=True)
class FetchRequest:
    method: str
    url: str
    headers: Mapping[str, str] = field(default_factory=dict)
    body: Optional[str] = None

    def with_headers(self, extra: Mapping[str, str]) -> "FetchRequest":
        """Return a copy carrying ``extra`` on top of the existing headers."""
        merged = dict(self.headers)
        merged.update(extra)
        return replace(self, headers=merged)


@dataclass(frozen=True)
class FetchOutcome:
    """Result of one logical fetch: the final response plus payment details."""

    response: requests.Response
    requirement: Optional[PaymentRequirement] = None
    authorization: Optional[PaymentAuthorization] = None
    receipt: Optional[SettlementReceipt] = None
    settlement_error: Optional[str] = None

    @property
    def payment_made(self) -> bool:
        return self.authorization is not None
