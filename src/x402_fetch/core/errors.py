"""
Failure types raised by the x402 fetch protocol core.

The request facade converts every one of these into a structured failure
result, so none of them reach a tool caller as an unhandled exception.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .types import PaymentRequirement

__all__ = [
    "DoublePaymentChallenge",
    "MalformedChallenge",
    "MalformedSettlement",
    "PaymentDeclined",
    "SigningFailure",
    "TransportFailure",
    "X402FetchError",
]


class X402FetchError(Exception):
    """Base class for protocol failures."""


class MalformedChallenge(X402FetchError):
    """A 402 response whose payment requirement is missing or ill-formed."""


class MalformedSettlement(X402FetchError):
    """A settlement header that is present but cannot be decoded."""


class PaymentDeclined(X402FetchError):
    """The spend policy refused to pay the requirement."""

    def __init__(
        self,
        reason: str,
        requirement: Optional["PaymentRequirement"] = None,
        detail: Optional[str] = None,
    ) -> None:
        self.reason = reason
        self.requirement = requirement
        message = f"payment declined ({reason})"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class DoublePaymentChallenge(X402FetchError):
    """The server asked for payment again after a paid retry."""


class SigningFailure(X402FetchError):
    """The signing identity could not produce a valid authorization."""


class TransportFailure(X402FetchError):
    """The HTTP request failed before a response was received."""
