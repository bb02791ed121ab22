"""
Spend policy: decide whether a payment requirement gets paid, and how much.
"""

from __future__ import annotations

import time
from typing import Optional

from .config import FetchConfig
from .types import (
    CEILING_EXCEEDED,
    EXPIRED,
    NETWORK_MISMATCH,
    UNSUPPORTED_SCHEME,
    Accept,
    Decision,
    PaymentRequirement,
    Reject,
)

__all__ = ["SUPPORTED_SCHEME", "decide"]

SUPPORTED_SCHEME = "exact"


def decide(
    requirement: PaymentRequirement,
    config: FetchConfig,
    *,
    now: Optional[int] = None,
) -> Decision:
    """
    Accept the requirement for exactly its amount, or reject it with a reason.

    The ceiling is checked first, so an over-priced requirement is always
    reported as ``ceiling-exceeded``. Requirements are never capped.
    """
    now = int(time.time()) if now is None else now

    if requirement.amount > config.max_payment:
        return Reject(
            CEILING_EXCEEDED,
            f"requires {requirement.amount} but the ceiling is {config.max_payment}",
        )
    if not config.network.matches(requirement.network):
        return Reject(
            NETWORK_MISMATCH,
            f"requires {requirement.network} but the client pays on {config.network.name}",
        )
    if requirement.is_expired(now):
        return Reject(EXPIRED, f"requirement expired at {requirement.expires_at}")
    if requirement.scheme != SUPPORTED_SCHEME:
        return Reject(UNSUPPORTED_SCHEME, f"scheme '{requirement.scheme}' is not supported")
    return Accept(requirement.amount)
