"""
Transition hooks for the challenge-retry state machine.

The client calls its observer at every state change and never logs on its own,
so the protocol code stays free of diagnostics.
"""

from __future__ import annotations

import enum
import logging
from typing import Any, Callable, Dict, Mapping

__all__ = ["FetchObserver", "FetchState", "LoggingObserver"]

logger = logging.getLogger(__name__)


class FetchState(str, enum.Enum):
    INITIAL = "initial"
    REQUESTED = "requested"
    CHALLENGE_DETECTED = "challenge-detected"
    AUTHORIZING = "authorizing"
    RETRIED = "retried"
    COMPLETED = "completed"


FetchObserver = Callable[[FetchState, Mapping[str, Any]], None]


class LoggingObserver:
    """Writes one log line per transition to the ``x402_fetch`` loggers."""

    def __init__(self, log: logging.Logger = logger) -> None:
        self.log = log

    def __call__(self, state: FetchState, details: Mapping[str, Any]) -> None:
        handler = getattr(self, f"_on_{state.name.lower()}", None)
        if handler is not None:
            handler(dict(details))

    def _on_initial(self, details: Dict[str, Any]) -> None:
        self.log.info("Fetching: %s %s", details.get("method"), details.get("url"))

    def _on_requested(self, details: Dict[str, Any]) -> None:
        self.log.info("Response status: %s", details.get("status"))

    def _on_challenge_detected(self, details: Dict[str, Any]) -> None:
        requirement = details.get("requirement")
        if requirement is None:
            return
        self.log.info(
            "Payment required: %s base units on %s to %s",
            requirement.amount,
            requirement.network,
            requirement.pay_to,
        )

    def _on_authorizing(self, details: Dict[str, Any]) -> None:
        self.log.info("Authorizing payment of %s base units", details.get("amount"))

    def _on_retried(self, details: Dict[str, Any]) -> None:
        self.log.info("Paid retry returned status %s", details.get("status"))

    def _on_completed(self, details: Dict[str, Any]) -> None:
        receipt = details.get("receipt")
        if details.get("settlement_error"):
            self.log.warning("Settlement header could not be decoded: %s", details["settlement_error"])
        if receipt is not None:
            self.log.info(
                "Payment made: tx=%s amount=%s network=%s settled=%s",
                receipt.tx_hash or "N/A",
                receipt.amount_display or "N/A",
                receipt.network,
                receipt.settled,
            )
        elif not details.get("paid"):
            self.log.info("No payment was required or made")
