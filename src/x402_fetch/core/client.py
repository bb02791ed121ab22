"""
Challenge-retry HTTP client: answers a 402 with one signed payment and replays
the request exactly once.
"""

from __future__ import annotations

import time
from typing import Any, Optional, Protocol

import requests

from .codec import decode_challenge, decode_settlement, encode_payment, is_challenge
from .config import FetchConfig
from .errors import (
    DoublePaymentChallenge,
    MalformedSettlement,
    PaymentDeclined,
    SigningFailure,
    TransportFailure,
)
from .observer import FetchObserver, FetchState, LoggingObserver
from .policy import decide
from .signer import EvmSigner
from .types import (
    Accept,
    FetchOutcome,
    FetchRequest,
    PaymentAuthorization,
    PaymentRequirement,
)

__all__ = ["PaymentClient", "Signer"]


class Signer(Protocol):
    address: str

    def sign(self, requirement: PaymentRequirement, amount: int) -> PaymentAuthorization:
        ...

    def verify(
        self, authorization: PaymentAuthorization, requirement: PaymentRequirement
    ) -> bool:
        ...


class PaymentClient:
    """
    Runs the x402 exchange for one request at a time.

    The client only holds shared, read-only collaborators. Everything that
    belongs to a single call (requirement, authorization, receipt) stays local
    to :meth:`fetch`.
    """

    def __init__(
        self,
        config: FetchConfig,
        *,
        session: Optional[requests.Session] = None,
        signer: Optional[Signer] = None,
        observer: Optional[FetchObserver] = None,
    ) -> None:
        self.config = config
        self.session = session or requests.Session()
        self.signer = signer if signer is not None else EvmSigner.from_config(config)
        self.observer = observer if observer is not None else LoggingObserver()

    @property
    def address(self) -> str:
        return self.signer.address

    def _notify(self, state: FetchState, **details: Any) -> None:
        self.observer(state, details)

    def _send(self, request: FetchRequest) -> requests.Response:
        try:
            return self.session.request(
                request.method,
                request.url,
                headers=dict(request.headers),
                data=request.body,
                timeout=self.config.request_timeout,
            )
        except requests.RequestException as exc:
            raise TransportFailure(f"{request.method} {request.url} failed: {exc}") from exc

    def _authorize(self, requirement: PaymentRequirement, amount: int) -> PaymentAuthorization:
        try:
            authorization = self.signer.sign(requirement, amount)
            valid = self.signer.verify(authorization, requirement)
        except SigningFailure:
            raise
        except Exception as exc:  # noqa: BLE001
            raise SigningFailure(f"signer failed: {exc}") from exc
        if not valid:
            raise SigningFailure("signed authorization does not match the payment requirement")
        return authorization

    def fetch(self, request: FetchRequest, *, now: Optional[int] = None) -> FetchOutcome:
        """
        Issue ``request`` and settle at most one payment challenge.

        Raises :class:`MalformedChallenge`, :class:`PaymentDeclined`,
        :class:`SigningFailure`, :class:`DoublePaymentChallenge` or
        :class:`TransportFailure`.
        """
        self._notify(FetchState.INITIAL, method=request.method, url=request.url)
        response = self._send(request)
        self._notify(FetchState.REQUESTED, status=response.status_code)

        if not is_challenge(response):
            self._notify(FetchState.COMPLETED, paid=False, receipt=None)
            return FetchOutcome(response=response)

        now = int(time.time()) if now is None else now
        requirement = decode_challenge(response, self.config.network, now=now)
        self._notify(FetchState.CHALLENGE_DETECTED, requirement=requirement)

        decision = decide(requirement, self.config, now=now)
        if not isinstance(decision, Accept):
            raise PaymentDeclined(decision.reason, requirement, decision.detail)

        self._notify(FetchState.AUTHORIZING, amount=decision.amount)
        authorization = self._authorize(requirement, decision.amount)
        envelope = encode_payment(authorization)

        retried = self._send(request.with_headers(envelope.as_headers()))
        self._notify(FetchState.RETRIED, status=retried.status_code)
        if is_challenge(retried):
            raise DoublePaymentChallenge(
                "server issued another payment challenge after a paid retry; refusing to pay twice"
            )

        receipt = None
        settlement_error = None
        try:
            receipt = decode_settlement(retried, self.config.network.chain_name)
        except MalformedSettlement as exc:
            settlement_error = str(exc)

        self._notify(
            FetchState.COMPLETED,
            paid=True,
            receipt=receipt,
            settlement_error=settlement_error,
        )
        return FetchOutcome(
            response=retried,
            requirement=requirement,
            authorization=authorization,
            receipt=receipt,
            settlement_error=settlement_error,
        )
