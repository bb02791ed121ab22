"""
Public, high-level helpers: the request facade exposed to tool callers.

Every function here returns plain, JSON-serialisable dictionaries and never
lets an exception escape to the caller.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Mapping, Optional

import requests

from .core.client import PaymentClient, Signer
from .core.config import ConfigError, FetchConfig, load_fetch_config
from .core.observer import FetchObserver
from .core.types import FetchOutcome, FetchRequest

__all__ = [
    "BODY_METHODS",
    "ConfigError",
    "build_fetch_result",
    "create_fetch_client",
    "failure",
    "fetch",
    "render_content",
    "wallet_info",
]

logger = logging.getLogger(__name__)

BODY_METHODS = frozenset({"POST", "PUT", "PATCH"})


def create_fetch_client(
    *,
    config: Optional[FetchConfig] = None,
    session: Optional[requests.Session] = None,
    signer: Optional[Signer] = None,
    observer: Optional[FetchObserver] = None,
    env_file: Optional[str] = ".env",
    overrides: Optional[Mapping[str, str]] = None,
    base: Optional[Mapping[str, str]] = None,
    private_key: Optional[str] = None,
    network: Optional[str] = None,
    max_payment: Optional[int | str] = None,
    request_timeout: Optional[float | str] = None,
) -> PaymentClient:
    """
    Construct a :class:`PaymentClient`.

    Callers can either supply a ready-made :class:`FetchConfig` or let the
    helper assemble one from environment data.
    """
    if config is not None:
        extras = (overrides, base, private_key, network, max_payment, request_timeout)
        if any(item is not None and item != {} for item in extras):
            raise ValueError(
                "Provide either a pre-built FetchConfig or individual parameters, not both."
            )
        cfg = config
    else:
        cfg = load_fetch_config(
            env_file=env_file,
            overrides=overrides,
            base=base,
            private_key=private_key,
            network=network,
            max_payment=max_payment,
            request_timeout=request_timeout,
        )
    return PaymentClient(cfg, session=session, signer=signer, observer=observer)


def _is_json_content(content_type: str) -> bool:
    media_type = content_type.split(";", 1)[0].strip().lower()
    return media_type == "application/json" or media_type.endswith("+json")


def render_content(response: requests.Response) -> str:
    """Pretty-print JSON bodies; return everything else as text."""
    content_type = response.headers.get("Content-Type", "")
    if _is_json_content(content_type):
        try:
            return json.dumps(response.json(), indent=2)
        except ValueError:
            logger.warning("Response declared %s but the body is not JSON", content_type)
    return response.text


def _payment_info(outcome: FetchOutcome) -> Optional[Dict[str, Any]]:
    receipt = outcome.receipt
    if receipt is None:
        return None
    return {
        "txHash": receipt.tx_hash,
        "amount": receipt.amount_display,
        "amountRaw": str(receipt.amount) if receipt.amount is not None else None,
        "network": receipt.network,
        "settled": receipt.settled,
    }


def build_fetch_result(outcome: FetchOutcome) -> Dict[str, Any]:
    response = outcome.response
    content = render_content(response)
    logger.info("Content length: %d chars", len(content))

    result: Dict[str, Any] = {
        "success": True,
        "status": response.status_code,
        "statusText": response.reason or "",
        "paymentMade": outcome.payment_made,
        "payment": _payment_info(outcome),
        "content": content,
    }
    if outcome.settlement_error:
        result["paymentWarning"] = outcome.settlement_error
    return result


def failure(exc: BaseException) -> Dict[str, Any]:
    return {"success": False, "error": f"{type(exc).__name__}: {exc}"}


def fetch(
    url: str,
    method: str = "GET",
    headers: Optional[Mapping[str, str]] = None,
    body: Optional[str] = None,
    *,
    client: PaymentClient,
) -> Dict[str, Any]:
    """
    Fetch ``url``, paying a 402 challenge if the policy allows it.

    Returns ``{"success": True, "status", "statusText", "paymentMade",
    "payment", "content"}`` or ``{"success": False, "error"}``.
    """
    method = (method or "GET").upper()
    request = FetchRequest(
        method=method,
        url=url,
        headers=dict(headers or {}),
        body=body if body and method in BODY_METHODS else None,
    )
    try:
        outcome = client.fetch(request)
        return build_fetch_result(outcome)
    except Exception as exc:  # noqa: BLE001
        logger.error("Fetch of %s failed: %s: %s", url, type(exc).__name__, exc)
        return failure(exc)


def wallet_info(config: FetchConfig) -> Dict[str, Any]:
    return {
        "address": config.address,
        "network": config.network.name,
        "chain": config.network.chain_name,
    }
