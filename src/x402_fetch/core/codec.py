"""
Wire encoding for the x402 exchange.

Challenges arrive either in the ``PAYMENT-REQUIRED`` header (x402 v2) or in
the JSON body of the 402 response (x402 v1). Proofs go out in ``X-PAYMENT``
(v1) or ``PAYMENT-SIGNATURE`` (v2). Settlements come back in
``X-PAYMENT-RESPONSE`` or its alias ``PAYMENT-RESPONSE``.
"""

from __future__ import annotations

import base64
import binascii
import json
import time
from typing import Any, Dict, List, Mapping, Optional, Tuple

import requests
from eth_utils import is_hex_address, to_checksum_address

from .config import NetworkInfo
from .errors import MalformedChallenge, MalformedSettlement
from .types import PaymentAuthorization, PaymentEnvelope, PaymentRequirement, SettlementReceipt

__all__ = [
    "CHALLENGE_HEADERS",
    "PAYMENT_HEADERS",
    "PAYMENT_REQUIRED_STATUS",
    "SETTLEMENT_HEADERS",
    "decode_challenge",
    "decode_settlement",
    "encode_payment",
    "is_challenge",
]

PAYMENT_REQUIRED_STATUS = 402

CHALLENGE_HEADERS: Tuple[str, ...] = ("PAYMENT-REQUIRED",)
SETTLEMENT_HEADERS: Tuple[str, ...] = ("X-PAYMENT-RESPONSE", "PAYMENT-RESPONSE")
PAYMENT_HEADERS: Mapping[int, str] = {1: "X-PAYMENT", 2: "PAYMENT-SIGNATURE"}

DEFAULT_MAX_TIMEOUT_SECONDS = 60


def _b64encode_json(payload: Mapping[str, Any]) -> str:
    data = json.dumps(payload, separators=(",", ":"))
    return base64.b64encode(data.encode("utf-8")).decode("ascii")


def _b64decode_json(value: str) -> Any:
    """Decode a base64 JSON header value; raises ``ValueError`` on bad input."""
    try:
        raw = base64.b64decode(value.strip(), validate=True)
        return json.loads(raw.decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError) as exc:
        raise ValueError(str(exc)) from exc


def _first_header(response: requests.Response, names: Tuple[str, ...]) -> Optional[Tuple[str, str]]:
    for name in names:
        value = response.headers.get(name)
        if value:
            return name, value
    return None


def encode_payment(authorization: PaymentAuthorization) -> PaymentEnvelope:
    try:
        header = PAYMENT_HEADERS[authorization.x402_version]
    except KeyError as exc:
        raise ValueError(f"Unsupported x402 version: {authorization.x402_version}") from exc

    payload = {
        "x402Version": authorization.x402_version,
        "scheme": authorization.scheme,
        "network": authorization.network,
        "payload": {
            "signature": authorization.signature,
            "authorization": authorization.authorization_fields(),
        },
    }
    return PaymentEnvelope(header=header, value=_b64encode_json(payload))


def is_challenge(response: requests.Response) -> bool:
    return response.status_code == PAYMENT_REQUIRED_STATUS


def _read_challenge_document(response: requests.Response) -> Tuple[Dict[str, Any], int]:
    found = _first_header(response, CHALLENGE_HEADERS)
    if found is not None:
        name, value = found
        try:
            document = _b64decode_json(value)
        except ValueError as exc:
            raise MalformedChallenge(f"{name} header is not base64 JSON: {exc}") from exc
        default_version = 2
    else:
        try:
            document = response.json()
        except ValueError as exc:
            raise MalformedChallenge("402 response carries no payment requirement") from exc
        default_version = 1

    if not isinstance(document, dict):
        raise MalformedChallenge("payment requirement document must be a JSON object")

    version = document.get("x402Version", default_version)
    if isinstance(version, bool) or version not in PAYMENT_HEADERS:
        raise MalformedChallenge(f"unsupported x402Version {version!r}")
    return document, version


def _select_entry(accepts: List[Dict[str, Any]], network: Optional[NetworkInfo]) -> Dict[str, Any]:
    if network is not None:
        for entry in accepts:
            if isinstance(entry.get("network"), str) and network.matches(entry["network"]):
                return entry
    return accepts[0]


def _required_str(entry: Mapping[str, Any], key: str) -> str:
    value = entry.get(key)
    if not isinstance(value, str) or not value:
        raise MalformedChallenge(f"payment requirement field '{key}' is missing or not a string")
    return value


def _address(entry: Mapping[str, Any], key: str) -> str:
    value = _required_str(entry, key)
    if not is_hex_address(value):
        raise MalformedChallenge(f"payment requirement field '{key}' is not an EVM address")
    return to_checksum_address(value)


def _as_integer(value: Any) -> Optional[int]:
    """Accept ints and ASCII decimal strings with an optional leading minus."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if not isinstance(value, str):
        return None
    text = value.strip()
    digits = text[1:] if text.startswith("-") else text
    if not (digits.isascii() and digits.isdigit()):
        return None
    try:
        return int(text)
    except ValueError:
        return None


def _parse_int(value: Any, label: str) -> int:
    parsed = _as_integer(value)
    if parsed is None:
        raise MalformedChallenge(f"{label} must be an integer, got {value!r}")
    return parsed


def _amount(entry: Mapping[str, Any]) -> int:
    for key in ("maxAmountRequired", "amount"):
        if key in entry:
            amount = _parse_int(entry[key], f"payment requirement field '{key}'")
            if amount <= 0:
                raise MalformedChallenge(f"payment amount must be positive, got {amount}")
            return amount
    raise MalformedChallenge("payment requirement has no amount")


def _resource(entry: Mapping[str, Any], document: Mapping[str, Any]) -> str:
    resource = entry.get("resource", document.get("resource", ""))
    if isinstance(resource, Mapping):
        resource = resource.get("url", "")
    return resource if isinstance(resource, str) else ""


def decode_challenge(
    response: requests.Response,
    network: Optional[NetworkInfo] = None,
    *,
    now: Optional[int] = None,
) -> Optional[PaymentRequirement]:
    """
    Parse the payment requirement from a 402 response.

    Returns ``None`` for any other status. When the server offers several
    requirements, the one on ``network`` is preferred, otherwise the first.
    """
    if not is_challenge(response):
        return None

    document, version = _read_challenge_document(response)
    accepts = document.get("accepts")
    if not isinstance(accepts, list) or not accepts:
        raise MalformedChallenge("payment requirement has no 'accepts' entries")
    if not all(isinstance(item, dict) for item in accepts):
        raise MalformedChallenge("'accepts' entries must be JSON objects")

    entry = _select_entry(accepts, network)
    timeout = _parse_int(
        entry.get("maxTimeoutSeconds", DEFAULT_MAX_TIMEOUT_SECONDS), "maxTimeoutSeconds"
    )
    if timeout < 0:
        raise MalformedChallenge("maxTimeoutSeconds must not be negative")
    extra = entry.get("extra") or {}
    if not isinstance(extra, dict):
        raise MalformedChallenge("payment requirement field 'extra' must be an object")

    return PaymentRequirement(
        x402_version=version,
        scheme=_required_str(entry, "scheme"),
        network=_required_str(entry, "network"),
        pay_to=_address(entry, "payTo"),
        asset=_address(entry, "asset"),
        amount=_amount(entry),
        max_timeout_seconds=timeout,
        issued_at=int(time.time()) if now is None else now,
        resource=_resource(entry, document),
        description=str(entry.get("description") or ""),
        mime_type=str(entry.get("mimeType") or ""),
        extra=dict(extra),
    )


def decode_settlement(
    response: requests.Response,
    network_name: str,
) -> Optional[SettlementReceipt]:
    """
    Read the settlement receipt, if the server sent one.

    Only the first header present in :data:`SETTLEMENT_HEADERS` is read.
    """
    found = _first_header(response, SETTLEMENT_HEADERS)
    if found is None:
        return None

    name, value = found
    try:
        decoded = _b64decode_json(value)
    except ValueError as exc:
        raise MalformedSettlement(f"{name} header is not base64 JSON: {exc}") from exc
    if not isinstance(decoded, dict):
        raise MalformedSettlement(f"{name} header must hold a JSON object")

    amount_raw = decoded.get("amount")
    amount: Optional[int] = None
    if amount_raw is not None:
        amount = _as_integer(amount_raw)
        if amount is None or amount < 0:
            raise MalformedSettlement(f"{name} amount is not an integer: {amount_raw!r}")

    settled = decoded.get("settled", decoded.get("success", False))
    if not isinstance(settled, bool):
        raise MalformedSettlement(f"{name} settled flag is not a boolean: {settled!r}")

    tx_hash = decoded.get("txHash") or decoded.get("transaction") or None
    return SettlementReceipt(
        tx_hash=str(tx_hash) if tx_hash is not None else None,
        amount=amount,
        settled=settled,
        network=network_name,
        raw=decoded,
    )
