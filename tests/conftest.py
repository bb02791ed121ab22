"""Shared fixtures for the x402_fetch test-suite."""

import base64
import json
from typing import Any, Dict, List, Optional

import pytest
import requests
from requests.structures import CaseInsensitiveDict

from x402_fetch.core.config import FetchConfig
from x402_fetch.core.signer import EvmSigner

TEST_PRIVATE_KEY = "0x" + "4c" * 32
PAY_TO = "0x" + "22" * 20
BASE_SEPOLIA_USDC = "0x036CbD53842c5426634e7929541eC2318f3dCF7e"


def make_response(
    status: int,
    *,
    json_body: Any = None,
    text: Optional[str] = None,
    headers: Optional[Dict[str, str]] = None,
    reason: Optional[str] = None,
    url: str = "https://api.example.com/resource",
) -> requests.Response:
    response = requests.Response()
    response.status_code = status
    response.reason = reason if reason is not None else {200: "OK", 402: "Payment Required"}.get(status, "")
    response.url = url
    response.encoding = "utf-8"
    merged = dict(headers or {})
    if json_body is not None:
        response._content = json.dumps(json_body).encode("utf-8")
        merged.setdefault("Content-Type", "application/json")
    else:
        response._content = (text or "").encode("utf-8")
    response.headers = CaseInsensitiveDict(merged)
    return response


def b64json(payload: Any) -> str:
    return base64.b64encode(json.dumps(payload).encode("utf-8")).decode("ascii")


def requirement_entry(**overrides: Any) -> Dict[str, Any]:
    entry = {
        "scheme": "exact",
        "network": "base-sepolia",
        "maxAmountRequired": "500000",
        "resource": "https://api.example.com/resource",
        "description": "Premium resource",
        "mimeType": "application/json",
        "payTo": PAY_TO,
        "maxTimeoutSeconds": 300,
        "asset": BASE_SEPOLIA_USDC,
        "extra": {"name": "USDC", "version": "2"},
    }
    entry.update(overrides)
    return entry


def challenge_body(*entries: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "x402Version": 1,
        "error": "X-PAYMENT header is required",
        "accepts": list(entries) or [requirement_entry()],
    }


def challenge_response(**overrides: Any) -> requests.Response:
    return make_response(402, json_body=challenge_body(requirement_entry(**overrides)))


def settlement_header(**overrides: Any) -> Dict[str, str]:
    payload = {
        "success": True,
        "transaction": "0x" + "ab" * 32,
        "network": "base-sepolia",
        "amount": "500000",
        "settled": True,
    }
    payload.update(overrides)
    return {"X-PAYMENT-RESPONSE": b64json(payload)}


class FakeSession:
    """Stands in for ``requests.Session``; replays queued responses in order."""

    def __init__(self, *responses: Any) -> None:
        self.responses = list(responses)
        self.calls: List[Dict[str, Any]] = []

    def request(self, method, url, headers=None, data=None, timeout=None):
        self.calls.append(
            {"method": method, "url": url, "headers": dict(headers or {}), "data": data, "timeout": timeout}
        )
        if not self.responses:
            raise AssertionError(f"unexpected request: {method} {url}")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class CountingSigner(EvmSigner):
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.signed = []

    def sign(self, requirement, amount, **kwargs):
        authorization = super().sign(requirement, amount, **kwargs)
        self.signed.append(authorization)
        return authorization


@pytest.fixture
def config():
    return FetchConfig.from_mapping({"PRIVATE_KEY": TEST_PRIVATE_KEY, "NETWORK": "baseSepolia"})


@pytest.fixture
def signer(config):
    return CountingSigner(config.private_key, config.network)


@pytest.fixture
def transitions():
    return []


@pytest.fixture
def recording_observer(transitions):
    def observe(state, details):
        transitions.append(state)

    return observe
