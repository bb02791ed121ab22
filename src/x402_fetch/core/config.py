"""
Configuration objects and helpers for the x402 fetch client.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple

from eth_account import Account
from eth_utils import to_checksum_address

from .environment import build_environment

__all__ = [
    "ConfigError",
    "FetchConfig",
    "NETWORKS",
    "NetworkInfo",
    "load_fetch_config",
    "resolve_network",
]

logger = logging.getLogger(__name__)

DEFAULT_MAX_PAYMENT = 1_000_000
DEFAULT_REQUEST_TIMEOUT = 30.0

_PARAMETER_TO_ENV_KEY = {
    "private_key": "PRIVATE_KEY",
    "network": "NETWORK",
    "max_payment": "MAX_PAYMENT_USDC",
    "request_timeout": "X402_REQUEST_TIMEOUT_SECONDS",
}


class ConfigError(Exception):
    """Raised when the supplied configuration is invalid."""


@dataclass(frozen=True)
class NetworkInfo:
    """An EVM network the client can pay on, with its USDC deployment."""

    name: str
    chain_name: str
    chain_id: int
    usdc_address: str
    selectors: Tuple[str, ...]
    asset_symbol: str = "USDC"
    asset_decimals: int = 6

    @property
    def caip2(self) -> str:
        return f"eip155:{self.chain_id}"

    def matches(self, network: str) -> bool:
        """True when ``network`` names this network (short name or CAIP-2)."""
        return network in (self.name, self.caip2)


NETWORKS: Dict[str, NetworkInfo] = {
    "base-sepolia": NetworkInfo(
        name="base-sepolia",
        chain_name="Base Sepolia",
        chain_id=84532,
        usdc_address="0x036CbD53842c5426634e7929541eC2318f3dCF7e",
        selectors=("baseSepolia", "base-sepolia", "base_sepolia"),
    ),
    "base": NetworkInfo(
        name="base",
        chain_name="Base",
        chain_id=8453,
        usdc_address="0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913",
        selectors=("base",),
    ),
}


def resolve_network(selector: str) -> NetworkInfo:
    value = selector.strip()
    for info in NETWORKS.values():
        if value in info.selectors:
            return info
    supported = ", ".join(s for info in NETWORKS.values() for s in info.selectors)
    raise ConfigError(f"NETWORK must be one of {supported}, got '{selector}'")


def _normalize_private_key(raw_key: str) -> str:
    key = raw_key.strip()
    if not key:
        raise ConfigError("PRIVATE_KEY must not be empty")
    if not key.startswith("0x"):
        key = "0x" + key
    if len(key) != 66:
        raise ConfigError("PRIVATE_KEY must be 32 bytes (64 hex chars)")
    return key


def _parse_positive_int(raw: str, field_name: str) -> int:
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigError(f"{field_name} must be an integer, got '{raw}'") from exc
    if value <= 0:
        raise ConfigError(f"{field_name} must be greater than zero")
    return value


def _parse_timeout(raw: str) -> float:
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigError(
            f"X402_REQUEST_TIMEOUT_SECONDS must be a number, got '{raw}'"
        ) from exc
    if value <= 0:
        raise ConfigError("X402_REQUEST_TIMEOUT_SECONDS must be greater than zero")
    return value


@dataclass(frozen=True)
class FetchConfig:
    """
    Process-wide settings, built once at startup and passed by reference.

    ``max_payment`` is the spend ceiling for a single challenge, expressed in
    the smallest unit of the payment asset.
    """

    private_key: str
    address: str
    network: NetworkInfo
    max_payment: int = DEFAULT_MAX_PAYMENT
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT

    def __repr__(self) -> str:
        return (
            f"FetchConfig(address={self.address!r}, network={self.network.name!r}, "
            f"max_payment={self.max_payment!r}, request_timeout={self.request_timeout!r})"
        )

    @classmethod
    def from_mapping(cls, values: Mapping[str, Optional[str]]) -> "FetchConfig":
        raw_key = values.get("PRIVATE_KEY")
        if not raw_key:
            raise ConfigError("PRIVATE_KEY environment variable is required")
        private_key = _normalize_private_key(raw_key)
        try:
            account = Account.from_key(private_key)
        except Exception as exc:  # noqa: BLE001
            raise ConfigError(f"PRIVATE_KEY is not a valid secp256k1 key: {exc}") from exc

        network = resolve_network(values.get("NETWORK") or "baseSepolia")
        max_payment = _parse_positive_int(
            values.get("MAX_PAYMENT_USDC") or str(DEFAULT_MAX_PAYMENT),
            "MAX_PAYMENT_USDC",
        )
        request_timeout = _parse_timeout(
            values.get("X402_REQUEST_TIMEOUT_SECONDS") or str(DEFAULT_REQUEST_TIMEOUT)
        )

        return cls(
            private_key=private_key,
            address=to_checksum_address(account.address),
            network=network,
            max_payment=max_payment,
            request_timeout=request_timeout,
        )

    @classmethod
    def from_env(
        cls,
        *,
        env_file: Optional[str] = ".env",
        overrides: Optional[Mapping[str, str]] = None,
        base: Optional[Mapping[str, str]] = None,
        private_key: Optional[str] = None,
        network: Optional[str] = None,
        max_payment: Optional[int | str] = None,
        request_timeout: Optional[float | str] = None,
    ) -> "FetchConfig":
        explicit: Dict[str, Any] = {
            "private_key": private_key,
            "network": network,
            "max_payment": max_payment,
            "request_timeout": request_timeout,
        }
        merged_overrides = dict(overrides or {})
        for key, value in explicit.items():
            if value is not None:
                merged_overrides[_PARAMETER_TO_ENV_KEY[key]] = str(value)

        environment = build_environment(
            env_file=env_file,
            base=base,
            overrides=merged_overrides,
        )
        for key in _PARAMETER_TO_ENV_KEY.values():
            logger.debug("%s taken from %s", key, environment.origin(key) or "defaults")
        return cls.from_mapping(
            {key: environment.get(key) for key in _PARAMETER_TO_ENV_KEY.values()}
        )


def load_fetch_config(
    *,
    env_file: Optional[str] = ".env",
    overrides: Optional[Mapping[str, str]] = None,
    base: Optional[Mapping[str, str]] = None,
    private_key: Optional[str] = None,
    network: Optional[str] = None,
    max_payment: Optional[int | str] = None,
    request_timeout: Optional[float | str] = None,
) -> FetchConfig:
    """
    Convenience wrapper that mirrors :meth:`FetchConfig.from_env`.

    Settings may come from the process environment, a ``.env`` file, keyword
    arguments, or any combination of the three.
    """
    return FetchConfig.from_env(
        env_file=env_file,
        overrides=overrides,
        base=base,
        private_key=private_key,
        network=network,
        max_payment=max_payment,
        request_timeout=request_timeout,
    )
