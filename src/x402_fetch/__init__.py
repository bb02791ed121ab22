"""
Public facade for the x402 fetch package.

Re-exports the pieces integrators need so they can ``from x402_fetch import
...`` without navigating the package.
"""

from .api import create_fetch_client, fetch, wallet_info
from .core import (
    ConfigError,
    DoublePaymentChallenge,
    EvmSigner,
    FetchConfig,
    FetchOutcome,
    FetchRequest,
    FetchState,
    MalformedChallenge,
    MalformedSettlement,
    PaymentAuthorization,
    PaymentClient,
    PaymentDeclined,
    PaymentRequirement,
    SettlementReceipt,
    SigningFailure,
    TransportFailure,
    X402FetchError,
    decide,
    load_fetch_config,
)

__all__ = (
    "ConfigError",
    "DoublePaymentChallenge",
    "EvmSigner",
    "FetchConfig",
    "FetchOutcome",
    "FetchRequest",
    "FetchState",
    "MalformedChallenge",
    "MalformedSettlement",
    "PaymentAuthorization",
    "PaymentClient",
    "PaymentDeclined",
    "PaymentRequirement",
    "SettlementReceipt",
    "SigningFailure",
    "TransportFailure",
    "X402FetchError",
    "create_fetch_client",
    "decide",
    "fetch",
    "load_fetch_config",
    "wallet_info",
)
