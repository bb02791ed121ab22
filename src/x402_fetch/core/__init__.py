"""
Core primitives that implement the x402 challenge-retry exchange.
"""

from .client import PaymentClient
from .codec import decode_challenge, decode_settlement, encode_payment
from .config import ConfigError, FetchConfig, NetworkInfo, NETWORKS, load_fetch_config
from .environment import EnvLayer, FetchEnvironment, build_environment
from .errors import (
    DoublePaymentChallenge,
    MalformedChallenge,
    MalformedSettlement,
    PaymentDeclined,
    SigningFailure,
    TransportFailure,
    X402FetchError,
)
from .observer import FetchState, LoggingObserver
from .policy import decide
from .signer import EvmSigner
from .types import (
    Accept,
    FetchOutcome,
    FetchRequest,
    PaymentAuthorization,
    PaymentEnvelope,
    PaymentRequirement,
    Reject,
    SettlementReceipt,
)

__all__ = [
    "Accept",
    "ConfigError",
    "DoublePaymentChallenge",
    "EvmSigner",
    "FetchConfig",
    "EnvLayer",
    "FetchEnvironment",
    "FetchOutcome",
    "FetchRequest",
    "FetchState",
    "LoggingObserver",
    "MalformedChallenge",
    "MalformedSettlement",
    "NETWORKS",
    "NetworkInfo",
    "PaymentAuthorization",
    "PaymentClient",
    "PaymentDeclined",
    "PaymentEnvelope",
    "PaymentRequirement",
    "Reject",
    "SettlementReceipt",
    "SigningFailure",
    "TransportFailure",
    "X402FetchError",
    "build_environment",
    "decide",
    "decode_challenge",
    "decode_settlement",
    "encode_payment",
    "load_fetch_config",
]
