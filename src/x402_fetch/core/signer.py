"""
Signing identity: turns an accepted requirement into a signed EIP-3009
``TransferWithAuthorization``.
"""

from __future__ import annotations

import secrets
import threading
import time
from typing import Any, Dict, Optional, Tuple

from eth_account import Account
from eth_account.messages import encode_typed_data
from hexbytes import HexBytes

from .config import FetchConfig, NetworkInfo
from .errors import SigningFailure
from .types import PaymentAuthorization, PaymentRequirement

__all__ = ["EvmSigner", "build_typed_data"]

DEFAULT_BACKDATE_SECONDS = 600


def build_typed_data(
    *,
    payer: str,
    pay_to: str,
    amount: int,
    valid_after: int,
    valid_before: int,
    nonce: bytes,
    token_name: str,
    token_version: str,
    chain_id: int,
    asset: str,
) -> Dict[str, Any]:
    return {
        "types": {
            "EIP712Domain": [
                {"name": "name", "type": "string"},
                {"name": "version", "type": "string"},
                {"name": "chainId", "type": "uint256"},
                {"name": "verifyingContract", "type": "address"},
            ],
            "TransferWithAuthorization": [
                {"name": "from", "type": "address"},
                {"name": "to", "type": "address"},
                {"name": "value", "type": "uint256"},
                {"name": "validAfter", "type": "uint256"},
                {"name": "validBefore", "type": "uint256"},
                {"name": "nonce", "type": "bytes32"},
            ],
        },
        "primaryType": "TransferWithAuthorization",
        "domain": {
            "name": token_name,
            "version": token_version,
            "chainId": chain_id,
            "verifyingContract": asset,
        },
        "message": {
            "from": payer,
            "to": pay_to,
            "value": amount,
            "validAfter": valid_after,
            "validBefore": valid_before,
            "nonce": HexBytes(nonce),
        },
    }


def _domain_values(requirement: PaymentRequirement) -> Tuple[str, str]:
    extra = requirement.extra or {}
    return str(extra.get("name", "USDC")), str(extra.get("version", "2"))


class EvmSigner:
    """
    Holds the wallet key for the process lifetime.

    Signing is serialised through a lock, so one signer can be shared by
    concurrent fetch calls.
    """

    def __init__(
        self,
        private_key: str,
        network: NetworkInfo,
        *,
        backdate_seconds: int = DEFAULT_BACKDATE_SECONDS,
    ) -> None:
        self._account = Account.from_key(private_key)
        self._lock = threading.Lock()
        self.network = network
        self.backdate_seconds = backdate_seconds

    @classmethod
    def from_config(cls, config: FetchConfig) -> "EvmSigner":
        return cls(config.private_key, config.network)

    @property
    def address(self) -> str:
        return self._account.address

    def sign(
        self,
        requirement: PaymentRequirement,
        amount: int,
        *,
        now: Optional[int] = None,
        nonce: Optional[bytes] = None,
    ) -> PaymentAuthorization:
        """Sign a transfer of ``amount`` to ``requirement.pay_to``.

        A fresh 32-byte nonce is drawn for every call unless one is given.
        """
        now = int(time.time()) if now is None else now
        nonce_bytes = nonce if nonce is not None else secrets.token_bytes(32)
        valid_after = now - self.backdate_seconds
        valid_before = now + requirement.max_timeout_seconds
        token_name, token_version = _domain_values(requirement)

        typed_data = build_typed_data(
            payer=self.address,
            pay_to=requirement.pay_to,
            amount=amount,
            valid_after=valid_after,
            valid_before=valid_before,
            nonce=nonce_bytes,
            token_name=token_name,
            token_version=token_version,
            chain_id=self.network.chain_id,
            asset=requirement.asset,
        )
        try:
            signable = encode_typed_data(full_message=typed_data)
            with self._lock:
                signed = self._account.sign_message(signable)
        except Exception as exc:  # noqa: BLE001
            raise SigningFailure(f"could not sign payment authorization: {exc}") from exc

        return PaymentAuthorization(
            x402_version=requirement.x402_version,
            scheme=requirement.scheme,
            network=requirement.network,
            payer=self.address,
            pay_to=requirement.pay_to,
            asset=requirement.asset,
            amount=amount,
            valid_after=valid_after,
            valid_before=valid_before,
            nonce="0x" + nonce_bytes.hex(),
            signature="0x" + bytes(signed.signature).hex(),
        )

    def verify(
        self,
        authorization: PaymentAuthorization,
        requirement: PaymentRequirement,
    ) -> bool:
        """
        Check that ``authorization`` was signed by this wallet and is bound to
        ``requirement``'s recipient and asset with an amount covering it.
        """
        if authorization.pay_to.lower() != requirement.pay_to.lower():
            return False
        if authorization.asset.lower() != requirement.asset.lower():
            return False
        if authorization.amount < requirement.amount:
            return False

        token_name, token_version = _domain_values(requirement)
        typed_data = build_typed_data(
            payer=authorization.payer,
            pay_to=authorization.pay_to,
            amount=authorization.amount,
            valid_after=authorization.valid_after,
            valid_before=authorization.valid_before,
            nonce=bytes(HexBytes(authorization.nonce)),
            token_name=token_name,
            token_version=token_version,
            chain_id=self.network.chain_id,
            asset=authorization.asset,
        )
        recovered = Account.recover_message(
            encode_typed_data(full_message=typed_data),
            signature=authorization.signature,
        )
        return recovered == self.address == authorization.payer
