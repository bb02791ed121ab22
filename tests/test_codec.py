"""Unit tests for x402_fetch.core.codec."""

import base64
import json

import pytest

from x402_fetch.core.codec import decode_challenge, decode_settlement, encode_payment
from x402_fetch.core.config import NETWORKS
from x402_fetch.core.errors import MalformedChallenge, MalformedSettlement
from x402_fetch.core.types import PaymentAuthorization

from conftest import (
    PAY_TO,
    b64json,
    challenge_body,
    challenge_response,
    make_response,
    requirement_entry,
    settlement_header,
)

NOW = 1_700_000_000


class TestDecodeChallenge:
    def test_non_402_is_not_a_challenge(self):
        assert decode_challenge(make_response(200, json_body={"ok": True})) is None

    def test_v1_body(self):
        requirement = decode_challenge(challenge_response(), NETWORKS["base-sepolia"], now=NOW)

        assert requirement.x402_version == 1
        assert requirement.amount == 500_000
        assert requirement.network == "base-sepolia"
        assert requirement.pay_to.lower() == PAY_TO
        assert requirement.expires_at == NOW + 300
        assert requirement.extra == {"name": "USDC", "version": "2"}

    def test_v2_header_takes_precedence_over_body(self):
        entry = requirement_entry(network="eip155:84532", amount="1234")
        del entry["maxAmountRequired"]
        del entry["resource"]
        header_doc = {
            "x402Version": 2,
            "resource": {"url": "https://api.example.com/v2"},
            "accepts": [entry],
        }
        response = make_response(
            402,
            json_body=challenge_body(),
            headers={"PAYMENT-REQUIRED": b64json(header_doc)},
        )

        requirement = decode_challenge(response, now=NOW)

        assert requirement.x402_version == 2
        assert requirement.amount == 1234
        assert requirement.network == "eip155:84532"
        assert requirement.resource == "https://api.example.com/v2"

    def test_prefers_entry_on_configured_network(self):
        response = make_response(
            402,
            json_body=challenge_body(
                requirement_entry(network="base", maxAmountRequired="9"),
                requirement_entry(network="base-sepolia", maxAmountRequired="7"),
            ),
        )
        requirement = decode_challenge(response, NETWORKS["base-sepolia"], now=NOW)
        assert requirement.amount == 7

    def test_falls_back_to_first_entry(self):
        response = make_response(402, json_body=challenge_body(requirement_entry(network="polygon")))
        requirement = decode_challenge(response, NETWORKS["base-sepolia"], now=NOW)
        assert requirement.network == "polygon"

    def test_missing_amount(self):
        entry = requirement_entry()
        del entry["maxAmountRequired"]
        response = make_response(402, json_body=challenge_body(entry))
        with pytest.raises(MalformedChallenge, match="no amount"):
            decode_challenge(response, now=NOW)

    @pytest.mark.parametrize("amount", ["0", "-5", 0])
    def test_non_positive_amount(self, amount):
        with pytest.raises(MalformedChallenge, match="positive"):
            decode_challenge(challenge_response(maxAmountRequired=amount), now=NOW)

    @pytest.mark.parametrize("amount", ["1.5", "lots", True, None, "--5", "\u00b2", "1\u0661"])
    def test_non_integer_amount(self, amount):
        with pytest.raises(MalformedChallenge):
            decode_challenge(challenge_response(maxAmountRequired=amount), now=NOW)

    def test_body_that_is_not_json(self):
        response = make_response(402, text="pay up")
        with pytest.raises(MalformedChallenge, match="no payment requirement"):
            decode_challenge(response, now=NOW)

    def test_empty_accepts(self):
        response = make_response(402, json_body={"x402Version": 1, "accepts": []})
        with pytest.raises(MalformedChallenge, match="accepts"):
            decode_challenge(response, now=NOW)

    def test_invalid_pay_to(self):
        with pytest.raises(MalformedChallenge, match="payTo"):
            decode_challenge(challenge_response(payTo="not-an-address"), now=NOW)

    def test_garbled_header(self):
        response = make_response(402, headers={"PAYMENT-REQUIRED": "%%%"})
        with pytest.raises(MalformedChallenge, match="PAYMENT-REQUIRED"):
            decode_challenge(response, now=NOW)

    def test_negative_timeout(self):
        with pytest.raises(MalformedChallenge, match="maxTimeoutSeconds"):
            decode_challenge(challenge_response(maxTimeoutSeconds=-1), now=NOW)


class TestDecodeSettlement:
    def test_absent_header(self):
        assert decode_settlement(make_response(200, text="free"), "Base Sepolia") is None

    def test_primary_header(self):
        response = make_response(200, text="ok", headers=settlement_header())
        receipt = decode_settlement(response, "Base Sepolia")

        assert receipt.amount == 500_000
        assert receipt.amount_display == "0.500000 USDC"
        assert receipt.tx_hash == "0x" + "ab" * 32
        assert receipt.settled is True
        assert receipt.network == "Base Sepolia"

    def test_fallback_alias(self):
        headers = {"PAYMENT-RESPONSE": b64json({"amount": "250000", "txHash": "0x01"})}
        receipt = decode_settlement(make_response(200, headers=headers), "Base")

        assert receipt.amount == 250_000
        assert receipt.tx_hash == "0x01"
        assert receipt.settled is False

    def test_primary_wins_and_is_not_merged(self):
        headers = {
            "X-PAYMENT-RESPONSE": b64json({"amount": "1"}),
            "PAYMENT-RESPONSE": b64json({"amount": "2", "txHash": "0xfeed", "settled": True}),
        }
        receipt = decode_settlement(make_response(200, headers=headers), "Base")

        assert receipt.amount == 1
        assert receipt.tx_hash is None
        assert receipt.settled is False

    def test_not_base64(self):
        response = make_response(200, headers={"X-PAYMENT-RESPONSE": "not base64!"})
        with pytest.raises(MalformedSettlement):
            decode_settlement(response, "Base")

    @pytest.mark.parametrize("amount", ["half", "\u00b2", "-5", "--5", True])
    def test_bad_amount(self, amount):
        response = make_response(200, headers=settlement_header(amount=amount))
        with pytest.raises(MalformedSettlement, match="amount"):
            decode_settlement(response, "Base")

    def test_non_object(self):
        response = make_response(200, headers={"X-PAYMENT-RESPONSE": b64json([1, 2])})
        with pytest.raises(MalformedSettlement, match="JSON object"):
            decode_settlement(response, "Base")


class TestEncodePayment:
    def make_authorization(self, version=1):
        return PaymentAuthorization(
            x402_version=version,
            scheme="exact",
            network="base-sepolia",
            payer="0x" + "11" * 20,
            pay_to=PAY_TO,
            asset="0x036CbD53842c5426634e7929541eC2318f3dCF7e",
            amount=500_000,
            valid_after=100,
            valid_before=200,
            nonce="0x" + "01" * 32,
            signature="0x" + "aa" * 65,
        )

    def test_v1_envelope(self):
        envelope = encode_payment(self.make_authorization())
        decoded = json.loads(base64.b64decode(envelope.value))

        assert envelope.header == "X-PAYMENT"
        assert decoded["x402Version"] == 1
        assert decoded["scheme"] == "exact"
        assert decoded["payload"]["signature"] == "0x" + "aa" * 65
        assert decoded["payload"]["authorization"] == {
            "from": "0x" + "11" * 20,
            "to": PAY_TO,
            "value": "500000",
            "validAfter": "100",
            "validBefore": "200",
            "nonce": "0x" + "01" * 32,
        }

    def test_v2_uses_payment_signature_header(self):
        assert encode_payment(self.make_authorization(version=2)).header == "PAYMENT-SIGNATURE"

    def test_deterministic(self):
        authorization = self.make_authorization()
        assert encode_payment(authorization) == encode_payment(authorization)
