"""Unit tests for x402_fetch.core.policy."""

from dataclasses import replace

from x402_fetch.core.policy import decide
from x402_fetch.core.types import Accept, PaymentRequirement, Reject

from conftest import BASE_SEPOLIA_USDC, PAY_TO

NOW = 1_700_000_000


def make_requirement(**overrides):
    values = dict(
        x402_version=1,
        scheme="exact",
        network="base-sepolia",
        pay_to=PAY_TO,
        asset=BASE_SEPOLIA_USDC,
        amount=500_000,
        max_timeout_seconds=300,
        issued_at=NOW,
    )
    values.update(overrides)
    return PaymentRequirement(**values)


class TestDecide:
    def test_accepts_exact_amount(self, config):
        assert decide(make_requirement(), config, now=NOW) == Accept(500_000)

    def test_accepts_amount_equal_to_ceiling(self, config):
        requirement = make_requirement(amount=config.max_payment)
        assert decide(requirement, config, now=NOW) == Accept(config.max_payment)

    def test_rejects_amount_above_ceiling(self, config):
        requirement = make_requirement(amount=config.max_payment + 1)
        decision = decide(requirement, config, now=NOW)
        assert isinstance(decision, Reject)
        assert decision.reason == "ceiling-exceeded"

    def test_ceiling_is_checked_before_network(self, config):
        requirement = make_requirement(amount=5_000_000, network="base")
        assert decide(requirement, config, now=NOW).reason == "ceiling-exceeded"

    def test_rejects_other_network(self, config):
        decision = decide(make_requirement(network="base"), config, now=NOW)
        assert decision == Reject("network-mismatch", decision.detail)

    def test_accepts_caip2_network_identifier(self, config):
        requirement = make_requirement(network="eip155:84532")
        assert decide(requirement, config, now=NOW) == Accept(500_000)

    def test_rejects_expired_requirement(self, config):
        requirement = make_requirement(max_timeout_seconds=60)
        decision = decide(requirement, config, now=NOW + 60)
        assert decision.reason == "expired"

    def test_zero_timeout_is_already_expired(self, config):
        decision = decide(make_requirement(max_timeout_seconds=0), config, now=NOW)
        assert decision.reason == "expired"

    def test_rejects_unsupported_scheme(self, config):
        decision = decide(make_requirement(scheme="upto"), config, now=NOW)
        assert decision.reason == "unsupported-scheme"

    def test_custom_ceiling(self, config):
        low = replace(config, max_payment=100_000)
        assert decide(make_requirement(), low, now=NOW).reason == "ceiling-exceeded"
