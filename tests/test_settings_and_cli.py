"""
Tests for settings parsing and the checkout CLI helpers
"""

import argparse
import pytest
from decimal import Decimal

from stkpay.client import CheckoutState, PaymentPoller
from stkpay.client.cli import build_parser, parse_amount, print_state
from stkpay.infrastructure.settings import Settings


class TestSettings:
    def test_cors_origins_from_comma_separated_string(self):
        settings = Settings(CORS_ALLOW_ORIGINS="http://a.test, http://b.test,")

        assert settings.cors_allow_origins_list == ["http://a.test", "http://b.test"]

    def test_gateway_url_follows_environment(self):
        assert Settings(GATEWAY_ENVIRONMENT="Production").gateway_base_url == "https://api.lipana.dev/v1"
        assert Settings(GATEWAY_ENVIRONMENT="sandbox").gateway_base_url == "https://sandbox.lipana.dev/v1"

    def test_explicit_gateway_url_wins(self):
        settings = Settings(GATEWAY_BASE_URL="http://gateway.local/v1/", GATEWAY_ENVIRONMENT="production")

        assert settings.gateway_base_url == "http://gateway.local/v1"

    @pytest.mark.parametrize("mode,expected", [("mock", True), ("TEST", True), ("live", False)])
    def test_mock_gateway_modes(self, mode, expected):
        assert Settings(GATEWAY_MODE=mode).use_mock_gateway is expected

    def test_environment_flags(self):
        assert Settings(ENV="prod").is_production
        assert Settings(ENV="test").is_test
        assert not Settings(ENV="local").is_production


class TestCli:
    @pytest.mark.parametrize("value,expected", [("100", Decimal("100")), ("10.50", Decimal("10.50"))])
    def test_parse_amount(self, value, expected):
        assert parse_amount(value) == expected

    @pytest.mark.parametrize("value", ["abc", "0", "-1", "NaN", "Infinity"])
    def test_parse_amount_rejects(self, value):
        with pytest.raises(argparse.ArgumentTypeError):
            parse_amount(value)

    def test_parser_defaults(self):
        args = build_parser().parse_args(["--phone", "+254700000000", "--amount", "100"])

        assert args.amount == Decimal("100")
        assert args.interval == 2.0
        assert args.max_attempts == 60
        assert args.timeout == 120.0
        assert not args.no_limit

    def test_print_state_messages(self, capsys):
        poller = PaymentPoller(api=None)
        poller.transaction_id = "TXN123"

        print_state(CheckoutState.WAITING_CONFIRMATION, poller)
        print_state(CheckoutState.SUCCESS, poller)
        poller.failure_reason = "timeout"
        print_state(CheckoutState.FAILED, poller)
        print_state(CheckoutState.IDLE, poller)

        lines = capsys.readouterr().out.splitlines()
        assert len(lines) == 3
        assert "TXN123" in lines[0]
        assert lines[1] == "Payment Successful! Thank you for your purchase."
        assert lines[2] == "Payment not confirmed in time."
