#!/usr/bin/env python3
"""
Command-line checkout: send an STK push and wait for the payer to confirm

Usage:
    # Pay KES 100 against a local API
    stkpay-checkout --phone +254700000000 --amount 100

    # Custom API and polling policy
    stkpay-checkout --phone +254700000000 --amount 100 \\
        --api-url https://pay.example.com --interval 3 --timeout 180

    # Poll until the payment settles, however long it takes
    stkpay-checkout --phone +254700000000 --amount 100 --no-limit

Exit code is 0 when the payment succeeded, 1 otherwise.
"""

import argparse
import asyncio
import sys
from decimal import Decimal, InvalidOperation
from typing import List, Optional

from stkpay.client.api_client import CheckoutApiClient
from stkpay.client.poller import CheckoutState, PaymentPoller
from stkpay.infrastructure.logging_config import setup_logging
from stkpay.infrastructure.settings import get_settings

MESSAGES = {
    CheckoutState.PROCESSING: "Sending payment prompt...",
    CheckoutState.WAITING_CONFIRMATION: "Check your phone: waiting for you to enter your PIN...",
    CheckoutState.SUCCESS: "Payment Successful! Thank you for your purchase.",
    CheckoutState.FAILED: "Payment Failed or Cancelled.",
}


def parse_amount(value: str) -> Decimal:
    try:
        amount = Decimal(value)
    except InvalidOperation:
        raise argparse.ArgumentTypeError(f"Invalid amount: {value}")
    if not amount.is_finite() or amount <= 0:
        raise argparse.ArgumentTypeError("Amount must be a positive number")
    return amount


def build_parser() -> argparse.ArgumentParser:
    settings = get_settings()
    parser = argparse.ArgumentParser(
        prog="stkpay-checkout",
        description="Send an M-Pesa push-payment prompt and wait for the result",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument('--phone', required=True, help='Payer phone number, e.g. +254700000000')
    parser.add_argument('--amount', required=True, type=parse_amount, help='Amount to collect')
    parser.add_argument(
        '--api-url',
        default=settings.CHECKOUT_API_URL,
        help=f'Payment API base URL (default: {settings.CHECKOUT_API_URL})',
    )
    parser.add_argument(
        '--interval',
        type=float,
        default=settings.POLL_INTERVAL_SECONDS,
        help=f'Seconds between status checks (default: {settings.POLL_INTERVAL_SECONDS})',
    )
    parser.add_argument(
        '--max-attempts',
        type=int,
        default=settings.POLL_MAX_ATTEMPTS,
        help=f'Status checks before giving up (default: {settings.POLL_MAX_ATTEMPTS})',
    )
    parser.add_argument(
        '--timeout',
        type=float,
        default=settings.POLL_TIMEOUT_SECONDS,
        help=f'Seconds to wait for confirmation (default: {settings.POLL_TIMEOUT_SECONDS})',
    )
    parser.add_argument('--no-limit', action='store_true', help='Poll until the payment settles')
    parser.add_argument('--verbose', action='store_true', help='Emit JSON logs')
    return parser


def print_state(state: CheckoutState, poller: PaymentPoller) -> None:
    message = MESSAGES.get(state)
    if message is None:
        return
    if state == CheckoutState.WAITING_CONFIRMATION:
        message = f"{message} (transaction {poller.transaction_id})"
    elif state == CheckoutState.FAILED and poller.failure_reason == "timeout":
        message = "Payment not confirmed in time."
    print(message, flush=True)


async def checkout(args: argparse.Namespace) -> CheckoutState:
    async with CheckoutApiClient(args.api_url, api_prefix=get_settings().API_PREFIX) as api:
        async with PaymentPoller(
            api,
            interval=args.interval,
            max_attempts=None if args.no_limit else args.max_attempts,
            timeout=None if args.no_limit else args.timeout,
            on_change=print_state,
        ) as poller:
            state = await poller.submit(args.phone, args.amount)
            if state.is_terminal:
                return state
            return await poller.wait()


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging("DEBUG" if args.verbose else "WARNING")

    try:
        state = asyncio.run(checkout(args))
    except KeyboardInterrupt:
        print("Cancelled.", file=sys.stderr)
        return 130
    return 0 if state == CheckoutState.SUCCESS else 1


if __name__ == "__main__":
    sys.exit(main())
