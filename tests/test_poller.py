"""
Tests for the checkout poller state machine and its API client

The payment API is simulated with an httpx MockTransport; poll intervals are
a few milliseconds so every scenario settles quickly.
"""

import asyncio
import httpx
import pytest
from decimal import Decimal

from stkpay.client import CheckoutApiClient, CheckoutApiError, CheckoutState, PaymentPoller


class FakeCheckoutServer:
    """
    Answers /api/pay with ``pay`` and /api/status/{id} with ``statuses`` in
    order (the last one repeats). A status entry is a status string, an HTTP
    status code, or "connect-error".
    """

    def __init__(self, pay=(200, {"success": True, "transactionId": "TXN123"}), statuses=("pending",)):
        self.pay = pay
        self.statuses = list(statuses)
        self.pay_calls = 0
        self.status_calls = 0

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/pay":
            self.pay_calls += 1
            if self.pay == "connect-error":
                raise httpx.ConnectError("connection refused", request=request)
            status_code, body = self.pay
            return httpx.Response(status_code, json=body)

        assert request.url.path.startswith("/api/status/")
        self.status_calls += 1
        entry = self.statuses.pop(0) if len(self.statuses) > 1 else self.statuses[0]
        if entry == "connect-error":
            raise httpx.ConnectError("connection refused", request=request)
        if isinstance(entry, int):
            return httpx.Response(entry, json={"status": "unknown", "message": "Transaction not found"})
        return httpx.Response(200, json={"status": entry})


def _api(server: FakeCheckoutServer) -> CheckoutApiClient:
    return CheckoutApiClient("http://payments.test", transport=httpx.MockTransport(server))


def _poller(server: FakeCheckoutServer, states: list, **kwargs) -> PaymentPoller:
    kwargs.setdefault("interval", 0.005)
    return PaymentPoller(
        _api(server),
        on_change=lambda state, poller: states.append(state),
        **kwargs,
    )


def test_success_flow():
    server = FakeCheckoutServer(statuses=[404, "pending", "success"])
    states = []

    async def scenario():
        poller = _poller(server, states)
        submitted = await poller.submit("+254700000000", Decimal("100"))
        assert submitted == CheckoutState.WAITING_CONFIRMATION
        assert poller.transaction_id == "TXN123"
        final = await poller.wait()
        await poller.api.aclose()
        return poller, final

    poller, final = asyncio.run(scenario())

    assert final == CheckoutState.SUCCESS
    assert states == [CheckoutState.PROCESSING, CheckoutState.WAITING_CONFIRMATION, CheckoutState.SUCCESS]
    assert poller.attempts == 3
    assert poller.failure_reason is None
    assert not poller.is_polling


def test_raising_listener_does_not_block_settlement():
    server = FakeCheckoutServer(statuses=["pending", "success"])

    def listener(state, poller):
        if state == CheckoutState.SUCCESS:
            raise RuntimeError("display failed")

    async def scenario():
        poller = PaymentPoller(_api(server), interval=0.005, on_change=listener)
        await poller.submit("+254700000000", 100)
        final = await asyncio.wait_for(poller.wait(), timeout=1)
        return poller, final

    poller, final = asyncio.run(scenario())

    assert final == CheckoutState.SUCCESS
    assert not poller.is_polling


def test_raising_listener_on_initiation_failure():
    server = FakeCheckoutServer(pay=(400, {"success": False, "error": "Invalid phone number"}))

    def listener(state, poller):
        raise RuntimeError("display failed")

    async def scenario():
        poller = PaymentPoller(_api(server), interval=0.005, on_change=listener)
        result = await poller.submit("+254700000000", 100)
        final = await asyncio.wait_for(poller.wait(), timeout=1)
        return result, final

    assert asyncio.run(scenario()) == (CheckoutState.FAILED, CheckoutState.FAILED)


def test_failed_status():
    server = FakeCheckoutServer(statuses=["pending", "failed"])
    states = []

    async def scenario():
        poller = _poller(server, states)
        await poller.submit("+254700000000", 100)
        return poller, await poller.wait()

    poller, final = asyncio.run(scenario())

    assert final == CheckoutState.FAILED
    assert poller.failure_reason == "failed"
    assert server.status_calls == 2


def test_initiation_rejected():
    server = FakeCheckoutServer(pay=(400, {"success": False, "error": "Invalid phone number"}))
    states = []

    async def scenario():
        poller = _poller(server, states)
        return poller, await poller.submit("+254799999999", 100)

    poller, result = asyncio.run(scenario())

    assert result == CheckoutState.FAILED
    assert poller.failure_reason == "Invalid phone number"
    assert states == [CheckoutState.PROCESSING, CheckoutState.FAILED]
    assert server.status_calls == 0


def test_initiation_network_error():
    server = FakeCheckoutServer(pay="connect-error")

    async def scenario():
        poller = _poller(server, [])
        return await poller.submit("+254700000000", 100)

    assert asyncio.run(scenario()) == CheckoutState.FAILED
    assert server.status_calls == 0


def test_transient_poll_errors_are_tolerated():
    server = FakeCheckoutServer(statuses=["connect-error", 500, "success"])

    async def scenario():
        poller = _poller(server, [])
        await poller.submit("+254700000000", 100)
        return await poller.wait()

    assert asyncio.run(scenario()) == CheckoutState.SUCCESS
    assert server.status_calls == 3


def test_gives_up_after_max_attempts():
    server = FakeCheckoutServer(statuses=["pending"])

    async def scenario():
        poller = _poller(server, [], max_attempts=3, timeout=None)
        await poller.submit("+254700000000", 100)
        return poller, await poller.wait()

    poller, final = asyncio.run(scenario())

    assert final == CheckoutState.FAILED
    assert poller.failure_reason == "timeout"
    assert poller.attempts == 3
    assert server.status_calls == 3


def test_gives_up_after_timeout():
    server = FakeCheckoutServer(statuses=["pending"])

    async def scenario():
        poller = _poller(server, [], max_attempts=None, timeout=0.05)
        await poller.submit("+254700000000", 100)
        return poller, await poller.wait()

    poller, final = asyncio.run(scenario())

    assert final == CheckoutState.FAILED
    assert poller.failure_reason == "timeout"
    assert server.status_calls >= 1


def test_close_stops_polling():
    server = FakeCheckoutServer(statuses=["pending"])

    async def scenario():
        poller = _poller(server, [], interval=0.05)
        await poller.submit("+254700000000", 100)
        await poller.close()
        await poller.close()
        assert not poller.is_polling
        # wait() returns once closed, without a terminal state
        state = await asyncio.wait_for(poller.wait(), timeout=1)
        await asyncio.sleep(0.1)
        return state

    assert asyncio.run(scenario()) == CheckoutState.WAITING_CONFIRMATION
    assert server.status_calls == 0


def test_context_manager_closes():
    server = FakeCheckoutServer(statuses=["pending"])

    async def scenario():
        async with _poller(server, [], interval=0.05) as poller:
            await poller.submit("+254700000000", 100)
        await asyncio.sleep(0.1)
        return poller

    poller = asyncio.run(scenario())

    assert not poller.is_polling
    assert server.status_calls == 0


def test_submit_while_in_progress_is_rejected():
    server = FakeCheckoutServer(statuses=["pending"])

    async def scenario():
        poller = _poller(server, [], interval=10)
        await poller.submit("+254700000000", 100)
        try:
            with pytest.raises(RuntimeError):
                await poller.submit("+254700000000", 100)
        finally:
            await poller.close()

    asyncio.run(scenario())
    assert server.pay_calls == 1


def test_retry_after_failure_starts_fresh_flow():
    server = FakeCheckoutServer(
        pay=(400, {"success": False, "error": "Failed to initiate payment."}),
        statuses=["success"],
    )
    states = []

    async def scenario():
        poller = _poller(server, states)
        await poller.submit("+254700000000", 100)
        assert poller.failure_reason == "Failed to initiate payment."

        server.pay = (200, {"success": True, "transactionId": "TXN456"})
        await poller.submit("+254700000000", 100)
        return poller, await poller.wait()

    poller, final = asyncio.run(scenario())

    assert final == CheckoutState.SUCCESS
    assert poller.transaction_id == "TXN456"
    assert poller.failure_reason is None
    assert poller.attempts == 1
    assert states == [
        CheckoutState.PROCESSING,
        CheckoutState.FAILED,
        CheckoutState.IDLE,
        CheckoutState.PROCESSING,
        CheckoutState.WAITING_CONFIRMATION,
        CheckoutState.SUCCESS,
    ]


def test_reset_returns_to_idle():
    server = FakeCheckoutServer(statuses=["pending"])

    async def scenario():
        poller = _poller(server, [], interval=10)
        await poller.submit("+254700000000", 100)
        poller.reset()
        await asyncio.sleep(0)
        return poller

    poller = asyncio.run(scenario())

    assert poller.state == CheckoutState.IDLE
    assert poller.transaction_id is None
    assert not poller.is_polling


class TestCheckoutApiClient:
    def test_pay_sends_whole_amount_as_integer(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["body"] = request.content
            return httpx.Response(200, json={"success": True, "transactionId": "TXN1"})

        async def scenario():
            async with CheckoutApiClient("http://payments.test/", transport=httpx.MockTransport(handler)) as api:
                return await api.pay("+254700000000", Decimal("100.00"))

        assert asyncio.run(scenario()) == "TXN1"
        assert seen["path"] == "/api/pay"
        assert b'"amount":100' in seen["body"].replace(b" ", b"")

    def test_status_escapes_transaction_id(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["raw_path"] = request.url.raw_path
            return httpx.Response(200, json={"status": "pending"})

        async def scenario():
            async with CheckoutApiClient("http://payments.test", transport=httpx.MockTransport(handler)) as api:
                return await api.status("ws/CO?1#2")

        assert asyncio.run(scenario()) == "pending"
        assert seen["raw_path"] == b"/api/status/ws%2FCO%3F1%232"

    def test_error_body_message_is_surfaced(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, json={"status": "unknown", "message": "Transaction not found"})

        async def scenario():
            async with CheckoutApiClient("http://payments.test", transport=httpx.MockTransport(handler)) as api:
                await api.status("NOPE")

        with pytest.raises(CheckoutApiError) as exc_info:
            asyncio.run(scenario())

        assert exc_info.value.status_code == 404
        assert exc_info.value.message == "Transaction not found"

    def test_non_json_body_is_an_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="OK")

        async def scenario():
            async with CheckoutApiClient("http://payments.test", transport=httpx.MockTransport(handler)) as api:
                await api.status("TXN1")

        with pytest.raises(CheckoutApiError):
            asyncio.run(scenario())
