"""
Checkout poller - drives one payment from submit to a terminal state

    idle -> processing -> waiting_confirmation -> success | failed

While waiting for confirmation a background asyncio task polls the status
endpoint every ``interval`` seconds. The task is cancelled when a terminal
state is reached, when the attempt or time budget runs out, on ``reset()``
and on ``close()``.
"""

import asyncio
import enum
import logging
from decimal import Decimal
from typing import Callable, Optional, Union

from stkpay.client.api_client import CheckoutApiClient, CheckoutApiError

logger = logging.getLogger(__name__)


class CheckoutState(str, enum.Enum):
    IDLE = "idle"
    PROCESSING = "processing"
    WAITING_CONFIRMATION = "waiting_confirmation"
    SUCCESS = "success"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (CheckoutState.SUCCESS, CheckoutState.FAILED)


StateListener = Callable[[CheckoutState, "PaymentPoller"], None]


class PaymentPoller:
    """
    Parameters
    ----------
    api : CheckoutApiClient
        Client for /pay and /status.
    interval : float
        Seconds between status polls. Default 2.
    max_attempts : int or None
        Polls before giving up with failure_reason "timeout". None = no limit.
    timeout : float or None
        Seconds spent waiting for confirmation before giving up. None = no limit.
    on_change : callable
        Called with (new_state, poller) on every transition. Exceptions it
        raises are logged and do not interrupt the flow.
    """

    def __init__(
        self,
        api: CheckoutApiClient,
        interval: float = 2.0,
        max_attempts: Optional[int] = 60,
        timeout: Optional[float] = 120.0,
        on_change: Optional[StateListener] = None,
    ):
        self.api = api
        self.interval = interval
        self.max_attempts = max_attempts
        self.timeout = timeout
        self.on_change = on_change

        self.state = CheckoutState.IDLE
        self.transaction_id: Optional[str] = None
        self.failure_reason: Optional[str] = None
        self.attempts = 0

        self._task: Optional[asyncio.Task] = None
        self._settled = asyncio.Event()

    @property
    def is_polling(self) -> bool:
        return self._task is not None and not self._task.done()

    async def submit(self, phone: str, amount: Union[Decimal, float, int]) -> CheckoutState:
        """
        Start a new payment flow.

        A poller in a terminal state is reset first (retry = brand-new flow);
        submitting while a flow is in progress is an error.
        """
        if self.state in (CheckoutState.PROCESSING, CheckoutState.WAITING_CONFIRMATION):
            raise RuntimeError(f"A payment is already in progress (state={self.state.value})")
        if self.state.is_terminal:
            self.reset()

        self._set_state(CheckoutState.PROCESSING)
        try:
            transaction_id = await self.api.pay(phone, amount)
        except CheckoutApiError as e:
            logger.error(f"Payment initiation failed: {e.message}")
            self._finish(CheckoutState.FAILED, e.message)
            return self.state

        self.transaction_id = transaction_id
        self._set_state(CheckoutState.WAITING_CONFIRMATION)
        self._task = asyncio.create_task(self._poll(transaction_id))
        return self.state

    async def wait(self) -> CheckoutState:
        """Wait until the flow settles (terminal state or close())"""
        await self._settled.wait()
        return self.state

    def reset(self) -> None:
        """Drop the current flow and return to idle"""
        self._cancel_timer()
        self.transaction_id = None
        self.failure_reason = None
        self.attempts = 0
        self._settled = asyncio.Event()
        self._set_state(CheckoutState.IDLE)

    async def close(self) -> None:
        """Stop polling; safe to call in any state and more than once"""
        task = self._task
        self._cancel_timer()
        if task is not None:
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._settled.set()

    async def __aenter__(self) -> "PaymentPoller":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def _poll(self, transaction_id: str) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.timeout if self.timeout is not None else None

        while True:
            await asyncio.sleep(self.interval)
            self.attempts += 1

            try:
                status = await self.api.status(transaction_id)
            except CheckoutApiError as e:
                # Transient errors (including 404 before the record is visible) keep the flow alive
                logger.warning(f"Polling error: transaction_id={transaction_id}, error={e.message}")
                status = None

            if status == CheckoutState.SUCCESS.value:
                self._finish(CheckoutState.SUCCESS)
                return
            if status == CheckoutState.FAILED.value:
                self._finish(CheckoutState.FAILED, "failed")
                return

            if self.max_attempts is not None and self.attempts >= self.max_attempts:
                logger.warning(f"Polling gave up after {self.attempts} attempts: transaction_id={transaction_id}")
                self._finish(CheckoutState.FAILED, "timeout")
                return
            if deadline is not None and loop.time() >= deadline:
                logger.warning(f"Polling timed out after {self.timeout}s: transaction_id={transaction_id}")
                self._finish(CheckoutState.FAILED, "timeout")
                return

    def _finish(self, state: CheckoutState, reason: Optional[str] = None) -> None:
        self.failure_reason = reason
        try:
            self._set_state(state)
        finally:
            # The polling task ends by returning; it must not cancel itself
            if self._task is not None and self._task is not asyncio.current_task():
                self._task.cancel()
            self._task = None
            self._settled.set()

    def _cancel_timer(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None

    def _set_state(self, state: CheckoutState) -> None:
        if state == self.state:
            return
        logger.info(f"Checkout state: {self.state.value} -> {state.value}")
        self.state = state
        if self.on_change is not None:
            try:
                self.on_change(state, self)
            except Exception:
                logger.exception(f"State listener failed: state={state.value}")
