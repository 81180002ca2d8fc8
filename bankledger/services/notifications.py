"""
Interest Notifications

Observers (e.g. the UI) subscribe a callback and receive one
InterestApplied event per account credited in an interest cycle.
Callbacks may be plain functions or coroutines.

DESIGN DECISION: Delivery is decoupled from scheduling. The ledger
publishes after it has released its lock, so a subscriber is free to
call back into the ledger (e.g. to refresh balances).
"""

import inspect
from typing import Awaitable, Callable, Union

import structlog

from bankledger.models.account import InterestApplied


InterestCallback = Callable[[InterestApplied], Union[None, Awaitable[None]]]


class InterestNotifier:
    """Callback registry for interest-applied events."""

    def __init__(self):
        self._subscribers: list[InterestCallback] = []
        self._logger = structlog.get_logger(__name__)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self, callback: InterestCallback) -> Callable[[], None]:
        """
        Register a callback.

        Returns a function that removes the subscription again.
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    async def publish(self, event: InterestApplied) -> None:
        """
        Deliver an event to every subscriber.

        A failing subscriber is logged and skipped; it does not stop
        delivery to the others or fail the interest cycle.
        """
        for callback in list(self._subscribers):
            try:
                result = callback(event)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                self._logger.error(
                    "interest_subscriber_failed",
                    error=str(e),
                    account_id=str(event.account_id),
                )
