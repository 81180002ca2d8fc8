"""
Savings Interest

Two pieces live here:
1. compute_interest - the pure interest formula
2. InterestScheduler - the recurring background task that asks the
   ledger to credit interest on a fixed interval

DESIGN DECISION: The scheduler never touches ledger state itself.
It calls LedgerService.apply_interest, which takes the same lock as
every foreground operation, so a cycle can't interleave with a deposit.

Stopping the scheduler never interrupts a cycle: stop() signals the
loop and waits for the cycle in progress (if any) to finish.
"""

import asyncio
from datetime import timedelta
from decimal import ROUND_HALF_EVEN, Decimal
from typing import TYPE_CHECKING, Optional, Union

from bankledger.audit import AuditLogger
from bankledger.models.account import InterestApplied

if TYPE_CHECKING:
    from bankledger.services.ledger import LedgerService


CENT = Decimal("0.01")
DAYS_PER_YEAR = Decimal(365)

Number = Union[Decimal, int, str]


def elapsed_days(delta: timedelta) -> Decimal:
    """A timedelta as an exact (fractional) number of days."""
    return (
        Decimal(delta.days)
        + Decimal(delta.seconds) / Decimal(86_400)
        + Decimal(delta.microseconds) / Decimal(86_400_000_000)
    )


def compute_interest(
    balance: Number,
    annual_rate_percent: Number,
    days: Number,
) -> Decimal:
    """
    Simple interest for a period, rounded to cents with banker's rounding.

        interest = round(balance * rate/100 * days/365, 2)

    Returns 0.00 for non-positive balances, rates or periods.

    >>> compute_interest(Decimal("10000"), Decimal("2.5"), 30)
    Decimal('20.55')
    """
    balance = Decimal(balance)
    rate = Decimal(annual_rate_percent)
    days = Decimal(days)

    if balance <= 0 or rate <= 0 or days <= 0:
        return Decimal("0.00")

    interest = balance * rate / Decimal(100) * days / DAYS_PER_YEAR
    return interest.quantize(CENT, rounding=ROUND_HALF_EVEN)


class InterestScheduler:
    """
    Runs an interest cycle every `interval_seconds` on the event loop.

    Usage:
        scheduler = InterestScheduler(ledger, interval_seconds=60)
        scheduler.start()
        ...
        await scheduler.stop()
    """

    def __init__(
        self,
        ledger: "LedgerService",
        interval_seconds: float = 60.0,
        audit_logger: Optional[AuditLogger] = None,
    ):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self._ledger = ledger
        self._interval = interval_seconds
        self._audit = audit_logger or AuditLogger()
        self._task: Optional[asyncio.Task] = None
        self._stopping: Optional[asyncio.Event] = None
        self._completed_cycles = 0
        self._failed_cycles = 0

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def completed_cycles(self) -> int:
        return self._completed_cycles

    @property
    def failed_cycles(self) -> int:
        return self._failed_cycles

    def start(self) -> None:
        """Start the recurring task. Calling start() twice is a no-op."""
        if self.is_running:
            return
        self._stopping = asyncio.Event()
        self._task = asyncio.create_task(self._run(), name="interest-scheduler")

    async def stop(self) -> None:
        """
        Stop the recurring task.

        A cycle in progress is allowed to finish first.
        """
        if self._task is None:
            return
        self._stopping.set()
        try:
            await self._task
        finally:
            self._task = None

    async def run_cycle(self) -> list[InterestApplied]:
        """
        Run one interest cycle now.

        Failures are logged and swallowed so the recurring task
        keeps going; an empty list is returned instead.
        """
        try:
            events = await self._ledger.apply_interest()
        except Exception as e:
            self._failed_cycles += 1
            self._audit.log_interest_cycle_failed(f"{type(e).__name__}: {e}")
            return []
        self._completed_cycles += 1
        return events

    async def _run(self) -> None:
        while not self._stopping.is_set():
            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=self._interval)
            except asyncio.TimeoutError:
                await self.run_cycle()
