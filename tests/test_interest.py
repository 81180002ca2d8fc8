"""
Tests for savings interest: the formula, ledger crediting,
notifications, and the background scheduler.
"""

import asyncio
from datetime import timedelta
from decimal import Decimal

import pytest

from bankledger.models import AccountType, InterestApplied, TransactionType
from bankledger.services.interest import (
    InterestScheduler,
    compute_interest,
    elapsed_days,
)
from bankledger.services.ledger import INTEREST_NOTE, LedgerService
from bankledger.services.notifications import InterestNotifier


class TestComputeInterest:
    """The pure formula."""

    def test_thirty_days_at_two_and_a_half_percent(self):
        assert compute_interest(Decimal("10000"), Decimal("2.5"), 30) == Decimal("20.55")

    def test_full_year(self):
        assert compute_interest(1000, 5, 365) == Decimal("50.00")

    @pytest.mark.parametrize("balance,rate,days", [
        (0, "2.5", 30),
        (-100, "2.5", 30),
        (1000, 0, 30),
        (1000, "2.5", 0),
        (1000, "2.5", -1),
    ])
    def test_non_positive_inputs_give_zero(self, balance, rate, days):
        assert compute_interest(balance, rate, days) == Decimal("0.00")

    def test_bankers_rounding(self):
        """Exact half cents round to the even cent."""
        # 0.005 -> 0.00, 0.015 -> 0.02
        assert compute_interest(365, 1, Decimal("0.5")) == Decimal("0.00")
        assert compute_interest(1095, 1, Decimal("0.5")) == Decimal("0.02")

    def test_elapsed_days_is_fractional(self):
        assert elapsed_days(timedelta(days=1, hours=12)) == Decimal("1.5")
        assert elapsed_days(timedelta(seconds=-86400)) == Decimal("-1")


class TestApplyInterest:
    """Crediting interest through the ledger."""

    @pytest.mark.asyncio
    async def test_savings_account_is_credited(self, ledger, clock):
        savings = await ledger.create_account("Rainy day", AccountType.SAVINGS, "SEK", 10000)
        clock.advance(days=30)

        events = await ledger.apply_interest()

        assert len(events) == 1
        assert events[0].account_id == savings.id
        assert events[0].amount == Decimal("20.55")

        account = await ledger.get_account(savings.id)
        assert account.balance == Decimal("10020.55")
        assert account.last_interest_applied == events[0].timestamp

        latest = (await ledger.list_transactions(savings.id))[0]
        assert latest.transaction_type == TransactionType.DEPOSIT
        assert latest.note == INTEREST_NOTE
        assert latest.amount == Decimal("20.55")
        assert latest.balance_after == Decimal("10020.55")

    @pytest.mark.asyncio
    async def test_checking_and_business_accounts_earn_nothing(self, ledger, clock):
        await ledger.create_account("Daily", AccountType.CHECKING, "SEK", 10000)
        await ledger.create_account("Shop", AccountType.BUSINESS, "SEK", 10000)
        clock.advance(days=365)

        assert await ledger.apply_interest() == []
        assert len(await ledger.list_transactions()) == 2

    @pytest.mark.asyncio
    async def test_next_period_starts_at_last_credit(self, ledger, clock):
        """A second cycle only pays for the time since the first."""
        savings = await ledger.create_account("Rainy day", AccountType.SAVINGS, "SEK", 10000)
        clock.advance(days=30)
        await ledger.apply_interest()

        # Same instant again: nothing new has accrued
        assert await ledger.apply_interest() == []

        clock.advance(days=30)
        events = await ledger.apply_interest()
        expected = compute_interest(Decimal("10020.55"), Decimal("2.5"), 30)
        assert events[0].amount == expected
        assert (await ledger.get_account(savings.id)).balance == Decimal("10020.55") + expected

    @pytest.mark.asyncio
    async def test_amount_rounding_to_zero_keeps_accruing(self, ledger, clock):
        """Tiny balances aren't credited 0.00; the period keeps growing."""
        savings = await ledger.create_account("Coins", AccountType.SAVINGS, "SEK", 1)
        clock.advance(days=1)

        assert await ledger.apply_interest() == []
        assert (await ledger.get_account(savings.id)).last_interest_applied is None

        clock.advance(days=364)
        events = await ledger.apply_interest()
        # 1 SEK at 2.5% for a year
        assert events[0].amount == Decimal("0.02")

    @pytest.mark.asyncio
    async def test_explicit_now(self, ledger, clock):
        await ledger.create_account("Rainy day", AccountType.SAVINGS, "SEK", 10000)
        events = await ledger.apply_interest(now=clock.now + timedelta(days=30))
        assert events[0].amount == Decimal("20.55")

    @pytest.mark.asyncio
    async def test_custom_rate(self, storage, clock):
        ledger = await LedgerService.open(storage, clock=clock, annual_rate_percent="5")
        await ledger.create_account("Rainy day", AccountType.SAVINGS, "SEK", 1000)
        clock.advance(days=365)

        events = await ledger.apply_interest()
        assert events[0].amount == Decimal("50.00")


class TestInterestNotifications:
    """Subscribers hear about each credited account."""

    @pytest.mark.asyncio
    async def test_subscriber_receives_events(self, ledger, clock):
        received = []
        ledger.on_interest_applied(received.append)
        savings = await ledger.create_account("Rainy day", AccountType.SAVINGS, "SEK", 10000)
        clock.advance(days=30)

        await ledger.apply_interest()

        assert len(received) == 1
        assert received[0].account_id == savings.id

    @pytest.mark.asyncio
    async def test_unsubscribe(self, ledger, clock):
        received = []
        unsubscribe = ledger.on_interest_applied(received.append)
        unsubscribe()
        await ledger.create_account("Rainy day", AccountType.SAVINGS, "SEK", 10000)
        clock.advance(days=30)

        await ledger.apply_interest()
        assert received == []

    @pytest.mark.asyncio
    async def test_subscriber_may_call_back_into_ledger(self, ledger, clock):
        """Events are published after the ledger lock is released."""
        balances = []

        async def refresh(event: InterestApplied):
            balances.append((await ledger.get_account(event.account_id)).balance)

        ledger.on_interest_applied(refresh)
        await ledger.create_account("Rainy day", AccountType.SAVINGS, "SEK", 10000)
        clock.advance(days=30)

        await asyncio.wait_for(ledger.apply_interest(), timeout=1)
        assert balances == [Decimal("10020.55")]

    @pytest.mark.asyncio
    async def test_failing_subscriber_does_not_stop_others(self, clock):
        notifier = InterestNotifier()
        received = []

        def broken(event):
            raise RuntimeError("boom")

        notifier.subscribe(broken)
        notifier.subscribe(received.append)
        event = InterestApplied(
            account_id="6c1f4c0e-5a2b-4d8e-9a59-2f0d6c3f1a11",
            amount=Decimal("1.00"),
            timestamp=clock.now,
        )

        await notifier.publish(event)

        assert received == [event]
        assert notifier.subscriber_count == 2


class BrokenLedger:
    async def apply_interest(self):
        raise RuntimeError("storage unavailable")


class TestInterestScheduler:
    """The recurring background task."""

    def test_interval_must_be_positive(self):
        with pytest.raises(ValueError):
            InterestScheduler(BrokenLedger(), interval_seconds=0)

    @pytest.mark.asyncio
    async def test_failed_cycle_is_swallowed(self):
        scheduler = InterestScheduler(BrokenLedger(), interval_seconds=60)

        assert await scheduler.run_cycle() == []
        assert scheduler.failed_cycles == 1
        assert scheduler.completed_cycles == 0

    @pytest.mark.asyncio
    async def test_run_cycle_credits_interest(self, ledger, clock):
        await ledger.create_account("Rainy day", AccountType.SAVINGS, "SEK", 10000)
        clock.advance(days=30)
        scheduler = InterestScheduler(ledger, interval_seconds=60)

        events = await scheduler.run_cycle()

        assert [e.amount for e in events] == [Decimal("20.55")]
        assert scheduler.completed_cycles == 1

    @pytest.mark.asyncio
    async def test_start_and_stop(self, ledger):
        scheduler = InterestScheduler(ledger, interval_seconds=0.01)

        scheduler.start()
        scheduler.start()
        assert scheduler.is_running
        await asyncio.sleep(0.1)
        await scheduler.stop()

        assert not scheduler.is_running
        assert scheduler.completed_cycles >= 1

    @pytest.mark.asyncio
    async def test_scheduler_keeps_running_after_failures(self):
        scheduler = InterestScheduler(BrokenLedger(), interval_seconds=0.01)

        scheduler.start()
        await asyncio.sleep(0.1)
        assert scheduler.is_running
        await scheduler.stop()

        assert scheduler.failed_cycles >= 2

    @pytest.mark.asyncio
    async def test_stop_without_start(self, ledger):
        await InterestScheduler(ledger).stop()
