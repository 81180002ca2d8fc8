"""
Ledger Service

The heart of the system. It owns the in-memory accounts and
transactions, performs every balance change, and keeps the
in-memory state and the persisted store in step.

GUARANTEES:
- Balances never go negative through a withdrawal or transfer
- Transfers are atomic: both legs are stored together, or neither is
- All validation happens before anything changes
- A failed save leaves the in-memory ledger exactly as it was
- Operations are serialized by one asyncio.Lock, so two concurrent
  deposits can't lose an update (the interest cycle takes the same lock)

DESIGN DECISION: Every operation builds NEW account and transaction
lists, persists them, and only then swaps them in. Accounts and
transactions are frozen models, so snapshots handed to callers can't
be changed behind the ledger's back.

Usage:
    ledger = await LedgerService.open(BlobLedgerStorage(store))
    alice = await ledger.create_account("Alice", AccountType.CHECKING, "SEK", 1000)
"""

import asyncio
from datetime import datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation
from typing import Callable, Optional, Union
from uuid import UUID

from pydantic import ValidationError

from bankledger.audit import AuditLogger
from bankledger.models.account import (
    Account,
    AccountType,
    InterestApplied,
    Transaction,
    TransactionType,
    utc_now,
)
from bankledger.models.backup import LedgerBackup, ValidationResult
from bankledger.services.interest import compute_interest, elapsed_days
from bankledger.services.notifications import InterestCallback, InterestNotifier
from bankledger.services.storage import LedgerStorageInterface
from bankledger.validation import BackupValidator


OPENING_BALANCE_NOTE = "opening balance"
INTEREST_NOTE = "interest"
MAX_NOTE_LENGTH = 500

AccountId = Union[UUID, str]
Amount = Union[Decimal, int, float, str]
Clock = Callable[[], datetime]

_ONE_TICK = timedelta(microseconds=1)


class LedgerError(Exception):
    """Base exception for ledger operations."""
    pass


class LedgerNotOpenError(LedgerError):
    """The ledger was used before LedgerService.open() loaded it."""
    pass


class LedgerValidationError(LedgerError):
    """Bad input: non-positive amount, blank field, same transfer endpoints."""
    pass


class AccountNotFoundError(LedgerError):
    """A referenced account does not exist."""

    def __init__(self, account_id: AccountId):
        self.account_id = account_id
        super().__init__(f"Account not found: {account_id}")


class InsufficientFundsError(LedgerError):
    """A withdrawal or transfer exceeds the available balance."""

    def __init__(self, account_id: UUID, balance: Decimal, amount: Decimal):
        self.account_id = account_id
        self.balance = balance
        self.amount = amount
        super().__init__(
            f"Insufficient funds in {account_id}: balance {balance}, requested {amount}"
        )


class LedgerImportError(LedgerError):
    """A backup document was rejected. Nothing was imported."""

    def __init__(self, problems: list[str]):
        self.problems = list(problems)
        super().__init__("; ".join(self.problems) or "import failed")


def _parse_amount(value: Amount, field: str = "amount") -> Decimal:
    """Coerce user input to an exact, finite Decimal."""
    if isinstance(value, bool):
        raise LedgerValidationError(f"{field} must be a number")
    try:
        # str() first so 0.1 stays 0.1 rather than its binary expansion
        amount = Decimal(str(value)) if isinstance(value, float) else Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise LedgerValidationError(f"{field} must be a number, got {value!r}")
    if not amount.is_finite():
        raise LedgerValidationError(f"{field} must be a finite number")
    return amount


def _positive_amount(value: Amount) -> Decimal:
    amount = _parse_amount(value)
    if amount <= 0:
        raise LedgerValidationError("Amount must be greater than 0")
    return amount


def _as_uuid(account_id: AccountId) -> Optional[UUID]:
    if isinstance(account_id, UUID):
        return account_id
    try:
        return UUID(str(account_id))
    except ValueError:
        return None


def _clean_note(note: Optional[str]) -> Optional[str]:
    if note is None:
        return None
    note = note.strip()
    if len(note) > MAX_NOTE_LENGTH:
        raise LedgerValidationError(f"Note cannot be longer than {MAX_NOTE_LENGTH} characters")
    return note or None


class LedgerService:
    """
    Accounts, balances and transaction history for one user.

    Create with `await LedgerService.open(storage)`; that loads the
    persisted ledger once and returns a ready service.
    """

    def __init__(
        self,
        storage: LedgerStorageInterface,
        annual_rate_percent: Amount = Decimal("2.5"),
        audit_logger: Optional[AuditLogger] = None,
        clock: Optional[Clock] = None,
        validator: Optional[BackupValidator] = None,
    ):
        self._storage = storage
        self._rate = _parse_amount(annual_rate_percent, "annual_rate_percent")
        self._audit = audit_logger or AuditLogger()
        self._clock = clock or utc_now
        self._validator = validator or BackupValidator()
        self._notifier = InterestNotifier()
        self._lock = asyncio.Lock()

        self._accounts: list[Account] = []
        self._transactions: list[Transaction] = []
        self._loaded = False
        self._last_timestamp: Optional[datetime] = None

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    @classmethod
    async def open(
        cls,
        storage: LedgerStorageInterface,
        **kwargs,
    ) -> "LedgerService":
        """Build a service and load the persisted ledger into it."""
        service = cls(storage, **kwargs)
        await service.reload()
        return service

    async def reload(self) -> None:
        """Discard the in-memory ledger and load it again from storage."""
        async with self._lock:
            accounts = await self._storage.load_accounts()
            transactions = await self._storage.load_transactions()
            self._accounts = accounts
            self._transactions = transactions
            self._last_timestamp = None
            self._raise_timestamp_floor(accounts, transactions)
            self._loaded = True

    @property
    def is_open(self) -> bool:
        return self._loaded

    @property
    def annual_rate_percent(self) -> Decimal:
        return self._rate

    def on_interest_applied(self, callback: InterestCallback) -> Callable[[], None]:
        """
        Subscribe to interest-applied events.

        Returns a function that cancels the subscription.
        """
        return self._notifier.subscribe(callback)

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _ensure_open(self) -> None:
        if not self._loaded:
            raise LedgerNotOpenError(
                "Ledger has not been loaded; create it with `await LedgerService.open(storage)`"
            )

    def _tick(self, candidate: Optional[datetime] = None) -> datetime:
        """
        Next timestamp: the clock (or `candidate`), pushed past the last
        one handed out so every change is strictly later than the previous.
        """
        now = candidate or self._clock()
        if self._last_timestamp is not None and now <= self._last_timestamp:
            now = self._last_timestamp + _ONE_TICK
        self._last_timestamp = now
        return now

    def _raise_timestamp_floor(
        self,
        accounts: list[Account],
        transactions: list[Transaction],
    ) -> None:
        stamps = [a.last_updated for a in accounts]
        stamps += [a.last_interest_applied for a in accounts if a.last_interest_applied]
        stamps += [t.date for t in transactions]
        if self._last_timestamp is not None:
            stamps.append(self._last_timestamp)
        if stamps:
            self._last_timestamp = max(stamps)

    def _index_of(self, account_id: AccountId) -> int:
        uid = _as_uuid(account_id)
        if uid is not None:
            for idx, account in enumerate(self._accounts):
                if account.id == uid:
                    return idx
        raise AccountNotFoundError(account_id)

    async def _commit(
        self,
        accounts: list[Account],
        transactions: list[Transaction],
    ) -> None:
        """
        Persist both collections, then make them current.

        If the transactions can't be saved after the accounts were,
        the previous accounts are written back before re-raising.
        """
        previous_accounts = self._accounts
        await self._storage.save_accounts(accounts)
        try:
            await self._storage.save_transactions(transactions)
        except Exception:
            try:
                await self._storage.save_accounts(previous_accounts)
            except Exception as restore_error:
                self._audit.log_error(
                    error_type="storage_restore_failed",
                    error_message=str(restore_error),
                )
            raise
        self._accounts = accounts
        self._transactions = transactions

    # =========================================================================
    # ACCOUNTS
    # =========================================================================

    async def create_account(
        self,
        name: str,
        account_type: Union[AccountType, str],
        currency: str,
        initial_balance: Amount = Decimal("0"),
    ) -> Account:
        """
        Create an account and record its opening balance.

        Raises:
            LedgerValidationError: blank name/currency, unknown account
                type, or a negative initial balance
        """
        name = (name or "").strip()
        currency = (currency or "").strip()
        if not name or not currency:
            raise LedgerValidationError("Name and currency are required")
        try:
            account_type = AccountType(account_type)
        except ValueError:
            raise LedgerValidationError(f"Unknown account type: {account_type!r}")
        balance = _parse_amount(initial_balance, "initial_balance")
        if balance < 0:
            raise LedgerValidationError("Initial balance cannot be negative")

        async with self._lock:
            self._ensure_open()
            now = self._tick()
            try:
                account = Account(
                    name=name,
                    account_type=account_type,
                    currency=currency,
                    balance=balance,
                    last_updated=now,
                )
            except ValidationError as e:
                raise LedgerValidationError(str(e)) from e
            opening = Transaction(
                account_id=account.id,
                date=now,
                transaction_type=TransactionType.DEPOSIT,
                amount=balance,
                balance_after=balance,
                note=OPENING_BALANCE_NOTE,
            )
            await self._commit(
                [*self._accounts, account],
                [*self._transactions, opening],
            )

        self._audit.log_account_created(
            account_id=account.id,
            name=account.name,
            account_type=account.account_type.value,
            initial_balance=balance,
        )
        return account

    async def list_accounts(self) -> list[Account]:
        """All accounts, in creation order. The list is a snapshot."""
        async with self._lock:
            self._ensure_open()
            return list(self._accounts)

    async def get_account(self, account_id: AccountId) -> Account:
        """
        Raises:
            AccountNotFoundError: no such account
        """
        async with self._lock:
            self._ensure_open()
            return self._accounts[self._index_of(account_id)]

    async def delete_account(self, account_id: AccountId) -> bool:
        """
        Delete an account and every transaction it owns.

        Unknown ids are ignored. Returns True if an account was removed.
        """
        async with self._lock:
            self._ensure_open()
            try:
                idx = self._index_of(account_id)
            except AccountNotFoundError:
                return False
            target = self._accounts[idx].id
            accounts = [a for a in self._accounts if a.id != target]
            transactions = [t for t in self._transactions if t.account_id != target]
            removed = len(self._transactions) - len(transactions)
            await self._commit(accounts, transactions)

        self._audit.log_account_deleted(account_id=target, removed_transactions=removed)
        return True

    # =========================================================================
    # MONEY MOVEMENT
    # =========================================================================

    async def deposit(
        self,
        account_id: AccountId,
        amount: Amount,
        note: Optional[str] = None,
    ) -> Transaction:
        """
        Add money to an account.

        Raises:
            LedgerValidationError: amount <= 0, or a note over MAX_NOTE_LENGTH
            AccountNotFoundError: unknown account
        """
        amount = _positive_amount(amount)
        note = _clean_note(note)

        async with self._lock:
            self._ensure_open()
            idx = self._index_of(account_id)
            account = self._accounts[idx]
            now = self._tick()
            new_balance = account.balance + amount

            accounts = list(self._accounts)
            accounts[idx] = account.model_copy(
                update={"balance": new_balance, "last_updated": now}
            )
            tx = Transaction(
                account_id=account.id,
                date=now,
                transaction_type=TransactionType.DEPOSIT,
                amount=amount,
                balance_after=new_balance,
                note=note,
            )
            await self._commit(accounts, [*self._transactions, tx])

        self._audit.log_deposit(account.id, amount, new_balance)
        return tx

    async def withdraw(
        self,
        account_id: AccountId,
        amount: Amount,
        note: Optional[str] = None,
    ) -> Transaction:
        """
        Take money out of an account.

        Raises:
            LedgerValidationError: amount <= 0, or a note over MAX_NOTE_LENGTH
            AccountNotFoundError: unknown account
            InsufficientFundsError: amount > balance
        """
        amount = _positive_amount(amount)
        note = _clean_note(note)

        async with self._lock:
            self._ensure_open()
            idx = self._index_of(account_id)
            account = self._accounts[idx]
            if amount > account.balance:
                raise InsufficientFundsError(account.id, account.balance, amount)
            now = self._tick()
            new_balance = account.balance - amount

            accounts = list(self._accounts)
            accounts[idx] = account.model_copy(
                update={"balance": new_balance, "last_updated": now}
            )
            tx = Transaction(
                account_id=account.id,
                date=now,
                transaction_type=TransactionType.WITHDRAWAL,
                amount=amount,
                balance_after=new_balance,
                note=note,
            )
            await self._commit(accounts, [*self._transactions, tx])

        self._audit.log_withdrawal(account.id, amount, new_balance)
        return tx

    async def transfer(
        self,
        from_id: AccountId,
        to_id: AccountId,
        amount: Amount,
        note: Optional[str] = None,
    ) -> tuple[Transaction, Transaction]:
        """
        Move money between two accounts.

        Both legs are persisted in one commit.
        Returns (transfer_out, transfer_in).

        Raises:
            LedgerValidationError: same account on both sides, amount <= 0,
                or a note over MAX_NOTE_LENGTH
            AccountNotFoundError: either account is unknown
            InsufficientFundsError: amount > source balance
        """
        from_uid, to_uid = _as_uuid(from_id), _as_uuid(to_id)
        if from_uid is None or to_uid is None:
            same_account = str(from_id).strip() == str(to_id).strip()
        else:
            same_account = from_uid == to_uid
        if same_account:
            raise LedgerValidationError("Cannot transfer to the same account")
        amount = _positive_amount(amount)
        note = _clean_note(note)

        async with self._lock:
            self._ensure_open()
            src_idx = self._index_of(from_id)
            dst_idx = self._index_of(to_id)
            source = self._accounts[src_idx]
            destination = self._accounts[dst_idx]
            if amount > source.balance:
                raise InsufficientFundsError(source.id, source.balance, amount)

            accounts = list(self._accounts)

            debit_at = self._tick()
            source_balance = source.balance - amount
            accounts[src_idx] = source.model_copy(
                update={"balance": source_balance, "last_updated": debit_at}
            )
            out_tx = Transaction(
                account_id=source.id,
                date=debit_at,
                transaction_type=TransactionType.TRANSFER_OUT,
                amount=amount,
                balance_after=source_balance,
                to_account_id=destination.id,
                note=note,
            )

            credit_at = self._tick()
            destination_balance = destination.balance + amount
            accounts[dst_idx] = destination.model_copy(
                update={"balance": destination_balance, "last_updated": credit_at}
            )
            in_tx = Transaction(
                account_id=destination.id,
                date=credit_at,
                transaction_type=TransactionType.TRANSFER_IN,
                amount=amount,
                balance_after=destination_balance,
                to_account_id=source.id,
                note=note,
            )

            await self._commit(accounts, [*self._transactions, out_tx, in_tx])

        self._audit.log_transfer(source.id, destination.id, amount)
        return out_tx, in_tx

    async def list_transactions(
        self,
        account_id: Optional[AccountId] = None,
    ) -> list[Transaction]:
        """
        Transaction history, newest first.

        Entries with the same timestamp keep insertion order, later first.
        An unknown account id simply yields an empty list.
        """
        async with self._lock:
            self._ensure_open()
            transactions = self._transactions
            if account_id is not None:
                uid = _as_uuid(account_id)
                transactions = [t for t in transactions if t.account_id == uid]
            ordered = sorted(
                enumerate(transactions),
                key=lambda pair: (pair[1].date, pair[0]),
                reverse=True,
            )
            return [tx for _, tx in ordered]

    # =========================================================================
    # INTEREST
    # =========================================================================

    async def apply_interest(
        self,
        now: Optional[datetime] = None,
    ) -> list[InterestApplied]:
        """
        Credit interest on every savings account.

        The period for an account runs from its last interest credit
        (or, before the first one, its first transaction) to `now`.
        Accounts whose interest rounds to zero are skipped and keep
        accruing. All credits of one cycle are persisted together.

        Returns one InterestApplied per credited account; subscribers
        are notified after the ledger lock is released.
        """
        events: list[InterestApplied] = []
        periods: dict[UUID, Decimal] = {}

        async with self._lock:
            self._ensure_open()
            cycle_at = now or self._clock()
            if cycle_at.tzinfo is None:
                cycle_at = cycle_at.replace(tzinfo=timezone.utc)

            opened_at: dict[UUID, datetime] = {}
            for tx in self._transactions:
                first = opened_at.get(tx.account_id)
                if first is None or tx.date < first:
                    opened_at[tx.account_id] = tx.date

            accounts = list(self._accounts)
            new_transactions: list[Transaction] = []

            for idx, account in enumerate(accounts):
                if not account.earns_interest:
                    continue
                since = (
                    account.last_interest_applied
                    or opened_at.get(account.id)
                    or account.last_updated
                )
                days = elapsed_days(cycle_at - since)
                interest = compute_interest(account.balance, self._rate, days)
                if interest <= 0:
                    continue

                credited_at = self._tick(cycle_at)
                new_balance = account.balance + interest
                accounts[idx] = account.model_copy(update={
                    "balance": new_balance,
                    "last_updated": credited_at,
                    "last_interest_applied": credited_at,
                })
                new_transactions.append(Transaction(
                    account_id=account.id,
                    date=credited_at,
                    transaction_type=TransactionType.DEPOSIT,
                    amount=interest,
                    balance_after=new_balance,
                    note=INTEREST_NOTE,
                ))
                events.append(InterestApplied(
                    account_id=account.id,
                    amount=interest,
                    timestamp=credited_at,
                ))
                periods[account.id] = days

            if events:
                await self._commit(accounts, [*self._transactions, *new_transactions])

        for event in events:
            self._audit.log_interest_applied(
                account_id=event.account_id,
                amount=event.amount,
                days=periods[event.account_id],
            )
        for event in events:
            await self._notifier.publish(event)
        return events

    # =========================================================================
    # BACKUP
    # =========================================================================

    async def export_ledger(self) -> str:
        """
        The whole ledger as a JSON backup document.

        Transactions are written oldest first.
        """
        async with self._lock:
            self._ensure_open()
            accounts = list(self._accounts)
            transactions = sorted(self._transactions, key=lambda t: t.date)

        backup = LedgerBackup(
            exported_at=self._clock(),
            accounts=accounts,
            transactions=transactions,
        )
        document = backup.model_dump_json(by_alias=True, indent=2)
        self._audit.log_ledger_exported(len(accounts), len(transactions))
        return document

    def _merge(
        self,
        incoming_accounts: list[Account],
        incoming_transactions: list[Transaction],
    ) -> tuple[list[Account], list[Transaction]]:
        """
        Union by id. For an account on both sides the newer
        last_updated wins; known transactions are kept as they are.
        Incoming history of an account whose incoming version lost
        is skipped.
        """
        accounts = list(self._accounts)
        position = {account.id: idx for idx, account in enumerate(accounts)}
        outdated: set[UUID] = set()
        for account in incoming_accounts:
            idx = position.get(account.id)
            if idx is None:
                position[account.id] = len(accounts)
                accounts.append(account)
            elif account.last_updated > accounts[idx].last_updated:
                accounts[idx] = account
            else:
                outdated.add(account.id)

        known = {tx.id for tx in self._transactions}
        transactions = list(self._transactions)
        transactions += [
            tx for tx in incoming_transactions
            if tx.id not in known and tx.account_id not in outdated
        ]
        transactions.sort(key=lambda t: t.date)
        return accounts, transactions

    async def import_ledger(
        self,
        document: Optional[str],
        replace_existing: bool,
    ) -> ValidationResult:
        """
        Load a backup document into the ledger.

        With replace_existing the ledger becomes exactly the backup;
        otherwise the backup is merged in (see _merge).

        Returns the validation result, which may carry warnings.

        Raises:
            LedgerImportError: the document was rejected; nothing changed
        """
        result = self._validator.validate(document)
        if not result.is_valid:
            self._audit.log_import_rejected(result.problems)
            raise LedgerImportError(result.problems)

        incoming_accounts = list(result.backup.accounts or [])
        incoming_transactions = list(result.backup.transactions or [])

        async with self._lock:
            self._ensure_open()
            if replace_existing:
                accounts = incoming_accounts
                transactions = sorted(incoming_transactions, key=lambda t: t.date)
            else:
                accounts, transactions = self._merge(incoming_accounts, incoming_transactions)
            await self._commit(accounts, transactions)
            self._raise_timestamp_floor(accounts, transactions)

        self._audit.log_ledger_imported(
            accounts=len(incoming_accounts),
            transactions=len(incoming_transactions),
            replace_existing=replace_existing,
        )
        return result
