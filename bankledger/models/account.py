"""
Core Data Models for the Bank Ledger

These models define the strict schemas for everything the ledger
keeps in memory, writes to storage, and exports as a backup.
They are designed to:
1. Enforce type safety at runtime
2. Keep money exact (Decimal everywhere, never float)
3. Serialize to the same camelCase layout in storage and in backups
4. Be immutable, so a snapshot handed to a caller can't leak changes back

DESIGN DECISION: Accounts and transactions are frozen Pydantic models.
The ledger changes an account by building a new copy with model_copy(),
which is what makes copy-then-commit persistence possible.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Naive timestamps from storage or backups are read as UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class AccountType(str, Enum):
    """
    Account categories.

    Only SAVINGS accounts accrue interest.
    """
    CHECKING = "checking"
    SAVINGS = "savings"
    BUSINESS = "business"


class TransactionType(str, Enum):
    """Kind of a transaction record."""
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    TRANSFER_IN = "transfer_in"
    TRANSFER_OUT = "transfer_out"


# =============================================================================
# ACCOUNT
# =============================================================================

class Account(BaseModel):
    """
    A bank account and its current balance.

    The balance is only ever changed by the ledger service, which
    guarantees it never goes negative through a withdrawal or transfer.
    """
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique account ID"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Display name"
    )
    account_type: AccountType = Field(
        ...,
        alias="accountType",
        description="Account category"
    )
    currency: str = Field(
        ...,
        min_length=1,
        max_length=10,
        description="Currency code, e.g. SEK"
    )
    balance: Decimal = Field(
        default=Decimal("0"),
        description="Current balance"
    )
    last_updated: datetime = Field(
        default_factory=utc_now,
        alias="lastUpdated",
        description="When the balance last changed"
    )
    last_interest_applied: Optional[datetime] = Field(
        default=None,
        alias="lastInterestApplied",
        description="When interest was last credited (savings only)"
    )

    @field_validator('last_updated', 'last_interest_applied')
    @classmethod
    def assume_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(v)

    @property
    def earns_interest(self) -> bool:
        return self.account_type == AccountType.SAVINGS


# =============================================================================
# TRANSACTION
# =============================================================================

class Transaction(BaseModel):
    """
    A single immutable entry in an account's history.

    Transfers produce two of these: a TRANSFER_OUT on the source and a
    TRANSFER_IN on the destination, each pointing at the other account
    through to_account_id.
    """
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
    )

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique transaction ID"
    )
    account_id: UUID = Field(
        ...,
        alias="accountId",
        description="Account this entry belongs to"
    )
    date: datetime = Field(
        default_factory=utc_now,
        description="When the transaction happened"
    )
    transaction_type: TransactionType = Field(
        ...,
        alias="transactionType",
    )
    # Zero is only produced by an empty opening balance
    amount: Decimal = Field(
        ...,
        ge=0,
        description="Amount moved (always non-negative)"
    )
    balance_after: Decimal = Field(
        ...,
        alias="balanceAfter",
        description="Owning account's balance right after this entry"
    )
    to_account_id: Optional[UUID] = Field(
        default=None,
        alias="toAccountId",
        description="Counterparty account, set on transfer legs only"
    )
    note: Optional[str] = Field(
        default=None,
        max_length=500,
    )

    @field_validator('date')
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        return _as_utc(v)

    @property
    def is_transfer(self) -> bool:
        return self.transaction_type in (
            TransactionType.TRANSFER_IN,
            TransactionType.TRANSFER_OUT,
        )


# =============================================================================
# EVENTS
# =============================================================================

class InterestApplied(BaseModel):
    """Emitted once per account credited during an interest cycle."""
    model_config = ConfigDict(frozen=True)

    account_id: UUID
    amount: Decimal
    timestamp: datetime
