"""
Audit Models for the Bank Ledger

Every balance change, import and lock transition is logged for audit purposes.
This provides:
1. Traceability of every change to an account
2. Debugging information when an interest cycle or import fails
3. A way to reconstruct what happened from the logs alone

DESIGN DECISION: Audit events are append-only. We never delete or modify them.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from bankledger.models.account import utc_now


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Accounts
    ACCOUNT_CREATED = "account_created"
    ACCOUNT_DELETED = "account_deleted"

    # Money movement
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    TRANSFER = "transfer"
    INTEREST_APPLIED = "interest_applied"
    INTEREST_CYCLE_FAILED = "interest_cycle_failed"

    # Backups
    LEDGER_EXPORTED = "ledger_exported"
    LEDGER_IMPORTED = "ledger_imported"
    IMPORT_REJECTED = "import_rejected"

    # Screen lock
    SCREEN_UNLOCKED = "screen_unlocked"
    SCREEN_UNLOCK_FAILED = "screen_unlock_failed"
    SCREEN_LOCKED = "screen_locked"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=utc_now,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Which account (if any) this is about
    account_id: Optional[UUID] = Field(
        default=None,
        description="Account this event relates to"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )

    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "account_id": str(self.account_id) if self.account_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.deposit(account_id, amount, balance_after)
        event = AuditEventBuilder.transfer(from_id, to_id, amount)
    """

    @staticmethod
    def account_created(
        account_id: UUID,
        name: str,
        account_type: str,
        initial_balance: Decimal,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCOUNT_CREATED,
            account_id=account_id,
            description=f"Account created: {name}",
            details={
                "account_type": account_type,
                "initial_balance": str(initial_balance),
            },
            is_user_action=True,
        )

    @staticmethod
    def account_deleted(
        account_id: UUID,
        removed_transactions: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCOUNT_DELETED,
            severity=AuditSeverity.WARNING,
            account_id=account_id,
            description=f"Account deleted with {removed_transactions} transactions",
            details={"removed_transactions": removed_transactions},
            is_user_action=True,
        )

    @staticmethod
    def deposit(
        account_id: UUID,
        amount: Decimal,
        balance_after: Decimal,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DEPOSIT,
            account_id=account_id,
            description=f"Deposited {amount}",
            details={
                "amount": str(amount),
                "balance_after": str(balance_after),
            },
            is_user_action=True,
        )

    @staticmethod
    def withdrawal(
        account_id: UUID,
        amount: Decimal,
        balance_after: Decimal,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.WITHDRAWAL,
            account_id=account_id,
            description=f"Withdrew {amount}",
            details={
                "amount": str(amount),
                "balance_after": str(balance_after),
            },
            is_user_action=True,
        )

    @staticmethod
    def transfer(
        from_account_id: UUID,
        to_account_id: UUID,
        amount: Decimal,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSFER,
            account_id=from_account_id,
            description=f"Transferred {amount}",
            details={
                "to_account_id": str(to_account_id),
                "amount": str(amount),
            },
            is_user_action=True,
        )

    @staticmethod
    def interest_applied(
        account_id: UUID,
        amount: Decimal,
        days: Decimal,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INTEREST_APPLIED,
            account_id=account_id,
            description=f"Interest credited: {amount}",
            details={
                "amount": str(amount),
                "days": str(days),
            },
        )

    @staticmethod
    def interest_cycle_failed(error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INTEREST_CYCLE_FAILED,
            severity=AuditSeverity.ERROR,
            description="Interest cycle failed",
            error_message=error_message,
        )

    @staticmethod
    def ledger_exported(accounts: int, transactions: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_EXPORTED,
            description=f"Ledger exported: {accounts} accounts, {transactions} transactions",
            details={"accounts": accounts, "transactions": transactions},
            is_user_action=True,
        )

    @staticmethod
    def ledger_imported(
        accounts: int,
        transactions: int,
        replace_existing: bool,
    ) -> AuditEvent:
        mode = "replaced" if replace_existing else "merged"
        return AuditEvent(
            event_type=AuditEventType.LEDGER_IMPORTED,
            severity=AuditSeverity.WARNING if replace_existing else AuditSeverity.INFO,
            description=f"Ledger {mode} from backup",
            details={
                "accounts": accounts,
                "transactions": transactions,
                "replace_existing": replace_existing,
            },
            is_user_action=True,
        )

    @staticmethod
    def import_rejected(problems: list[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.IMPORT_REJECTED,
            severity=AuditSeverity.WARNING,
            description=f"Import rejected with {len(problems)} problems",
            details={"problems": problems},
            is_user_action=True,
        )

    @staticmethod
    def screen_unlocked() -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SCREEN_UNLOCKED,
            description="Screen unlocked",
            is_user_action=True,
        )

    @staticmethod
    def screen_unlock_failed() -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SCREEN_UNLOCK_FAILED,
            severity=AuditSeverity.WARNING,
            description="Wrong passcode entered",
            is_user_action=True,
        )

    @staticmethod
    def screen_locked() -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SCREEN_LOCKED,
            description="Screen locked",
            is_user_action=True,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
        )
