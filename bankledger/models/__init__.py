"""
Data Models Package

This package contains all Pydantic models used by the bank ledger.
All data flowing through the system must conform to these schemas.
"""

from bankledger.models.account import (
    Account,
    AccountType,
    InterestApplied,
    Transaction,
    TransactionType,
    utc_now,
)
from bankledger.models.backup import (
    LedgerBackup,
    ValidationIssue,
    ValidationResult,
)
from bankledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "Account",
    "AccountType",
    "InterestApplied",
    "Transaction",
    "TransactionType",
    "utc_now",
    # Backup models
    "LedgerBackup",
    "ValidationIssue",
    "ValidationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
