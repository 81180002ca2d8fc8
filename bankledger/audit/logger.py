"""
Audit Logger

DESIGN DECISION: Every change to the ledger is logged.
This provides:
1. Complete traceability of balances
2. Debugging capability for background interest cycles
3. A record of imports that replaced the ledger

The audit logger:
- Writes structured JSON lines through structlog
- Never raises (a logging failure must not fail a deposit)
"""

import logging
from decimal import Decimal
from typing import Optional
from uuid import UUID

import structlog

from bankledger.models.audit import AuditEvent, AuditEventBuilder


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: str = "INFO") -> None:
    """
    Route structlog output to stderr at the given level.

    structlog hands rendered JSON to the stdlib logger, so the
    stdlib root logger decides what is actually emitted.
    """
    logging.basicConfig(format="%(message)s", level=getattr(logging, level.upper()))


class AuditLogger:
    """
    Central audit logging service.

    One `audit_event` log line per AuditEvent, at a level
    matching the event's severity.
    """

    def __init__(self, logger_name: Optional[str] = None):
        self._logger = structlog.get_logger(logger_name or "bankledger.audit")

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Returns False if the event could not be written.
        """
        log_dict = event.to_log_dict()

        try:
            if event.severity.value in ("error", "critical"):
                self._logger.error("audit_event", **log_dict)
            elif event.severity.value == "warning":
                self._logger.warning("audit_event", **log_dict)
            elif event.severity.value == "debug":
                self._logger.debug("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception as e:
            # Log failure but don't raise
            logging.getLogger(__name__).error(
                "audit_log_failed: %s (event_id=%s)", e, event.event_id
            )
            return False

        return True

    def log_account_created(
        self,
        account_id: UUID,
        name: str,
        account_type: str,
        initial_balance: Decimal,
    ) -> None:
        """Log account creation."""
        self.log(AuditEventBuilder.account_created(
            account_id=account_id,
            name=name,
            account_type=account_type,
            initial_balance=initial_balance,
        ))

    def log_account_deleted(
        self,
        account_id: UUID,
        removed_transactions: int,
    ) -> None:
        """Log account deletion."""
        self.log(AuditEventBuilder.account_deleted(
            account_id=account_id,
            removed_transactions=removed_transactions,
        ))

    def log_deposit(
        self,
        account_id: UUID,
        amount: Decimal,
        balance_after: Decimal,
    ) -> None:
        self.log(AuditEventBuilder.deposit(
            account_id=account_id,
            amount=amount,
            balance_after=balance_after,
        ))

    def log_withdrawal(
        self,
        account_id: UUID,
        amount: Decimal,
        balance_after: Decimal,
    ) -> None:
        self.log(AuditEventBuilder.withdrawal(
            account_id=account_id,
            amount=amount,
            balance_after=balance_after,
        ))

    def log_transfer(
        self,
        from_account_id: UUID,
        to_account_id: UUID,
        amount: Decimal,
    ) -> None:
        self.log(AuditEventBuilder.transfer(
            from_account_id=from_account_id,
            to_account_id=to_account_id,
            amount=amount,
        ))

    def log_interest_applied(
        self,
        account_id: UUID,
        amount: Decimal,
        days: Decimal,
    ) -> None:
        """Log an interest credit."""
        self.log(AuditEventBuilder.interest_applied(
            account_id=account_id,
            amount=amount,
            days=days,
        ))

    def log_interest_cycle_failed(self, error_message: str) -> None:
        """Log a failed background interest cycle."""
        self.log(AuditEventBuilder.interest_cycle_failed(error_message))

    def log_ledger_exported(self, accounts: int, transactions: int) -> None:
        self.log(AuditEventBuilder.ledger_exported(accounts, transactions))

    def log_ledger_imported(
        self,
        accounts: int,
        transactions: int,
        replace_existing: bool,
    ) -> None:
        """Log a successful import."""
        self.log(AuditEventBuilder.ledger_imported(
            accounts=accounts,
            transactions=transactions,
            replace_existing=replace_existing,
        ))

    def log_import_rejected(self, problems: list[str]) -> None:
        """Log an import that failed validation."""
        self.log(AuditEventBuilder.import_rejected(problems))

    def log_screen_unlocked(self) -> None:
        self.log(AuditEventBuilder.screen_unlocked())

    def log_screen_unlock_failed(self) -> None:
        self.log(AuditEventBuilder.screen_unlock_failed())

    def log_screen_locked(self) -> None:
        self.log(AuditEventBuilder.screen_locked())

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> None:
        """Log an error."""
        self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
        ))
