"""
Two-Stage Backup Validation

DESIGN DECISION: An import document is validated in two distinct stages
before a single byte of the ledger is touched:

STAGE 1 - STRUCTURE:
- Is there any input at all ("empty input")
- Is it JSON, and an object at the top level ("malformed input")
- Does it carry an accounts collection ("no data")
- Does every record match the Account / Transaction schemas

STAGE 2 - REFERENCES:
- Every transaction's owning account exists in the document
  ("dangling transaction reference")
- No duplicate account or transaction ids
- Counterparty ids and negative balances are reported as warnings only

WHY TWO STAGES:
1. Stage 2 needs parsed records, so it only runs when stage 1 passed
2. Better error messages (know exactly what kind of problem it is)

IMPORTANT: Validation NEVER silently fixes a document.
It reports problems and the import is refused as a whole.
"""

import json
from collections import Counter
from decimal import Decimal
from typing import Optional

from pydantic import ValidationError

from bankledger.models.backup import (
    LedgerBackup,
    ValidationIssue,
    ValidationResult,
)


def _error(field: str, issue_type: str, message: str) -> ValidationIssue:
    return ValidationIssue(
        field=field,
        issue_type=issue_type,
        message=message,
        severity="error",
    )


def _warning(field: str, issue_type: str, message: str) -> ValidationIssue:
    return ValidationIssue(
        field=field,
        issue_type=issue_type,
        message=message,
        severity="warning",
    )


def _format_loc(loc: tuple) -> str:
    """('accounts', 0, 'balance') -> 'accounts[0].balance'"""
    text = ""
    for part in loc:
        if isinstance(part, int):
            text += f"[{part}]"
        else:
            text += f".{part}" if text else str(part)
    return text or "document"


class BackupValidator:
    """
    Validates a backup document through a two-stage pipeline.

    Stateless: the same validator can be reused for every import.
    """

    def _validate_structure(
        self,
        document: Optional[str],
    ) -> tuple[Optional[LedgerBackup], list[ValidationIssue]]:
        """
        Stage 1: Structural validation.

        Returns: (parsed_backup or None, list_of_issues)
        """
        if document is None or not document.strip():
            return None, [_error("document", "empty_input", "empty input")]

        try:
            raw = json.loads(document, parse_float=Decimal)
        except json.JSONDecodeError as e:
            return None, [_error(
                "document",
                "malformed_input",
                f"malformed input: {e.msg} (line {e.lineno}, column {e.colno})",
            )]

        if not isinstance(raw, dict):
            return None, [_error(
                "document",
                "malformed_input",
                "malformed input: expected a JSON object at the top level",
            )]

        if raw.get("accounts") is None:
            return None, [_error("accounts", "no_data", "no data")]

        try:
            backup = LedgerBackup.model_validate(raw)
        except ValidationError as e:
            issues = [
                _error(
                    _format_loc(err["loc"]),
                    "malformed_input",
                    f"malformed input: {_format_loc(err['loc'])}: {err['msg']}",
                )
                for err in e.errors()
            ]
            return None, issues

        return backup, []

    def _validate_references(
        self,
        backup: LedgerBackup,
    ) -> list[ValidationIssue]:
        """
        Stage 2: Referential integrity.

        Returns: list_of_issues (errors block the import, warnings don't)
        """
        issues = []
        accounts = backup.accounts or []
        transactions = backup.transactions or []

        account_ids = {account.id for account in accounts}

        for account_id, count in Counter(a.id for a in accounts).items():
            if count > 1:
                issues.append(_error(
                    "accounts",
                    "duplicate_id",
                    f"duplicate account id: {account_id} appears {count} times",
                ))

        for tx_id, count in Counter(t.id for t in transactions).items():
            if count > 1:
                issues.append(_error(
                    "transactions",
                    "duplicate_id",
                    f"duplicate transaction id: {tx_id} appears {count} times",
                ))

        for idx, tx in enumerate(transactions):
            if tx.account_id not in account_ids:
                issues.append(_error(
                    f"transactions[{idx}].accountId",
                    "dangling_reference",
                    f"dangling transaction reference: transaction {tx.id} "
                    f"refers to unknown account {tx.account_id}",
                ))
            elif tx.to_account_id is not None and tx.to_account_id not in account_ids:
                # The counterparty may have been deleted since; history stays valid
                issues.append(_warning(
                    f"transactions[{idx}].toAccountId",
                    "unknown_counterparty",
                    f"transaction {tx.id} names counterparty {tx.to_account_id}, "
                    "which is not in the backup",
                ))

        for idx, account in enumerate(accounts):
            if account.balance < 0:
                issues.append(_warning(
                    f"accounts[{idx}].balance",
                    "negative_balance",
                    f"account {account.id} has a negative balance ({account.balance})",
                ))

        return issues

    def validate(self, document: Optional[str]) -> ValidationResult:
        """
        Run both validation stages.

        Stage 2 only runs when stage 1 passed. The parsed backup is
        attached to the result only when there are no errors.
        """
        backup, issues = self._validate_structure(document)
        if backup is None:
            return ValidationResult(
                structure_valid=False,
                references_valid=False,
                issues=issues,
            )

        issues = self._validate_references(backup)
        references_valid = not any(issue.severity == "error" for issue in issues)

        return ValidationResult(
            structure_valid=True,
            references_valid=references_valid,
            backup=backup if references_valid else None,
            issues=issues,
        )

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        """
        One short paragraph describing the result, for the UI.
        """
        if result.is_valid:
            backup = result.backup
            summary = (
                f"Backup looks good: {len(backup.accounts or [])} accounts, "
                f"{len(backup.transactions or [])} transactions."
            )
            if result.warnings:
                summary += f" {len(result.warnings)} warnings to review."
            return summary

        count = result.error_count
        noun = "problem" if count == 1 else "problems"
        return f"This backup can't be imported ({count} {noun}): " + "; ".join(result.problems)
