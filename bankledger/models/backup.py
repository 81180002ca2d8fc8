"""
Backup Document and Import Validation Models

The backup document is the human-readable JSON file a user exports
and later imports to restore (or merge into) a ledger.

DESIGN DECISION: Field names are camelCase and enums are written as
their string values, so a backup stays readable and round-trips
without depending on numeric codes.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from bankledger.models.account import Account, Transaction, utc_now


class LedgerBackup(BaseModel):
    """
    The full ledger as written to (and read from) a backup file.

    Both collections are Optional so that a document with the
    keys missing can be told apart from one with empty lists.
    """
    model_config = ConfigDict(populate_by_name=True)

    exported_at: datetime = Field(
        default_factory=utc_now,
        alias="exportedAt",
    )
    accounts: Optional[list[Account]] = None
    transactions: Optional[list[Transaction]] = None


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single problem found in an import document."""

    field: str = Field(
        ...,
        description="Where the issue is (e.g. 'transactions[3].accountId')"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g. 'empty_input', 'malformed_input', 'dangling_reference')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )


class ValidationResult(BaseModel):
    """
    Result of the two-stage import validation.

    Stage 1: Structure (is it JSON, does it have data, do records parse)
    Stage 2: Referential integrity (do transactions point at known accounts)
    """

    validated_at: datetime = Field(
        default_factory=utc_now
    )

    # Stage results
    structure_valid: bool = Field(
        ...,
        description="Did structural validation pass?"
    )
    references_valid: bool = Field(
        ...,
        description="Did referential validation pass?"
    )

    # Parsed document, only set when both stages pass
    backup: Optional[LedgerBackup] = None

    issues: list[ValidationIssue] = Field(
        default_factory=list,
        description="All validation issues found"
    )

    @property
    def is_valid(self) -> bool:
        return self.structure_valid and self.references_valid

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def problems(self) -> list[str]:
        """Error messages, in the order they were found."""
        return [issue.message for issue in self.issues if issue.severity == "error"]

    @property
    def warnings(self) -> list[str]:
        return [issue.message for issue in self.issues if issue.severity == "warning"]
