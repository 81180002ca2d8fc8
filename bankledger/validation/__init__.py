"""Backup validation package."""

from bankledger.validation.validator import BackupValidator

__all__ = ["BackupValidator"]
