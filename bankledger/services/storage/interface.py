"""
Abstract Storage Interfaces

DESIGN DECISION: We define two small abstract interfaces for storage.
1. BlobStoreInterface - a key/value store of string blobs. This is the
   only thing a concrete backend (memory, local files, Google Sheets)
   has to provide.
2. LedgerStorageInterface - the gateway the ledger service talks to.
   It loads and saves whole collections and knows nothing about
   balances or rules.

This allows us to:
1. Swap the backend without touching business logic
2. Use in-memory storage for testing
3. Inject failing storage in tests to check rollback behavior

The interfaces are intentionally simple - every save replaces the
whole stored collection, and "last write wins".
"""

from abc import ABC, abstractmethod
from typing import Optional

from bankledger.models.account import Account, Transaction


class BlobStoreInterface(ABC):
    """
    Abstract key/value store of string blobs.

    Any backend (memory, files, Google Sheets, etc.)
    must implement these methods.
    """

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """
        Read the blob stored under a key.

        Returns:
            The stored string, or None if nothing is stored

        Raises:
            StorageError: If the backend can't be read
        """
        pass

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        """
        Store a blob under a key, replacing any previous value.

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def remove(self, key: str) -> bool:
        """
        Remove a key.

        Returns:
            True if something was removed, False if the key was absent
        """
        pass


class LedgerStorageInterface(ABC):
    """
    Abstract interface for persisting the two ledger collections.

    Load operations return an empty list (never an error) when
    nothing has been stored yet.
    """

    @abstractmethod
    async def load_accounts(self) -> list[Account]:
        """Load every stored account."""
        pass

    @abstractmethod
    async def save_accounts(self, accounts: list[Account]) -> None:
        """
        Replace the stored accounts with the given list.

        Raises:
            StorageError: If save fails
        """
        pass

    @abstractmethod
    async def load_transactions(self) -> list[Transaction]:
        """Load every stored transaction, in stored order."""
        pass

    @abstractmethod
    async def save_transactions(self, transactions: list[Transaction]) -> None:
        """
        Replace the stored transactions with the given list.

        Raises:
            StorageError: If save fails
        """
        pass

    @abstractmethod
    async def clear(self) -> None:
        """Remove both collections from storage."""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class CorruptDataError(StorageError):
    """A stored blob exists but could not be parsed."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
