"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
The ledger is persisted as JSON blobs in a key/value store; the store can
be in-memory, a directory of local files, or a Google Sheets worksheet.
"""

from bankledger.services.storage.interface import (
    BlobStoreInterface,
    ConnectionError,
    CorruptDataError,
    LedgerStorageInterface,
    StorageError,
)
from bankledger.services.storage.gateway import (
    ACCOUNTS_KEY,
    TRANSACTIONS_KEY,
    BlobLedgerStorage,
)
from bankledger.services.storage.google_sheets import (
    GoogleSheetsBlobStore,
    GoogleSheetsClient,
)
from bankledger.services.storage.local_file import LocalFileBlobStore
from bankledger.services.storage.memory import InMemoryBlobStore

__all__ = [
    # Interfaces
    "BlobStoreInterface",
    "LedgerStorageInterface",
    # Exceptions
    "ConnectionError",
    "CorruptDataError",
    "StorageError",
    # Gateway
    "ACCOUNTS_KEY",
    "TRANSACTIONS_KEY",
    "BlobLedgerStorage",
    # Backends
    "GoogleSheetsBlobStore",
    "GoogleSheetsClient",
    "InMemoryBlobStore",
    "LocalFileBlobStore",
]
