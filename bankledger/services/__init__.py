"""Services package."""

from bankledger.services.interest import (
    InterestScheduler,
    compute_interest,
)
from bankledger.services.ledger import (
    AccountNotFoundError,
    InsufficientFundsError,
    LedgerError,
    LedgerImportError,
    LedgerNotOpenError,
    LedgerService,
    LedgerValidationError,
)
from bankledger.services.notifications import InterestNotifier
from bankledger.services.screen_lock import LockState, ScreenLock
from bankledger.services.storage import (
    BlobLedgerStorage,
    BlobStoreInterface,
    InMemoryBlobStore,
    LedgerStorageInterface,
    LocalFileBlobStore,
    StorageError,
)

__all__ = [
    # Ledger
    "LedgerService",
    "AccountNotFoundError",
    "InsufficientFundsError",
    "LedgerError",
    "LedgerImportError",
    "LedgerNotOpenError",
    "LedgerValidationError",
    # Interest
    "InterestNotifier",
    "InterestScheduler",
    "compute_interest",
    # Screen lock
    "LockState",
    "ScreenLock",
    # Storage
    "BlobLedgerStorage",
    "BlobStoreInterface",
    "InMemoryBlobStore",
    "LedgerStorageInterface",
    "LocalFileBlobStore",
    "StorageError",
]
