"""
Main Orchestrator for the Bank Ledger

This module ties the components together:
1. Pick a blob store from settings (memory, local files, Google Sheets)
2. Open the ledger on top of it (explicit load, once)
3. Restore the screen lock state
4. Run the recurring interest cycle in the background

DESIGN DECISION: Initialization is explicit and async. Nothing is
loaded lazily behind the caller's back, so the ledger behaves the
same no matter which operation is called first.
"""

from typing import Optional

from bankledger.audit import AuditLogger, configure_logging
from bankledger.config import Settings, get_settings
from bankledger.config.settings import StorageSettings
from bankledger.services.interest import InterestScheduler
from bankledger.services.ledger import LedgerService
from bankledger.services.screen_lock import ScreenLock
from bankledger.services.storage import (
    BlobLedgerStorage,
    BlobStoreInterface,
    GoogleSheetsBlobStore,
    GoogleSheetsClient,
    InMemoryBlobStore,
    LocalFileBlobStore,
)


def create_blob_store(
    storage_settings: Optional[StorageSettings] = None,
    settings: Optional[Settings] = None,
) -> BlobStoreInterface:
    """
    Build the configured blob store.

    Raises:
        ValueError: unknown backend name
    """
    settings = settings or get_settings()
    storage_settings = storage_settings or settings.storage

    if storage_settings.backend == "memory":
        return InMemoryBlobStore()
    if storage_settings.backend == "file":
        return LocalFileBlobStore(storage_settings.data_dir)
    if storage_settings.backend == "google_sheets":
        return GoogleSheetsBlobStore(GoogleSheetsClient(settings.google_sheets))
    raise ValueError(f"Unknown storage backend: {storage_settings.backend}")


class LedgerApp:
    """
    Handle to a ready-to-use ledger and its companions.

    Usage:
        app = await create_app_components()
        await app.start()
        ...
        await app.shutdown()
    """

    def __init__(
        self,
        ledger: LedgerService,
        screen_lock: ScreenLock,
        scheduler: InterestScheduler,
        store: BlobStoreInterface,
        audit_logger: AuditLogger,
        auto_interest: bool = True,
    ):
        self.ledger = ledger
        self.screen_lock = screen_lock
        self.scheduler = scheduler
        self.store = store
        self.audit_logger = audit_logger
        self._auto_interest = auto_interest

    async def start(self) -> None:
        """Start background work (the interest cycle, if enabled)."""
        if self._auto_interest:
            self.scheduler.start()

    async def shutdown(self) -> None:
        """Stop background work. A running interest cycle finishes first."""
        await self.scheduler.stop()


async def create_app_components(
    settings: Optional[Settings] = None,
    store: Optional[BlobStoreInterface] = None,
) -> LedgerApp:
    """
    Factory function to create all application components.

    Args:
        settings: Settings to use (defaults to get_settings())
        store: Blob store to use instead of the configured backend.
               Handy for tests and for the in-memory demo mode.

    Returns:
        A LedgerApp whose ledger and screen lock are already loaded.
        Background work starts when `start()` is awaited.
    """
    settings = settings or get_settings()
    configure_logging(settings.app.log_level)

    store = store or create_blob_store(settings=settings)
    audit_logger = AuditLogger()
    interest = settings.interest

    ledger = await LedgerService.open(
        BlobLedgerStorage(store),
        annual_rate_percent=interest.annual_rate_percent,
        audit_logger=audit_logger,
    )

    screen_lock = ScreenLock(
        store,
        passcode=settings.screen_lock.passcode,
        audit_logger=audit_logger,
    )
    await screen_lock.initialize()

    scheduler = InterestScheduler(
        ledger,
        interval_seconds=interest.interval_seconds,
        audit_logger=audit_logger,
    )

    return LedgerApp(
        ledger=ledger,
        screen_lock=screen_lock,
        scheduler=scheduler,
        store=store,
        audit_logger=audit_logger,
        auto_interest=interest.enabled,
    )
