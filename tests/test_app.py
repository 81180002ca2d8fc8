"""
Tests for configuration, audit logging and component wiring.
"""

import logging
from decimal import Decimal
from unittest.mock import MagicMock
from uuid import uuid4

import pytest

from bankledger.audit import AuditLogger
from bankledger.config import (
    AppSettings,
    InterestSettings,
    ScreenLockSettings,
    Settings,
    StorageSettings,
    get_settings,
    validate_all_settings,
)
from bankledger.models import AccountType, AuditEventBuilder
from bankledger.orchestrator import create_app_components, create_blob_store
from bankledger.services.storage import InMemoryBlobStore, LocalFileBlobStore


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch, tmp_path):
    """Isolate every test from the developer's .env and environment."""
    monkeypatch.chdir(tmp_path)
    for name in (
        "LEDGER_STORAGE_BACKEND",
        "LEDGER_INTEREST_ENABLED",
        "LOG_LEVEL",
        "GOOGLE_SHEETS_CREDENTIALS_PATH",
        "GOOGLE_SHEETS_SPREADSHEET_ID",
    ):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestSettings:

    def test_defaults(self):
        assert InterestSettings().annual_rate_percent == Decimal("2.5")
        assert InterestSettings().interval_seconds == 60
        assert ScreenLockSettings().passcode == "7788"
        assert StorageSettings().backend == "file"

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("LEDGER_INTEREST_ANNUAL_RATE_PERCENT", "3.75")
        monkeypatch.setenv("SCREEN_LOCK_PASSCODE", "0000")
        assert get_settings().interest.annual_rate_percent == Decimal("3.75")
        assert get_settings().screen_lock.passcode == "0000"

    def test_log_level_is_normalized(self):
        assert AppSettings(log_level="debug").log_level == "DEBUG"

    def test_unknown_backend_is_rejected(self):
        with pytest.raises(ValueError):
            StorageSettings(backend="ftp")

    def test_validate_all_settings(self, monkeypatch):
        results = validate_all_settings()
        assert results["storage"] and results["interest"] and results["app"]
        # Not the selected backend, so not checked
        assert "google_sheets" not in results

        monkeypatch.setenv("LEDGER_STORAGE_BACKEND", "google_sheets")
        results = validate_all_settings()
        assert results["google_sheets"] is False
        assert "google_sheets_error" in results


class TestAuditLogger:

    def test_log_returns_true(self):
        assert AuditLogger().log(AuditEventBuilder.screen_locked()) is True

    def test_logging_failure_is_swallowed(self, caplog):
        audit = AuditLogger()
        audit._logger = MagicMock()
        audit._logger.info.side_effect = RuntimeError("handler broke")

        with caplog.at_level(logging.ERROR):
            assert audit.log(AuditEventBuilder.deposit(uuid4(), Decimal("1"), Decimal("1"))) is False
        assert "audit_log_failed" in caplog.text

    def test_severity_picks_log_method(self):
        audit = AuditLogger()
        audit._logger = MagicMock()

        audit.log_interest_cycle_failed("boom")
        audit.log_import_rejected(["empty input"])
        audit.log_screen_unlocked()

        assert audit._logger.error.call_count == 1
        assert audit._logger.warning.call_count == 1
        assert audit._logger.info.call_count == 1


class TestWiring:

    def test_create_blob_store(self, tmp_path):
        settings = Settings()
        assert isinstance(
            create_blob_store(StorageSettings(backend="memory"), settings),
            InMemoryBlobStore,
        )
        store = create_blob_store(StorageSettings(backend="file", data_dir=tmp_path), settings)
        assert isinstance(store, LocalFileBlobStore)
        assert store.data_dir == tmp_path

    def test_create_blob_store_unknown_backend(self):
        with pytest.raises(ValueError):
            create_blob_store(StorageSettings.model_construct(backend="ftp"), Settings())

    @pytest.mark.asyncio
    async def test_create_app_components(self):
        store = InMemoryBlobStore()
        app = await create_app_components(store=store)

        assert app.ledger.is_open
        assert not app.screen_lock.is_unlocked
        assert app.ledger.annual_rate_percent == Decimal("2.5")

        account = await app.ledger.create_account("Alice", AccountType.SAVINGS, "SEK", 10)
        assert sorted(store.keys()) == ["accounts", "transactions"]

        await app.start()
        assert app.scheduler.is_running
        await app.shutdown()
        assert not app.scheduler.is_running
        assert (await app.ledger.get_account(account.id)).balance == Decimal("10")

    @pytest.mark.asyncio
    async def test_interest_can_be_disabled(self, monkeypatch):
        monkeypatch.setenv("LEDGER_INTEREST_ENABLED", "false")
        app = await create_app_components(store=InMemoryBlobStore())

        await app.start()
        assert not app.scheduler.is_running
        await app.shutdown()
