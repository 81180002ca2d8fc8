"""
Ledger Storage Gateway

Persists the account and transaction collections as two JSON blobs
on top of any BlobStoreInterface.

Persisted layout (logical keys):
- "accounts"      -> JSON array of accounts
- "transactions"  -> JSON array of transactions

Records use the same camelCase field names as the backup document.
"""

from typing import Optional

from pydantic import TypeAdapter, ValidationError

from bankledger.models.account import Account, Transaction
from bankledger.services.storage.interface import (
    BlobStoreInterface,
    CorruptDataError,
    LedgerStorageInterface,
)


ACCOUNTS_KEY = "accounts"
TRANSACTIONS_KEY = "transactions"

_accounts_adapter = TypeAdapter(list[Account])
_transactions_adapter = TypeAdapter(list[Transaction])


class BlobLedgerStorage(LedgerStorageInterface):
    """
    Ledger storage backed by a key/value blob store.

    No business logic lives here: every save writes the whole
    collection, every load reads the whole collection.
    """

    def __init__(self, store: BlobStoreInterface):
        self._store = store

    @property
    def store(self) -> BlobStoreInterface:
        return self._store

    async def _load(self, key: str, adapter: TypeAdapter) -> list:
        blob: Optional[str] = await self._store.get(key)
        if blob is None or not blob.strip():
            return []
        try:
            return adapter.validate_json(blob)
        except ValidationError as e:
            raise CorruptDataError(
                f"Stored '{key}' could not be read: {e.error_count()} errors"
            ) from e

    async def load_accounts(self) -> list[Account]:
        return await self._load(ACCOUNTS_KEY, _accounts_adapter)

    async def save_accounts(self, accounts: list[Account]) -> None:
        blob = _accounts_adapter.dump_json(accounts, by_alias=True)
        await self._store.set(ACCOUNTS_KEY, blob.decode("utf-8"))

    async def load_transactions(self) -> list[Transaction]:
        return await self._load(TRANSACTIONS_KEY, _transactions_adapter)

    async def save_transactions(self, transactions: list[Transaction]) -> None:
        blob = _transactions_adapter.dump_json(transactions, by_alias=True)
        await self._store.set(TRANSACTIONS_KEY, blob.decode("utf-8"))

    async def clear(self) -> None:
        await self._store.remove(ACCOUNTS_KEY)
        await self._store.remove(TRANSACTIONS_KEY)
