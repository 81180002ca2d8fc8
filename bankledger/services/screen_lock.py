"""
Screen Lock

A UI gate behind a fixed passcode. It keeps an "unlocked" flag in the
blob store so a page reload doesn't ask for the code again.

IMPORTANT: This is NOT a security mechanism. The passcode is a fixed
configuration value, there is no retry limit, and the flag lives next
to the data it "protects". It only keeps the ledger off the screen.
"""

import json
import secrets
from enum import Enum
from typing import Optional

from bankledger.audit import AuditLogger
from bankledger.services.storage import BlobStoreInterface


UNLOCKED_KEY = "screen-lock-unlocked"


class LockState(str, Enum):
    LOCKED = "locked"
    UNLOCKED = "unlocked"


def _parse_flag(raw: Optional[str]) -> bool:
    """Anything but a stored JSON `true` counts as locked."""
    if raw is None:
        return False
    try:
        return json.loads(raw) is True
    except json.JSONDecodeError:
        return False


class ScreenLock:
    """
    Locked/unlocked state for the UI.

    Call `await initialize()` once at startup to pick up the
    persisted flag; until then the lock reports LOCKED.
    """

    def __init__(
        self,
        store: BlobStoreInterface,
        passcode: str,
        audit_logger: Optional[AuditLogger] = None,
    ):
        if not passcode:
            raise ValueError("passcode must not be empty")
        self._store = store
        self._passcode = passcode
        self._audit = audit_logger or AuditLogger()
        self._state = LockState.LOCKED

    @property
    def state(self) -> LockState:
        return self._state

    @property
    def is_unlocked(self) -> bool:
        return self._state == LockState.UNLOCKED

    async def initialize(self) -> LockState:
        """Load the persisted flag. Defaults to LOCKED when absent."""
        raw = await self._store.get(UNLOCKED_KEY)
        self._state = LockState.UNLOCKED if _parse_flag(raw) else LockState.LOCKED
        return self._state

    async def verify(self, code: Optional[str]) -> bool:
        """
        Unlock if `code` matches the passcode.

        A wrong code locks the UI (clearing any persisted flag)
        and returns False.
        """
        if code is not None and secrets.compare_digest(
            code.encode("utf-8"), self._passcode.encode("utf-8")
        ):
            self._state = LockState.UNLOCKED
            await self._store.set(UNLOCKED_KEY, json.dumps(True))
            self._audit.log_screen_unlocked()
            return True

        was_unlocked = self.is_unlocked
        self._state = LockState.LOCKED
        if was_unlocked:
            await self._store.remove(UNLOCKED_KEY)
        self._audit.log_screen_unlock_failed()
        return False

    async def lock(self) -> None:
        """Lock the UI and clear the persisted flag."""
        self._state = LockState.LOCKED
        await self._store.remove(UNLOCKED_KEY)
        self._audit.log_screen_locked()
