"""Tests for the UI screen lock."""

import pytest

from bankledger.services.screen_lock import UNLOCKED_KEY, LockState, ScreenLock
from bankledger.services.storage import InMemoryBlobStore


class TestScreenLock:

    @pytest.mark.asyncio
    async def test_starts_locked(self, store):
        lock = ScreenLock(store, passcode="7788")
        assert await lock.initialize() == LockState.LOCKED
        assert not lock.is_unlocked

    @pytest.mark.asyncio
    async def test_wrong_code_stays_locked(self, store):
        lock = ScreenLock(store, passcode="7788")
        await lock.initialize()

        assert await lock.verify("1234") is False
        assert await lock.verify(None) is False
        assert lock.state == LockState.LOCKED
        assert await store.get(UNLOCKED_KEY) is None

    @pytest.mark.asyncio
    async def test_right_code_unlocks_and_persists(self, store):
        lock = ScreenLock(store, passcode="7788")
        await lock.initialize()

        assert await lock.verify("7788") is True
        assert lock.is_unlocked
        assert await store.get(UNLOCKED_KEY) == "true"

        # A page reload picks the flag back up
        again = ScreenLock(store, passcode="7788")
        assert await again.initialize() == LockState.UNLOCKED

    @pytest.mark.asyncio
    async def test_wrong_code_while_unlocked_locks(self, store):
        """A failed attempt never leaves the UI unlocked."""
        lock = ScreenLock(store, passcode="7788")
        await lock.verify("7788")

        assert await lock.verify("0000") is False

        assert lock.state == LockState.LOCKED
        assert await store.get(UNLOCKED_KEY) is None

    @pytest.mark.asyncio
    async def test_lock_clears_flag(self, store):
        lock = ScreenLock(store, passcode="7788")
        await lock.verify("7788")

        await lock.lock()

        assert lock.state == LockState.LOCKED
        assert await store.get(UNLOCKED_KEY) is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("raw", ["false", "1", '"true"', "garbage"])
    async def test_anything_but_true_is_locked(self, raw):
        lock = ScreenLock(InMemoryBlobStore({UNLOCKED_KEY: raw}), passcode="7788")
        assert await lock.initialize() == LockState.LOCKED

    def test_empty_passcode_is_refused(self, store):
        with pytest.raises(ValueError):
            ScreenLock(store, passcode="")
