"""
Local File Storage Implementation

One file per key inside a data directory. This is the default backend:
a single local store where the last write wins.

Writes go to a temporary file first and are moved into place with
os.replace, so a crash mid-write leaves the previous blob intact.
File I/O runs in a worker thread to keep the event loop responsive
for the background interest cycle.
"""

import asyncio
import os
import re
import tempfile
from pathlib import Path
from typing import Optional, Union

from bankledger.services.storage.interface import BlobStoreInterface, StorageError


_SAFE_KEY = re.compile(r"^[A-Za-z0-9_.-]+$")


class LocalFileBlobStore(BlobStoreInterface):
    """Stores each blob as <data_dir>/<key>.json."""

    def __init__(self, data_dir: Union[Path, str]):
        self._data_dir = Path(data_dir)

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def _path_for(self, key: str) -> Path:
        if not _SAFE_KEY.match(key):
            raise StorageError(f"Invalid storage key: {key!r}")
        return self._data_dir / f"{key}.json"

    def _read(self, path: Path) -> Optional[str]:
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def _write(self, path: Path, value: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.stem}-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(value)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def _delete(self, path: Path) -> bool:
        try:
            path.unlink()
            return True
        except FileNotFoundError:
            return False

    async def get(self, key: str) -> Optional[str]:
        path = self._path_for(key)
        try:
            return await asyncio.to_thread(self._read, path)
        except OSError as e:
            raise StorageError(f"Failed to read {key}: {e}") from e

    async def set(self, key: str, value: str) -> None:
        path = self._path_for(key)
        try:
            await asyncio.to_thread(self._write, path, value)
        except OSError as e:
            raise StorageError(f"Failed to write {key}: {e}") from e

    async def remove(self, key: str) -> bool:
        path = self._path_for(key)
        try:
            return await asyncio.to_thread(self._delete, path)
        except OSError as e:
            raise StorageError(f"Failed to remove {key}: {e}") from e
