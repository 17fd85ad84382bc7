"""
Key/value tier adapters.

MemoryStore stands in for the browser's session storage: fast, and gone
when the process stops. JsonFileStore is the durable tier; each write
replaces the whole file atomically.
"""

import asyncio
import copy
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from leetrack.domain.errors import StoreWriteError
from leetrack.domain.ports import KeyValueStore

logger = logging.getLogger(__name__)


class MemoryStore(KeyValueStore):
    """Process-local tier. Values are deep-copied on the way in and out."""

    def __init__(self, name: str = "fast", initial: dict[str, Any] | None = None):
        self.name = name
        self._data: dict[str, Any] = copy.deepcopy(initial) if initial else {}

    async def get(self, keys: list[str] | None = None) -> dict[str, Any]:
        if keys is None:
            return copy.deepcopy(self._data)
        return {k: copy.deepcopy(self._data[k]) for k in keys if k in self._data}

    async def set(self, items: dict[str, Any]) -> None:
        self._data.update(copy.deepcopy(items))

    async def clear(self) -> None:
        self._data.clear()


class JsonFileStore(KeyValueStore):
    """
    Durable tier persisted as one JSON object in `path`.

    File I/O runs in a worker thread; an asyncio lock serializes
    read-modify-write cycles within the process.
    """

    def __init__(self, path: Path, name: str = "durable"):
        self.name = name
        self.path = Path(path)
        self._lock = asyncio.Lock()

    async def get(self, keys: list[str] | None = None) -> dict[str, Any]:
        data = await asyncio.to_thread(self._load_sync)
        if keys is None:
            return data
        return {k: data[k] for k in keys if k in data}

    async def set(self, items: dict[str, Any]) -> None:
        """
        Merge `items` into the file.

        An existing file that cannot be read or parsed is left untouched and
        the write fails with StoreWriteError.
        """
        async with self._lock:
            try:
                data = await asyncio.to_thread(self._load_sync, True)
                data.update(items)
                await asyncio.to_thread(self._save_sync, data)
            except (OSError, TypeError, ValueError) as e:
                raise StoreWriteError(self.name, str(e)) from e

    async def clear(self) -> None:
        async with self._lock:
            try:
                await asyncio.to_thread(self._save_sync, {})
            except OSError as e:
                raise StoreWriteError(self.name, str(e)) from e

    def _load_sync(self, strict: bool = False) -> dict[str, Any]:
        # strict: raise instead of reading an unusable file as empty
        if not self.path.exists():
            return {}
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            if strict:
                raise
            logger.warning(f"Failed to load {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            if strict:
                raise ValueError(f"{self.path} does not hold a JSON object")
            logger.warning(f"Ignoring non-object content in {self.path}")
            return {}
        return data

    def _save_sync(self, data: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
        try:
            with os.fdopen(tmp_fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except BaseException:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise
