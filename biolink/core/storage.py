"""JSON file store with per-document serialized writes.

Each logical resource ("links", "categories", "stats") lives in its own
JSON file under the data directory. Writes go to a temporary file in the
same directory and are moved into place with ``os.replace`` so readers
never observe a partially written document.

All read-modify-write operations on the same key are queued behind an
``asyncio.Lock`` owned by the store; callers only see ``read``, ``write``
and ``update``.
"""

import asyncio
import copy
import json
import os
import tempfile
from collections.abc import Callable
from pathlib import Path
from typing import Any

import structlog

from biolink.core.observability import record_store_write

logger = structlog.get_logger()

_MISSING: Any = object()


class StoreError(Exception):
    """Raised when the underlying storage medium cannot be read or written."""


class StoreCorruptedError(StoreError):
    """Raised when a persisted document is not valid JSON."""


class JsonStore:
    """Durable mapping from a resource key to a JSON document.

    Usage:
        store = JsonStore("data")
        stats = await store.read("stats", {})
        await store.update("stats", lambda doc: {**doc, "x": 1}, {})
    """

    def __init__(self, data_dir: str | Path):
        """Initialize the store.

        Args:
            data_dir: Directory holding one ``<key>.json`` file per resource.
                Created on first write.
        """
        self._data_dir = Path(data_dir)
        self._locks: dict[str, asyncio.Lock] = {}

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def path_for(self, key: str) -> Path:
        """Return the file path backing ``key``."""
        return self._data_dir / f"{key}.json"

    def _lock_for(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    async def read(self, key: str, default: Any = _MISSING) -> Any:
        """Return the persisted document for ``key``.

        If the document does not exist and ``default`` is given, the default
        is persisted and a copy of it returned.

        Raises:
            StoreError: If the document is missing and no default was given,
                or the file cannot be read.
            StoreCorruptedError: If the file does not contain valid JSON.
        """
        path = self.path_for(key)
        if not await asyncio.to_thread(path.exists):
            if default is _MISSING:
                raise StoreError(f"Data file not found: {key}")
            async with self._lock_for(key):
                if not await asyncio.to_thread(path.exists):
                    await self._write_locked(key, default)
                    return copy.deepcopy(default)
        return await asyncio.to_thread(self._load, key)

    async def write(self, key: str, document: Any) -> Any:
        """Replace the document for ``key``."""
        async with self._lock_for(key):
            await self._write_locked(key, document)
        return document

    async def update(
        self,
        key: str,
        updater: Callable[[Any], Any],
        default: Any = _MISSING,
    ) -> Any:
        """Atomically load, transform, and persist the document for ``key``.

        The updater receives the current document (or a copy of ``default``
        if none exists yet) and returns the document to persist. Concurrent
        calls for the same key run one after another in arrival order.

        Returns:
            The document returned by ``updater``.
        """
        async with self._lock_for(key):
            path = self.path_for(key)
            if await asyncio.to_thread(path.exists):
                current = await asyncio.to_thread(self._load, key)
            elif default is _MISSING:
                raise StoreError(f"Data file not found: {key}")
            else:
                current = copy.deepcopy(default)

            updated = updater(current)
            await self._write_locked(key, updated)
            return updated

    def _load(self, key: str) -> Any:
        path = self.path_for(key)
        try:
            content = path.read_text(encoding="utf-8")
        except OSError as e:
            logger.error("Failed to read document", key=key, path=str(path), error=str(e))
            raise StoreError(f"Failed to read {key}: {e}") from e

        if not content.strip():
            return None

        try:
            return json.loads(content)
        except json.JSONDecodeError as e:
            logger.error("Corrupted document", key=key, path=str(path), error=str(e))
            raise StoreCorruptedError(f"Invalid JSON in {key}: {e}") from e

    async def _write_locked(self, key: str, document: Any) -> None:
        """Persist ``document`` (must be called with the key's lock held)."""
        await asyncio.to_thread(self._write_file, key, document)
        record_store_write(key)
        logger.debug("Document written", key=key)

    def _write_file(self, key: str, document: Any) -> None:
        path = self.path_for(key)
        tmp_name = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f"{path.name}.",
                suffix=".tmp",
                dir=path.parent,
            )
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(document, handle, indent=2, ensure_ascii=False)
                handle.write("\n")
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, path)
        except OSError as e:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            logger.error("Failed to write document", key=key, path=str(path), error=str(e))
            raise StoreError(f"Failed to write {key}: {e}") from e
