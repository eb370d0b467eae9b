"""Key/value storage for the last extracted question set.

The format checker writes the serialized questions under
``LAST_EXTRACTED_KEY``; the review and submission endpoints read them back.
Writes are last-writer-wins, with no locking.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Dict, Optional, Protocol, Union

from supabase import Client

from question_extractor.config import Settings

logger = logging.getLogger(__name__)

LAST_EXTRACTED_KEY = "lastExtractedJson"


class KeyValueStore(Protocol):
    async def get_item(self, key: str) -> Optional[str]:
        ...

    async def set_item(self, key: str, value: str) -> None:
        ...


class InMemoryKeyValueStore:
    """Process-local store; contents are lost on restart."""

    def __init__(self) -> None:
        self._items: Dict[str, str] = {}

    async def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    async def set_item(self, key: str, value: str) -> None:
        self._items[key] = value


class JsonFileKeyValueStore:
    """All keys kept in a single JSON object file."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._lock = asyncio.Lock()

    def _read_all(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        raw = self.path.read_text(encoding="utf-8")
        if not raw.strip():
            return {}
        data = json.loads(raw)
        if not isinstance(data, dict):
            raise ValueError(f"Storage file {self.path} does not contain a JSON object")
        return data

    def _write_item(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(data), encoding="utf-8")
        tmp_path.replace(self.path)

    async def get_item(self, key: str) -> Optional[str]:
        data = await asyncio.to_thread(self._read_all)
        return data.get(key)

    async def set_item(self, key: str, value: str) -> None:
        async with self._lock:
            await asyncio.to_thread(self._write_item, key, value)


class SupabaseKeyValueStore:
    """Rows of ``(key text primary key, value text)`` in a Supabase table."""

    def __init__(self, client: Client, table: str = "addin_storage"):
        self.client = client
        self.table = table

    async def get_item(self, key: str) -> Optional[str]:
        try:
            response = await asyncio.to_thread(
                lambda: self.client.table(self.table)
                .select("value")
                .eq("key", key)
                .limit(1)
                .execute()
            )
        except Exception as e:
            raise RuntimeError(f"Failed to read storage key '{key}': {str(e)}") from e
        if not response.data:
            return None
        return response.data[0]["value"]

    async def set_item(self, key: str, value: str) -> None:
        try:
            await asyncio.to_thread(
                lambda: self.client.table(self.table)
                .upsert({"key": key, "value": value}, on_conflict="key")
                .execute()
            )
        except Exception as e:
            raise RuntimeError(f"Failed to write storage key '{key}': {str(e)}") from e


_memory_store: Optional[InMemoryKeyValueStore] = None


def get_key_value_store(settings: Settings) -> KeyValueStore:
    """Build the store selected by ``settings.storage_backend``.

    The memory backend is shared process-wide so separate requests see
    the same contents.
    """
    global _memory_store
    if settings.storage_backend == "memory":
        if _memory_store is None:
            _memory_store = InMemoryKeyValueStore()
        return _memory_store

    if settings.storage_backend == "supabase":
        from question_extractor.db.supabase_client import get_supabase_client

        return SupabaseKeyValueStore(get_supabase_client(), settings.supabase_table)

    return JsonFileKeyValueStore(settings.storage_path)
