"""
Key-Value Persistence
=====================

`get(key) -> str | None` and `set(key, value)` over the `kv_entries` table.
Values are opaque strings (JSON in practice); there is no schema versioning.
"""

import json
import logging
from typing import Any, Optional

from mindwell.core.database import get_db_session
from mindwell.models.models import KeyValueEntry

logger = logging.getLogger(__name__)


class KeyValueStore:
    """Async string store namespaced by fixed keys."""

    async def get(self, key: str) -> Optional[str]:
        async with get_db_session() as db:
            entry = await db.get(KeyValueEntry, key)
            return entry.value if entry is not None else None

    async def set(self, key: str, value: str) -> None:
        async with get_db_session() as db:
            entry = await db.get(KeyValueEntry, key)
            if entry is None:
                db.add(KeyValueEntry(key=key, value=value))
            else:
                entry.value = value
        logger.debug("Stored %s (%d chars)", key, len(value))

    async def delete(self, key: str) -> None:
        async with get_db_session() as db:
            entry = await db.get(KeyValueEntry, key)
            if entry is not None:
                await db.delete(entry)

    async def get_json(self, key: str, default: Any = None) -> Any:
        """Read and decode a JSON value. Decode errors propagate."""
        raw = await self.get(key)
        if raw is None:
            return default
        return json.loads(raw)

    async def set_json(self, key: str, value: Any) -> None:
        await self.set(key, json.dumps(value, default=str))


# Singleton instance
_kv_store: Optional[KeyValueStore] = None


def get_kv_store() -> KeyValueStore:
    """Get or create the key-value store instance."""
    global _kv_store
    if _kv_store is None:
        _kv_store = KeyValueStore()
    return _kv_store
