"""
Analysis History Store
======================

A bounded, newest-first list of past results, persisted as one JSON array
under a namespace key. One store exists per analysis modality
(`facial_analysis_history`, `text_analysis_history`,
`voice_analysis_history`); they never share entries.

Rules:
- append prepends and keeps only the newest `limit` entries (default 10)
- entries are never mutated or re-ordered after they are stored
- select is a pure read
- storage failures are logged, never raised; a failed write leaves the
  in-memory list with the append applied
- no deduplication: identical inputs produce distinct entries
- loading and each prepend-plus-persist hold the store lock
"""

import asyncio
import json
import logging
from typing import Generic, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from mindwell.core.config import get_settings
from mindwell.models.analysis import AnalysisResult, Modality
from mindwell.services.kv_store import KeyValueStore, get_kv_store

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

DEFAULT_HISTORY_LIMIT = 10

HISTORY_KEYS: dict[Modality, str] = {
    Modality.FACIAL: "facial_analysis_history",
    Modality.TEXT: "text_analysis_history",
    Modality.VOICE: "voice_analysis_history",
}


class HistoryStore(Generic[T]):
    """Append-and-evict store of at most `limit` entries, newest first."""

    def __init__(
        self,
        key: str,
        model: Type[T],
        storage: Optional[KeyValueStore] = None,
        limit: int = DEFAULT_HISTORY_LIMIT,
    ):
        self.key = key
        self.model = model
        self.storage = storage or get_kv_store()
        self.limit = limit
        self._entries: list[T] = []
        self._loaded = False
        self._lock = asyncio.Lock()

    @property
    def loaded(self) -> bool:
        return self._loaded

    @property
    def entries(self) -> list[T]:
        """Snapshot of the current entries, newest first."""
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    async def load(self) -> list[T]:
        """
        Hydrate from storage. Never raises: on any read or decode failure
        the store continues with an empty list.
        """
        async with self._lock:
            await self._load()
        return self.entries

    async def ensure_loaded(self) -> None:
        async with self._lock:
            if not self._loaded:
                await self._load()

    async def append(self, entry: T) -> list[T]:
        """Prepend `entry`, evict past `limit`, persist the result."""
        async with self._lock:
            if not self._loaded:
                await self._load()
            self._entries = [entry, *self._entries][: self.limit]

            try:
                payload = json.dumps([e.model_dump(mode="json") for e in self._entries])
                await self.storage.set(self.key, payload)
            except Exception as e:
                logger.error("Error saving %s: %s", self.key, e)

            return self.entries

    async def _load(self) -> None:
        # Caller holds self._lock
        try:
            raw = await self.storage.get(self.key)
            items = json.loads(raw) if raw else []
            if not isinstance(items, list):
                raise ValueError(f"expected a list, got {type(items).__name__}")
        except Exception as e:
            logger.error("Error loading %s: %s", self.key, e)
            items = []

        entries: list[T] = []
        for item in items[: self.limit]:
            try:
                entries.append(self.model.model_validate(item))
            except ValidationError as e:
                logger.warning("Skipping malformed entry in %s: %s", self.key, e)

        self._entries = entries
        self._loaded = True

    def select(self, entry_id: int) -> Optional[T]:
        """Find an entry by id. Does not change order or trigger a write."""
        for entry in self._entries:
            if getattr(entry, "id", None) == entry_id:
                return entry
        return None


# Process-wide stores, one per modality
_history_stores: dict[Modality, HistoryStore[AnalysisResult]] = {}


def get_history_store(modality: Modality) -> HistoryStore[AnalysisResult]:
    """Get or create the history store for a modality."""
    modality = Modality(modality)
    store = _history_stores.get(modality)
    if store is None:
        store = HistoryStore(
            key=HISTORY_KEYS[modality],
            model=AnalysisResult,
            limit=get_settings().history_limit,
        )
        _history_stores[modality] = store
    return store


def reset_history_stores() -> None:
    """Drop cached stores so the next access re-reads storage."""
    _history_stores.clear()
