"""Generated-document history kept for quick recall."""

from __future__ import annotations

import logging
import uuid
from dataclasses import asdict, dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional

from modules.services.storage_service import KeyValueStorage, read_records, write_records
from modules.utils.cache import HOUR_MS, filter_by_age, now_ms
from modules.utils.events import Listener, Signal

logger = logging.getLogger(__name__)

HISTORY_KEY = "ustaz_ai_combined_history"
HISTORY_TTL_MS = 3 * HOUR_MS


@dataclass(frozen=True, slots=True)
class DraftItem:
    """A generated document before it is stored."""

    type: str
    topic: str
    subject: str
    grade: str
    content: str


@dataclass(frozen=True, slots=True)
class StoredItem:
    """A generated document retained in history."""

    id: str
    type: Optional[str]
    topic: Optional[str]
    subject: Optional[str]
    grade: Optional[str]
    content: Optional[str]
    timestamp: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "StoredItem":
        return cls(
            id=str(data.get("id", "")),
            type=data.get("type"),
            topic=data.get("topic"),
            subject=data.get("subject"),
            grade=data.get("grade"),
            content=data.get("content"),
            timestamp=data["timestamp"],
        )


class GenerationHistoryService:
    """JSON-backed history with a short read-time expiry."""

    def __init__(
        self,
        storage: KeyValueStorage,
        clock: Callable[[], int] = now_ms,
        ttl_ms: int = HISTORY_TTL_MS,
        key: str = HISTORY_KEY,
    ) -> None:
        self.storage = storage
        self.clock = clock
        self.ttl_ms = ttl_ms
        self.key = key
        self.changed = Signal("history changed")

    def init(self) -> List[StoredItem]:
        """Load the visible history."""
        items = self.list()
        logger.info("History loaded: %d documents available", len(items))
        return items

    def dispose(self) -> None:
        self.changed.clear()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        return self.changed.subscribe(listener)

    def _visible_records(self) -> List[Mapping[str, Any]]:
        return filter_by_age(read_records(self.storage, self.key), self.clock(), self.ttl_ms)

    def save(self, draft: DraftItem) -> StoredItem:
        """Store a document as the newest entry and notify subscribers."""
        item = StoredItem(
            id=uuid.uuid4().hex,
            type=draft.type,
            topic=draft.topic,
            subject=draft.subject,
            grade=draft.grade,
            content=draft.content,
            timestamp=self.clock(),
        )
        records = [dict(record) for record in self._visible_records()]
        records.insert(0, item.to_dict())
        write_records(self.storage, self.key, records)
        logger.info("Saved %s document '%s' to history", item.type, item.topic)
        self.changed.emit()
        return item

    def list(self) -> List[StoredItem]:
        """Documents younger than the TTL, newest first."""
        return [StoredItem.from_dict(record) for record in self._visible_records()]

    def get(self, item_id: str) -> Optional[StoredItem]:
        """Return a visible document by id."""
        for item in self.list():
            if item.id == item_id:
                return item
        return None
