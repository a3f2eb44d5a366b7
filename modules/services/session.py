"""Per-process session wiring the stores, the generation client and the documents façade."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional

from config.settings import AppConfig
from modules.generation.client import GenerationClient
from modules.generation.curriculum import CurriculumRegistry
from modules.generation.service import DocumentService
from modules.services.history_service import GenerationHistoryService, StoredItem
from modules.services.metrics_service import MetricsService, MetricsStats
from modules.services.storage_service import JsonFileStorage, KeyValueStorage
from modules.utils.cache import now_ms

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class DashboardSnapshot:
    """Aggregates last read from both stores."""

    stats: MetricsStats = field(default_factory=MetricsStats)
    history: List[StoredItem] = field(default_factory=list)


class Session:
    """Owns the store instances for one running UI."""

    def __init__(
        self,
        config: AppConfig,
        storage: Optional[KeyValueStorage] = None,
        client: Optional[GenerationClient] = None,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self.config = config
        self.storage = storage if storage is not None else JsonFileStorage(Path(config.data_dir))
        self.metrics = MetricsService(self.storage, clock=clock)
        self.history = GenerationHistoryService(self.storage, clock=clock)
        self.client = client if client is not None else GenerationClient(config)

        curriculum = CurriculumRegistry()
        curriculum.load_from_file(Path(config.assets_dir) / "curriculum.json")
        self.documents = DocumentService(config, self.client, self.metrics, self.history, curriculum)

        self.snapshot = DashboardSnapshot()
        self._unsubscribers: List[Callable[[], None]] = []

    def init(self) -> "Session":
        """Load both stores and start following their change signals."""
        self.metrics.init()
        self.history.init()
        self._unsubscribers.append(self.metrics.subscribe(self.refresh))
        self._unsubscribers.append(self.history.subscribe(self.refresh))
        self.refresh()
        if self.client.warnings:
            logger.warning("Generation backends: %s", "; ".join(self.client.warnings))
        if not self.client.available_backends():
            logger.warning("No generation backend configured; set GEMINI_API_KEY")
        return self

    def refresh(self) -> DashboardSnapshot:
        """Re-read both stores; expired entries drop out here."""
        self.snapshot = DashboardSnapshot(stats=self.metrics.stats(), history=self.history.list())
        return self.snapshot

    def dispose(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()
        self.metrics.dispose()
        self.history.dispose()
        self.client.close()
