"""Synchronous change notifications for the local stores."""

from __future__ import annotations

import logging
from typing import Callable, List

logger = logging.getLogger(__name__)

Listener = Callable[[], None]


class Signal:
    """Named, payload-free notification delivered to subscribers in order."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` and return a callable that removes it again."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass

        return _unsubscribe

    def emit(self) -> None:
        """Call every current listener; a failing listener does not stop the rest."""
        for listener in list(self._listeners):
            try:
                listener()
            except Exception:  # noqa: BLE001
                logger.exception("Listener for '%s' failed", self.name)

    def clear(self) -> None:
        """Detach all listeners."""
        self._listeners.clear()

    def __len__(self) -> int:
        return len(self._listeners)
