# src/cache/notifier.py - v2
"""Observer registry broadcasting each refreshed snapshot."""

from __future__ import annotations

import logging
from collections.abc import Callable

from notetags.tags.models import GlobalTagsData

logger = logging.getLogger(__name__)

TagChangeListener = Callable[[GlobalTagsData], None]


class ChangeNotifier:
    """Set of listeners called, in first-subscription order, with new data.

    Subscribing a listener that is already registered is a no-op.
    """

    def __init__(self) -> None:
        self._listeners: dict[TagChangeListener, None] = {}

    def __len__(self) -> int:
        return len(self._listeners)

    def subscribe(self, listener: TagChangeListener) -> Callable[[], None]:
        """Register ``listener``. Returns an idempotent unsubscribe function."""
        self._listeners.setdefault(listener, None)

        def unsubscribe() -> None:
            self._listeners.pop(listener, None)

        return unsubscribe

    def notify(self, data: GlobalTagsData) -> int:
        """Invoke all listeners. Returns how many of them raised."""
        failures = 0
        for listener in list(self._listeners):
            try:
                listener(data)
            except Exception:
                failures += 1
                logger.warning(
                    "Tag change listener %r failed", listener, exc_info=True
                )
        return failures

    def clear(self) -> None:
        self._listeners.clear()
