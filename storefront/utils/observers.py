"""Minimal subscription mechanism shared by the cart and checkout stores."""
from __future__ import annotations

import logging
from typing import Callable

log = logging.getLogger(__name__)


class Observable:
    """Keeps a list of callbacks and calls each with the owner after a change."""

    def __init__(self) -> None:
        self._listeners: list[Callable] = []

    def subscribe(self, callback: Callable) -> Callable[[], None]:
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def _notify(self) -> None:
        # snapshot: a listener may unsubscribe while being called
        for callback in list(self._listeners):
            try:
                callback(self)
            except Exception:
                log.exception("listener %r failed", callback)
