"""Lightweight signal used to broadcast session invalidation."""

import logging
from typing import Any, Callable

logger = logging.getLogger(__name__)

Listener = Callable[..., Any]


class Signal:
    """Synchronous publish/subscribe channel.

    Listeners are called in subscription order. A listener that raises is
    logged and skipped; remaining listeners still run.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._listeners: list[Listener] = []

    def connect(self, listener: Listener) -> Callable[[], None]:
        """Subscribe ``listener``. Returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def disconnect() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return disconnect

    def emit(self, *args: Any, **kwargs: Any) -> None:
        for listener in list(self._listeners):
            try:
                listener(*args, **kwargs)
            except Exception:
                logger.exception("Listener %r failed on signal '%s'", listener, self.name)

    def __len__(self) -> int:
        return len(self._listeners)
