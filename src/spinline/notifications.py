# notifications.py
from __future__ import annotations

import threading
from typing import Any, List, Optional, Protocol, runtime_checkable

import structlog

from .events import Event


@runtime_checkable
class Notifier(Protocol):
    """
    Anything that accepts one event at a time.

    Notifiers may also define start(), stop() and close(); the manager calls
    them when present.
    """

    def notify(self, event: Event) -> None:
        ...


class NotificationManager:
    """
    Fans events out to every registered notifier.

    A failing notifier is logged and skipped, so one broken transport never
    stops delivery to the others. Delivery is serialized so events reach
    every notifier in the order they were produced.
    """

    def __init__(self, *notifiers: Notifier, logger: Any = None):
        self._notifiers: List[Notifier] = list(notifiers)
        self._lock = threading.RLock()
        self._started = False
        self._closed = False
        self.logger = logger if logger is not None else structlog.get_logger(__name__)

    @property
    def notifiers(self) -> List[Notifier]:
        return list(self._notifiers)

    @property
    def started(self) -> bool:
        return self._started

    def register(self, notifier: Notifier) -> None:
        with self._lock:
            if self._closed:
                raise RuntimeError("notification manager is closed")
            self._notifiers.append(notifier)
            if self._started:
                self._call(notifier, "start")

    # ---- lifecycle ----

    def start(self) -> None:
        with self._lock:
            if self._closed:
                raise RuntimeError("notification manager is closed")
            if self._started:
                return
            for notifier in self._notifiers:
                self._call(notifier, "start")
            self._started = True

    def stop(self) -> None:
        with self._lock:
            if not self._started:
                return
            for notifier in self._notifiers:
                self._call(notifier, "stop")
            self._started = False

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self.stop()
            for notifier in self._notifiers:
                self._call(notifier, "close")
            self._closed = True

    # ---- delivery ----

    def notify(self, event: Event) -> None:
        """Deliver one event to every notifier. Never raises for notifier failures."""
        with self._lock:
            for notifier in self._notifiers:
                try:
                    notifier.notify(event)
                except Exception as e:
                    self.logger.warning(
                        "notifier_failed",
                        notifier=type(notifier).__name__,
                        spinner=event.spinner_uuid,
                        kind=str(event.kind),
                        error=str(e),
                    )

    __call__ = notify

    def _call(self, notifier: Notifier, method: str) -> None:
        fn: Optional[Any] = getattr(notifier, method, None)
        if fn is None:
            return
        try:
            fn()
        except Exception as e:
            self.logger.warning(
                "notifier_lifecycle_failed",
                notifier=type(notifier).__name__,
                method=method,
                error=str(e),
            )

    def __enter__(self) -> "NotificationManager":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
