# src/smartstudy/core/connectivity.py

from __future__ import annotations

import logging
import threading
from collections.abc import Callable

logger = logging.getLogger(__name__)


class Connectivity:
    """
    Settable online/offline flag.

    Listeners fire only when the value actually changes. A listener that raises
    is logged and does not prevent the others from running.
    """

    def __init__(self, online: bool = True) -> None:
        self._online = bool(online)
        self._listeners: list[Callable[[bool], None]] = []
        self._lock = threading.Lock()

    @property
    def is_online(self) -> bool:
        return self._online

    def set_online(self, online: bool) -> None:
        online = bool(online)
        with self._lock:
            if online == self._online:
                return
            self._online = online
            listeners = list(self._listeners)

        logger.info("Connectivity changed: %s", "online" if online else "offline")
        for cb in listeners:
            try:
                cb(online)
            except Exception:
                logger.exception("Connectivity listener failed.")

    def subscribe(self, callback: Callable[[bool], None]) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(callback)

        def _unsubscribe() -> None:
            with self._lock:
                if callback in self._listeners:
                    self._listeners.remove(callback)

        return _unsubscribe
