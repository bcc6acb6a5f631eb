import logging
from typing import Callable
from zastepy.ports.change_notifier import ChangeCallback

logger = logging.getLogger(__name__)


class InMemoryChangeNotifier:
    """Synchroniczny kanał zmian w obrębie procesu."""

    def __init__(self) -> None:
        self._subscribers: list[ChangeCallback] = []

    def subscribe(self, callback: ChangeCallback) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def publish(self, table: str) -> None:
        logger.debug("Zmiana w tabeli %s → %d odbiorców", table, len(self._subscribers))
        for callback in list(self._subscribers):
            callback(table)
