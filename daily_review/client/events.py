import logging
from typing import Callable, List

logger = logging.getLogger(__name__)


class DataChangeChannel:
    """Payload-less "data changed" notifications.

    Subscribers re-fetch whatever they display when called.
    """

    def __init__(self):
        self._subscribers: List[Callable[[], None]] = []

    def subscribe(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Register ``callback``; returns a function that unsubscribes it."""
        self._subscribers.append(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def publish(self) -> None:
        for callback in list(self._subscribers):
            try:
                callback()
            except Exception:
                # One broken observer must not stop the others
                logger.exception("Data change subscriber failed")

    def __len__(self):
        return len(self._subscribers)
