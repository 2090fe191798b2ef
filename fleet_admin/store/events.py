import logging
from collections import defaultdict
from typing import Callable, Dict, List

logger = logging.getLogger(__name__)

Listener = Callable[[str], None]


class EventBus:
    """
    Publish/subscribe channel keyed by collection name.

    Every write to a local collection publishes the collection name, so views
    and services depending on it can re-read without polling.
    """

    def __init__(self):
        self._listeners: Dict[str, List[Listener]] = defaultdict(list)

    def subscribe(self, collection: str, listener: Listener) -> Callable[[], None]:
        self._listeners[collection].append(listener)

        def unsubscribe():
            if listener in self._listeners[collection]:
                self._listeners[collection].remove(listener)

        return unsubscribe

    def publish(self, collection: str) -> None:
        for listener in list(self._listeners.get(collection, [])):
            try:
                listener(collection)
            except Exception:
                # a broken view must not fail the write that triggered it
                logger.exception("Listener for %s updates failed", collection)
