from collections import defaultdict
import logging
from typing import Any, Callable, DefaultDict, Dict, List

Handler = Callable[[Dict[str, Any]], None]


class EventBus:
    """Named-topic observer registry. Handler failures are logged and isolated from the publisher."""

    def __init__(self) -> None:
        self._subscribers: DefaultDict[str, List[Handler]] = defaultdict(list)
        self._last_publish_errors: List[Exception] = []
        self._logger = logging.getLogger(__name__)

    def subscribe(self, topic: str, handler: Handler) -> None:
        self._subscribers[topic].append(handler)

    def unsubscribe(self, topic: str, handler: Handler) -> bool:
        handlers = self._subscribers.get(topic, [])
        if handler in handlers:
            handlers.remove(handler)
            return True
        return False

    def publish(self, topic: str, payload: Dict[str, Any]) -> None:
        self._last_publish_errors = []
        for handler in list(self._subscribers.get(topic, [])):
            try:
                handler(payload)
            except Exception as exc:
                self._last_publish_errors.append(exc)
                handler_name = getattr(handler, "__qualname__", getattr(handler, "__name__", repr(handler)))
                self._logger.exception(
                    "Game event handler failed and was isolated",
                    extra={"topic": topic, "handler": handler_name},
                )

    def last_publish_errors(self) -> List[Exception]:
        return list(self._last_publish_errors)
