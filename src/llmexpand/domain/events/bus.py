"""Event bus connecting the completion core to whatever shows status.

Event Handler Contract:
    Handlers MUST be synchronous (non-async) functions. This is enforced
    at subscription time. Handlers that need async work schedule it with
    ``asyncio.create_task()``.
"""

import asyncio
from typing import Callable, Type, TypeVar

from llmexpand.logger import get_logger

from .types import Event

logger = get_logger("events.bus")

T = TypeVar("T", bound=Event)


class EventBus:
    """Publish/subscribe dispatcher keyed by event type.

    Example:
        ```python
        bus = EventBus()
        bus.subscribe(StatusMessage, lambda e: print(e.text))
        bus.publish(StatusMessage(text="LLM Expand Active"))
        ```

    Not thread-safe: all calls are expected on the same event loop.
    """

    def __init__(self):
        self._handlers: dict[Type[Event], list[Callable[[Event], None]]] = {}

    def subscribe(self, event_type: Type[T], handler: Callable[[T], None]) -> Callable[[], None]:
        """
        Subscribe ``handler`` to events of ``event_type``.

        Returns:
            A function that removes the subscription

        Raises:
            TypeError: If handler is a coroutine function
        """
        if asyncio.iscoroutinefunction(handler):
            raise TypeError(
                f"Event handlers must be synchronous functions. "
                f"Handler {handler.__name__} is a coroutine function; "
                f"schedule async work with asyncio.create_task() instead."
            )

        handlers = self._handlers.setdefault(event_type, [])
        if handler not in handlers:
            handlers.append(handler)  # type: ignore[arg-type]
            logger.debug(f"Subscribed handler for {event_type.__name__}")

        return lambda: self.unsubscribe(event_type, handler)

    def unsubscribe(self, event_type: Type[T], handler: Callable[[T], None]) -> None:
        """Remove a handler. Unknown handlers are ignored."""
        handlers = self._handlers.get(event_type)
        if handlers and handler in handlers:
            handlers.remove(handler)  # type: ignore[arg-type]
            logger.debug(f"Unsubscribed handler for {event_type.__name__}")

    def publish(self, event: Event) -> None:
        """
        Deliver ``event`` to its subscribers in subscription order.

        A failing handler is logged and does not stop delivery to the others.
        """
        event_type = type(event)
        handlers = list(self._handlers.get(event_type, []))

        if not handlers:
            logger.debug(f"No handlers subscribed for {event_type.__name__}")
            return

        for handler in handlers:
            try:
                handler(event)
            except Exception:
                logger.exception(f"Error in event handler for {event_type.__name__}")

    def has_subscribers(self, event_type: Type[Event]) -> bool:
        return bool(self._handlers.get(event_type))
