"""Event system for reporting status without coupling the core to a UI.

Example:
    ```python
    from llmexpand.domain.events import EventBus, StatusMessage

    bus = EventBus()
    bus.subscribe(StatusMessage, lambda event: print(event.text))
    ```
"""

from .bus import EventBus
from .types import Event, ProviderRegistered, StatusMessage

__all__ = [
    "EventBus",
    "Event",
    "StatusMessage",
    "ProviderRegistered",
]
