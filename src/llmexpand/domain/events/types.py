"""Events published by the completion core and the activation session."""

import time
from dataclasses import dataclass, field

__all__ = ["Event", "StatusMessage", "ProviderRegistered"]


@dataclass
class Event:
    """Base class for all events.

    The timestamp field is automatically set when the event is created.
    """

    timestamp: float = field(default_factory=time.time, init=False)
    """Timestamp when the event was created (Unix timestamp)."""


@dataclass
class StatusMessage(Event):
    """A transient, human-readable message for the host's status surface.

    Published for backend failures and activation notices. Never published
    for cancelled requests.

    Attributes:
        text: Message to display
        duration: Seconds the host should keep it visible
        is_error: Whether the message reports a failure
    """

    text: str
    duration: float = 3.0
    is_error: bool = False


@dataclass
class ProviderRegistered(Event):
    """Published whenever the completion provider is (re-)registered.

    Attributes:
        selector: Language ids the provider now serves
    """

    selector: tuple[str, ...]
