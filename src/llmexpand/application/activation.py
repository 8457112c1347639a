"""
Activation session: owns the provider registration inside a host editor.

The session registers the completion provider for the configured languages,
re-registers it when the ``languages`` setting changes, flashes an "active"
notice when a matching document gets focus, and forwards status events to
the host. ``dispose()`` releases everything it registered.
"""

import string
from collections.abc import Iterable
from typing import Callable, Optional, Union

from llmexpand.config import ExpandSettings
from llmexpand.domain.events import ProviderRegistered, StatusMessage
from llmexpand.domain.protocols import Disposable, DocumentView, EditorHost
from llmexpand.logger import get_logger

from .provider import CompletionProvider

logger = get_logger("activation")

ACTIVE_MESSAGE = "LLM Expand Active"
ACTIVE_MESSAGE_DURATION = 3.0

CYRILLIC_LETTERS = "абвгдеёжзийклмнопрстуфхцчшщъыьэюяАБВГДЕЁЖЗИЙКЛМНОПРСТУФХЦЧШЩЪЫЬЭЮЯ"

TRIGGER_CHARACTERS: tuple[str, ...] = (
    " ",
    "-",
    "'",
    *string.digits,
    *string.ascii_letters,
    *CYRILLIC_LETTERS,
)

Subscription = Union[Disposable, Callable[[], None]]


class ActivationSession:
    """Explicitly owned registration state for one host.

    Example:
        ```python
        session = ActivationSession(host, provider, load_settings)
        session.activate(active_document)
        ...
        session.dispose()
        ```
    """

    def __init__(
        self,
        host: EditorHost,
        provider: CompletionProvider,
        settings_getter: Callable[[], ExpandSettings],
    ):
        self._host = host
        self._provider = provider
        self._settings_getter = settings_getter
        self._registration: Optional[Disposable] = None
        self._selector: tuple[str, ...] = ()
        self._subscriptions: list[Subscription] = []
        self._disposed = False

    @property
    def selector(self) -> tuple[str, ...]:
        return self._selector

    @property
    def is_registered(self) -> bool:
        return self._registration is not None

    def activate(self, active_document: Optional[DocumentView] = None) -> None:
        """Register the provider and start forwarding status events to the host."""
        if self._disposed:
            raise RuntimeError("ActivationSession has been disposed")

        self.register_provider()
        self.add_subscription(
            self._provider.event_bus.subscribe(StatusMessage, self._forward_status)
        )
        if active_document is not None:
            self.trigger(active_document, flash=True)

    def register_provider(self) -> None:
        """(Re-)register the provider for the configured, deduplicated languages."""
        settings = self._settings_getter()
        selector = tuple(dict.fromkeys(settings.languages))

        if self._registration is not None:
            self._registration.dispose()
            self._registration = None

        self._selector = selector
        self._registration = self._host.register_completion_provider(
            selector, self._provider, TRIGGER_CHARACTERS
        )
        logger.info(f"Completion provider registered for {list(selector)}")
        self._provider.event_bus.publish(ProviderRegistered(selector=selector))

    def add_subscription(self, subscription: Subscription) -> None:
        """Track a host subscription (disposable or unsubscribe callable) for disposal."""
        self._subscriptions.append(subscription)

    def trigger(self, document: Optional[DocumentView], flash: bool = False) -> bool:
        """
        Check whether ``document`` is served by the provider.

        Args:
            document: Document that gained focus or was edited
            flash: Show the "active" notice when it matches

        Returns:
            True if the document matches the current selector
        """
        if document is None or not self._selector:
            return False
        if not self._host.matches(self._selector, document):
            return False
        if flash:
            self._host.show_status(ACTIVE_MESSAGE, ACTIVE_MESSAGE_DURATION)
        return True

    def on_configuration_changed(self, changed_keys: Iterable[str]) -> bool:
        """
        React to a settings change.

        Returns:
            True if the provider was re-registered
        """
        if any(key in ("languages", "LLMExpand.languages") for key in changed_keys):
            self.register_provider()
            return True
        return False

    def on_active_document_changed(self, document: Optional[DocumentView]) -> None:
        self.trigger(document, flash=True)

    def on_document_edited(self, document: DocumentView) -> None:
        self.trigger(document, flash=False)

    def _forward_status(self, event: StatusMessage) -> None:
        self._host.show_status(event.text, event.duration)

    def dispose(self) -> None:
        """Release the registration and every tracked subscription. Safe to call twice."""
        if self._disposed:
            return
        self._disposed = True

        subscriptions, self._subscriptions = self._subscriptions, []
        for subscription in subscriptions:
            try:
                if callable(subscription):
                    subscription()
                else:
                    subscription.dispose()
            except Exception as e:
                logger.error(f"Error disposing subscription: {e}")

        if self._registration is not None:
            self._registration.dispose()
            self._registration = None
        logger.info("Activation session disposed")
