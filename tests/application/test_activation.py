"""Tests for ActivationSession against a recording host."""

import pytest

from llmexpand.application.activation import ACTIVE_MESSAGE, TRIGGER_CHARACTERS, ActivationSession
from llmexpand.application.provider import CompletionProvider
from llmexpand.domain.events import ProviderRegistered, StatusMessage
from llmexpand.infrastructure.document import TextDocument


class FakeRegistration:
    def __init__(self, host, selector):
        self.host = host
        self.selector = selector
        self.disposed = False

    def dispose(self):
        self.disposed = True
        self.host.active.remove(self)


class FakeHost:
    """Records registrations and status messages."""

    def __init__(self):
        self.registrations: list[FakeRegistration] = []
        self.active: list[FakeRegistration] = []
        self.statuses: list[tuple[str, float]] = []
        self.triggers = None

    def register_completion_provider(self, selector, source, trigger_characters):
        registration = FakeRegistration(self, tuple(selector))
        self.registrations.append(registration)
        self.active.append(registration)
        self.triggers = tuple(trigger_characters)
        return registration

    def matches(self, selector, document):
        return "*" in selector or document.language in selector

    def show_status(self, message, duration):
        self.statuses.append((message, duration))


@pytest.fixture
def host():
    return FakeHost()


@pytest.fixture
def configurable(settings):
    current = {"settings": settings}
    return current


@pytest.fixture
def session(host, configurable, fox_backend):
    provider = CompletionProvider(lambda: configurable["settings"], backend=fox_backend)
    return ActivationSession(host, provider, lambda: configurable["settings"])


class TestActivate:
    def test_registers_for_all_languages_by_default(self, session, host):
        session.activate()

        assert session.is_registered
        assert session.selector == ("*",)
        assert [r.selector for r in host.active] == [("*",)]
        assert host.triggers == TRIGGER_CHARACTERS

    def test_flashes_for_matching_document(self, session, host):
        session.activate(TextDocument("hi", language="markdown"))

        assert host.statuses == [(ACTIVE_MESSAGE, 3.0)]

    def test_no_flash_for_other_language(self, session, host, configurable):
        configurable["settings"] = configurable["settings"].with_overrides(languages=("python",))

        session.activate(TextDocument("hi", language="markdown"))

        assert host.statuses == []

    def test_duplicate_languages_collapse(self, session, configurable):
        configurable["settings"] = configurable["settings"].with_overrides(
            languages=("markdown", "plaintext", "markdown")
        )

        session.activate()

        assert session.selector == ("markdown", "plaintext")

    def test_publishes_registration(self, session):
        events = []
        session._provider.event_bus.subscribe(ProviderRegistered, events.append)

        session.activate()

        assert [e.selector for e in events] == [("*",)]

    def test_status_events_reach_host(self, session, host):
        session.activate()

        session._provider.event_bus.publish(StatusMessage(text="LLM Expand error: down", duration=20.0))

        assert host.statuses == [("LLM Expand error: down", 20.0)]


class TestReconfiguration:
    def test_languages_change_reregisters(self, session, host, configurable):
        session.activate()
        configurable["settings"] = configurable["settings"].with_overrides(languages=("markdown",))

        assert session.on_configuration_changed(["LLMExpand.languages"]) is True

        assert len(host.registrations) == 2
        assert host.registrations[0].disposed
        assert [r.selector for r in host.active] == [("markdown",)]

    def test_other_keys_are_ignored(self, session, host):
        session.activate()

        assert session.on_configuration_changed(["depth", "model"]) is False
        assert len(host.registrations) == 1

    def test_document_events(self, session, host):
        session.activate()

        session.on_document_edited(TextDocument("x"))
        assert host.statuses == []

        session.on_active_document_changed(TextDocument("x"))
        assert host.statuses == [(ACTIVE_MESSAGE, 3.0)]

        session.on_active_document_changed(None)
        assert len(host.statuses) == 1


class TestDispose:
    def test_releases_everything(self, session, host):
        released = []
        session.activate()
        session.add_subscription(lambda: released.append("callable"))

        session.dispose()

        assert host.active == []
        assert released == ["callable"]
        assert not session.is_registered
        assert not session._provider.event_bus.has_subscribers(StatusMessage)

    def test_idempotent(self, session, host):
        session.activate()
        session.dispose()
        session.dispose()

        assert len(host.registrations) == 1

    def test_failing_subscription_does_not_block_release(self, session, host):
        class Broken:
            def dispose(self):
                raise RuntimeError("already gone")

        session.activate()
        session.add_subscription(Broken())

        session.dispose()

        assert host.active == []

    def test_cannot_reactivate(self, session):
        session.dispose()
        with pytest.raises(RuntimeError):
            session.activate()


def test_trigger_characters():
    for char in (" ", "-", "'", "7", "q", "Z", "ж", "Ё"):
        assert char in TRIGGER_CHARACTERS
    assert "." not in TRIGGER_CHARACTERS
