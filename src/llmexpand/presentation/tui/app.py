"""
PlaygroundApp - a one-line editor showing live LLM Expand suggestions.

The app plays the host-editor role: it implements the EditorHost surface
(provider registration, selector matching, status line) and drives the
completion provider through an ActivationSession, exactly as an editor
integration would.
"""

from typing import Callable, Optional, Sequence

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import Footer, Header, Input, OptionList, Static
from textual.widgets.option_list import Option

from llmexpand.application.activation import ActivationSession
from llmexpand.application.assembly import apply_completion
from llmexpand.application.provider import CompletionProvider
from llmexpand.config import ExpandSettings
from llmexpand.domain.cancellation import CancellationToken
from llmexpand.domain.protocols import CompletionSource, DocumentView
from llmexpand.domain.types import CompletionItem, CompletionList
from llmexpand.infrastructure.document import TextDocument
from llmexpand.logger import get_logger

logger = get_logger("playground")


class _Registration:
    """Handle returned to the activation session for one provider registration."""

    def __init__(self, app: "PlaygroundApp", source: CompletionSource) -> None:
        self._app = app
        self._source = source

    def dispose(self) -> None:
        if self._app.source is self._source:
            self._app.source = None
            self._app.trigger_characters = frozenset()


class PlaygroundApp(App):
    """
    Layout:
    ┌──────────────────────────────┐
    │            Header            │
    ├──────────────────────────────┤
    │  Input (the document)        │
    │  Suggestions (OptionList)    │
    │  Status line                 │
    ├──────────────────────────────┤
    │            Footer            │
    └──────────────────────────────┘
    """

    TITLE = "LLM Expand"
    SUB_TITLE = "Playground"

    CSS = """
    #editor {
        margin: 1 1 0 1;
    }
    #suggestions {
        height: 1fr;
        margin: 0 1;
    }
    #status {
        height: 1;
        margin: 0 1;
        color: $text-muted;
    }
    """

    BINDINGS = [
        Binding("ctrl+q", "quit", "Quit", priority=True),
        Binding("tab", "accept_first", "Accept", priority=True),
        Binding("ctrl+space", "suggest", "Suggest"),
        Binding("escape", "dismiss", "Dismiss"),
    ]

    def __init__(
        self,
        provider: CompletionProvider,
        settings_getter: Callable[[], ExpandSettings],
        language: str = "plaintext",
        initial_text: str = "",
    ) -> None:
        super().__init__()
        self.language = language
        self.initial_text = initial_text
        self.source: Optional[CompletionSource] = None
        self.trigger_characters: frozenset[str] = frozenset()
        self._items: list[CompletionItem] = []
        self._pending: Optional[CancellationToken] = None
        self._provider = provider
        self._activation = ActivationSession(self, provider, settings_getter)

    def compose(self) -> ComposeResult:
        yield Header()
        yield Input(value=self.initial_text, placeholder="Start typing...", id="editor")
        yield OptionList(id="suggestions")
        yield Static("", id="status")
        yield Footer()

    def on_mount(self) -> None:
        """Register the provider and put the cursor at the end of the text."""
        self._activation.activate(self.document)
        editor = self._get_editor()
        editor.cursor_position = len(editor.value)
        editor.focus()

    def on_unmount(self) -> None:
        if self._pending is not None:
            self._pending.cancel("playground closed")
        self._activation.dispose()

    async def action_quit(self) -> None:
        """Handle app quit - release the registration and the backend client."""
        logger.info("Quitting playground, cleaning up...")
        self.on_unmount()
        await self._provider.aclose()
        self.exit()

    def _get_editor(self) -> Input:
        """Helper to get the editor input."""
        return self.query_one("#editor", Input)

    def _get_suggestions(self) -> OptionList:
        """Helper to get the suggestion list."""
        return self.query_one("#suggestions", OptionList)

    def _get_status(self) -> Static:
        """Helper to get the status line."""
        return self.query_one("#status", Static)

    # EditorHost surface

    def register_completion_provider(
        self,
        selector: Sequence[str],
        source: CompletionSource,
        trigger_characters: Sequence[str],
    ) -> _Registration:
        self.source = source
        self.trigger_characters = frozenset(trigger_characters)
        return _Registration(self, source)

    def matches(self, selector: Sequence[str], document: DocumentView) -> bool:
        return "*" in selector or document.language in selector

    def show_status(self, message: str, duration: float) -> None:
        status = self._get_status()
        status.update(message)
        self.set_timer(duration, lambda: status.update(""))

    # Editing

    @property
    def document(self) -> TextDocument:
        return TextDocument(self._get_editor().value, self.language)

    @property
    def items(self) -> list[CompletionItem]:
        return list(self._items)

    def on_input_changed(self, event: Input.Changed) -> None:
        """Query on trigger characters, dismiss on anything else."""
        editor = self._get_editor()
        if event.input is not editor:
            return
        self._activation.on_document_edited(self.document)

        cursor = editor.cursor_position
        typed = event.value[cursor - 1 : cursor] if cursor > 0 else ""
        if typed and typed in self.trigger_characters:
            self.request_suggestions()
        else:
            self.action_dismiss()

    def action_suggest(self) -> None:
        self.request_suggestions()

    def request_suggestions(self) -> None:
        if self.source is None or not self.matches(self._activation.selector, self.document):
            return

        # A new request never waits for the previous one to wind down
        if self._pending is not None:
            self._pending.cancel("superseded by a newer request")
        token = CancellationToken()
        self._pending = token

        cursor = self._get_editor().cursor_position
        self.run_worker(self._fetch(self.document, cursor, token), exclusive=True, group="suggestions")

    async def _fetch(self, document: TextDocument, cursor: int, token: CancellationToken) -> None:
        if self.source is None:
            return
        completions = await self.source.provide_completions(document, cursor, token)
        if token.is_cancelled:
            return
        self._show(completions)

    def _show(self, completions: CompletionList) -> None:
        self._items = list(completions.items)
        option_list = self._get_suggestions()
        option_list.clear_options()
        option_list.add_options(
            [Option(f"{item.label!r}  {item.detail}", id=item.sort_text) for item in self._items]
        )
        logger.debug(f"Showing {len(self._items)} suggestions")

    def action_dismiss(self) -> None:
        if self._pending is not None:
            self._pending.cancel("dismissed")
            self._pending = None
        self._items = []
        self._get_suggestions().clear_options()

    def action_accept_first(self) -> None:
        if self._items:
            self.accept(self._items[0])

    def on_option_list_option_selected(self, event: OptionList.OptionSelected) -> None:
        if 0 <= event.option_index < len(self._items):
            self.accept(self._items[event.option_index])

    def accept(self, item: CompletionItem) -> None:
        """Apply ``item`` to the editor and, if it asks for it, query again."""
        editor = self._get_editor()
        new_text, new_cursor = apply_completion(editor.value, item)
        self._items = []
        self._get_suggestions().clear_options()

        with editor.prevent(Input.Changed):
            editor.value = new_text
        editor.cursor_position = new_cursor
        editor.focus()

        if item.retrigger:
            self.request_suggestions()
