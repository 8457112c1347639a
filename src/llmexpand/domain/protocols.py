"""Protocols for the collaborators around the completion core."""

from typing import Optional, Protocol, Sequence

from llmexpand.domain.cancellation import CancellationToken
from llmexpand.domain.types import CompletionList

__all__ = [
    "DocumentView",
    "InferenceBackend",
    "Disposable",
    "CompletionSource",
    "EditorHost",
]


class DocumentView(Protocol):
    """Read-only view of the host's document."""

    language: str

    def get_text(self, start: int, end: int) -> str:
        """Return the text in ``[start, end)``."""
        ...

    def __len__(self) -> int:
        ...


class InferenceBackend(Protocol):
    """The two backend calls used by the suggestion engine."""

    async def fetch_top_tokens(
        self,
        context: str,
        model: str,
        branch_count: int,
        cancel: CancellationToken,
    ) -> list[str]:
        """Return the most probable next tokens, highest first.

        Raises:
            BackendError: If the backend failed or answered without logprobs
            RequestCancelled: If ``cancel`` fired first
        """
        ...

    async def fetch_expansion(
        self,
        context: str,
        token: str,
        model: str,
        max_extra_tokens: int,
        cancel: CancellationToken,
    ) -> str:
        """Return ``token`` followed by its continuation up to the next word boundary.

        Never raises; any failure returns ``token`` unchanged.
        """
        ...


class Disposable(Protocol):
    def dispose(self) -> None:
        ...


class CompletionSource(Protocol):
    """What a host calls when it wants suggestions."""

    async def provide_completions(
        self,
        document: DocumentView,
        cursor: int,
        cancel: Optional[CancellationToken] = None,
    ) -> CompletionList:
        ...


class EditorHost(Protocol):
    """Registration surface offered by the hosting editor."""

    def register_completion_provider(
        self,
        selector: Sequence[str],
        source: CompletionSource,
        trigger_characters: Sequence[str],
    ) -> Disposable:
        ...

    def matches(self, selector: Sequence[str], document: DocumentView) -> bool:
        ...

    def show_status(self, message: str, duration: float) -> None:
        ...
