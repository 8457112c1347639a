"""Completion provider: the single entry point hosts call for suggestions."""

from collections import Counter
from typing import Callable, Optional

from llmexpand.config import ExpandSettings
from llmexpand.domain.cancellation import CancellationToken
from llmexpand.domain.events import EventBus
from llmexpand.domain.protocols import DocumentView, InferenceBackend
from llmexpand.domain.types import CompletionList
from llmexpand.infrastructure.backend import GenerateClient
from llmexpand.logger import get_logger

from .assembly import assemble_completions
from .context import extract_context
from .engine import SuggestionEngine
from .filtering import filter_and_normalize
from .session import RequestSession

logger = get_logger("provider")


class CompletionProvider:
    """Produces a CompletionList for a document position.

    Settings are read on every request, so configuration changes apply to
    the next request without rebuilding the provider. When no backend is
    injected, a GenerateClient is built from the settings and rebuilt when
    the backend URL, key or timeout change. A replaced client is closed once
    the last request using it has finished.
    """

    def __init__(
        self,
        settings_getter: Callable[[], ExpandSettings],
        backend: Optional[InferenceBackend] = None,
        event_bus: Optional[EventBus] = None,
    ):
        self._settings_getter = settings_getter
        self._injected_backend = backend
        self._client: Optional[GenerateClient] = None
        self._client_key: Optional[tuple] = None
        self._retired: set[GenerateClient] = set()
        self._in_flight: Counter = Counter()
        self.event_bus = event_bus or EventBus()

    def _backend_for(self, settings: ExpandSettings) -> InferenceBackend:
        if self._injected_backend is not None:
            return self._injected_backend

        key = (settings.base_url, settings.api_key, settings.request_timeout)
        if self._client is None or key != self._client_key:
            if self._client is not None:
                logger.debug(f"Backend endpoint changed; retiring client for {self._client.base_url}")
                self._retired.add(self._client)
            self._client = GenerateClient(
                settings.base_url,
                api_key=settings.api_key,
                timeout=settings.request_timeout,
            )
            self._client_key = key
        return self._client

    async def _release(self, backend: InferenceBackend) -> None:
        self._in_flight[backend] -= 1
        if self._in_flight[backend] <= 0:
            del self._in_flight[backend]
        await self._close_idle_retired()

    async def _close_idle_retired(self) -> None:
        idle = [client for client in self._retired if not self._in_flight.get(client)]
        for client in idle:
            self._retired.discard(client)
            await client.aclose()
            logger.debug(f"Closed retired client for {client.base_url}")

    async def provide_completions(
        self,
        document: DocumentView,
        cursor: int,
        cancel: Optional[CancellationToken] = None,
    ) -> CompletionList:
        """
        Compute suggestions for ``cursor`` in ``document``.

        Args:
            document: Host document
            cursor: Cursor offset
            cancel: Host cancellation token for this request

        Returns:
            Ranked items; an empty list on failure, cancellation or when
            nothing survives filtering
        """
        settings = self._settings_getter()
        context = extract_context(document, cursor, settings.context_size)
        backend = self._backend_for(settings)
        engine = SuggestionEngine(backend, self.event_bus)

        self._in_flight[backend] += 1
        try:
            async with RequestSession(cancel) as session:
                candidates = await engine.generate_candidates(
                    context.context,
                    settings.model,
                    settings.max_completions,
                    settings.depth,
                    session.token,
                )
                if session.cancelled:
                    return CompletionList()

                normalized = filter_and_normalize(
                    candidates,
                    is_space_boundary=context.is_space_boundary,
                    current_prefix=context.prefix,
                    max_completions=settings.max_completions,
                )
                completions = assemble_completions(normalized, context, settings.max_completions)
                logger.info(
                    f"Request #{session.request_id}: {len(candidates)} candidates -> "
                    f"{len(completions)} items in {session.elapsed:.3f}s"
                )
                return completions
        finally:
            await self._release(backend)

    async def aclose(self) -> None:
        """Close the current client and every retired one."""
        clients = list(self._retired)
        if self._client is not None:
            clients.append(self._client)
        self._retired.clear()
        self._client = None
        self._client_key = None
        for client in clients:
            await client.aclose()
