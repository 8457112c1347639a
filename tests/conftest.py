"""Shared fixtures for the LLM Expand test suite."""

import asyncio
import os
import tempfile

import pytest

# Keep test runs from writing into the user's cache directory
os.environ.setdefault("LLMEXPAND_LOG_FILE", os.path.join(tempfile.gettempdir(), "llmexpand-tests.log"))

from llmexpand.config import ExpandSettings  # noqa: E402
from llmexpand.domain.errors import BackendUnavailable, RequestCancelled  # noqa: E402


class StubBackend:
    """In-memory InferenceBackend with scripted tokens, delays and failures.

    Args:
        tokens: Branch tokens returned by ``fetch_top_tokens`` (truncated to the request)
        expansions: token -> continuation appended by ``fetch_expansion``
        delays: token -> seconds the expansion takes
        failing: Tokens whose expansion raises ``BackendUnavailable``
        discovery_error: Exception raised by ``fetch_top_tokens``
        discovery_delay: Seconds branch discovery takes
    """

    def __init__(
        self,
        tokens=(),
        expansions=None,
        delays=None,
        failing=(),
        discovery_error=None,
        discovery_delay=0.0,
    ):
        self.tokens = list(tokens)
        self.expansions = expansions or {}
        self.delays = delays or {}
        self.failing = set(failing)
        self.discovery_error = discovery_error
        self.discovery_delay = discovery_delay
        self.contexts: list[str] = []
        self.branch_requests: list[int] = []
        self.expansion_calls: list[tuple[str, int]] = []
        self.cancelled_expansions: list[str] = []

    async def fetch_top_tokens(self, context, model, branch_count, cancel):
        self.contexts.append(context)
        self.branch_requests.append(branch_count)
        if self.discovery_delay:
            await cancel.guard(asyncio.sleep(self.discovery_delay))
        if self.discovery_error is not None:
            raise self.discovery_error
        return self.tokens[:branch_count]

    async def fetch_expansion(self, context, token, model, max_extra_tokens, cancel):
        self.expansion_calls.append((token, max_extra_tokens))
        delay = self.delays.get(token, 0.0)
        if delay:
            try:
                await cancel.guard(asyncio.sleep(delay))
            except RequestCancelled:
                self.cancelled_expansions.append(token)
                return token
        if token in self.failing:
            raise BackendUnavailable(f"expansion of {token!r} failed", status_code=500)
        return token + self.expansions.get(token, "")


@pytest.fixture
def stub_backend():
    """Factory for StubBackend instances."""
    return StubBackend


@pytest.fixture
def settings():
    """Default settings pointing at an address nothing listens on."""
    return ExpandSettings(base_url="http://backend.test", model="test-model")


@pytest.fixture
def fox_backend():
    """Backend reproducing the "quick brown fox" scenario."""
    return StubBackend(
        tokens=[" fox", " dog", "<|endoftext|>"],
        expansions={" fox": " jumps", " dog": " barks"},
    )
