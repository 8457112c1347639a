"""Branch-and-expand suggestion generation.

Phase 1 asks the backend for the most probable next tokens (branches).
Phase 2 expands every branch concurrently into a complete word, each with
its own fallback, and joins on all of them. Results keep the branch order;
a slow branch never moves.
"""

import asyncio
import time
from typing import Optional

from llmexpand.domain.cancellation import CancellationToken
from llmexpand.domain.errors import BackendError, RequestCancelled
from llmexpand.domain.events import EventBus, StatusMessage
from llmexpand.domain.protocols import InferenceBackend
from llmexpand.infrastructure.backend.payloads import MAX_BRANCHES
from llmexpand.logger import get_logger

logger = get_logger("engine")

# Extra branches requested to make up for the ones filtering drops
BRANCH_MARGIN = 5

ERROR_STATUS_DURATION = 20.0


def branch_count_for(desired_count: int) -> int:
    """Branches to request for ``desired_count`` suggestions, never above MAX_BRANCHES."""
    return max(1, min(desired_count + BRANCH_MARGIN, MAX_BRANCHES))


class SuggestionEngine:
    """Turns a context into ranked raw candidates using an InferenceBackend."""

    def __init__(self, backend: InferenceBackend, event_bus: Optional[EventBus] = None):
        """
        Args:
            backend: Client issuing the branch and expansion calls
            event_bus: Receives a StatusMessage when branch discovery fails
        """
        self._backend = backend
        self._event_bus = event_bus

    async def generate_candidates(
        self,
        context: str,
        model: str,
        desired_count: int,
        expansion_depth: int,
        cancel: Optional[CancellationToken] = None,
    ) -> list[str]:
        """
        Generate raw candidates for ``context``, most probable first.

        Args:
            context: Prompt text ending where completion begins
            model: Backend model name
            desired_count: Suggestions the caller wants after filtering
            expansion_depth: Max extra tokens per branch; <= 0 skips expansion
            cancel: Request cancellation token

        Returns:
            At most ``branch_count_for(desired_count)`` candidates. Empty on
            backend failure or cancellation; this method does not raise.
        """
        cancel = cancel or CancellationToken()
        branch_count = branch_count_for(desired_count)
        started = time.monotonic()

        try:
            tokens = await self._backend.fetch_top_tokens(context, model, branch_count, cancel)
        except RequestCancelled:
            logger.debug("Branch discovery cancelled")
            return []
        except BackendError as e:
            self._report_failure(e)
            return []
        except asyncio.CancelledError:
            cancel.cancel("caller task cancelled")
            raise
        except Exception as e:
            logger.exception("Unexpected error during branch discovery")
            self._report_failure(BackendError(str(e)))
            return []

        if cancel.is_cancelled:
            logger.debug("Request cancelled after branch discovery")
            return []

        tokens = tokens[:branch_count]
        if not tokens:
            logger.debug("Backend returned no branches")
            return []

        if expansion_depth <= 0:
            return list(tokens)

        try:
            expanded = await asyncio.gather(
                *(
                    self._expand_branch(context, token, model, expansion_depth, cancel)
                    for token in tokens
                )
            )
        except asyncio.CancelledError:
            cancel.cancel("caller task cancelled")
            raise

        if cancel.is_cancelled:
            logger.debug("Request cancelled during expansion; discarding results")
            return []

        logger.debug(
            f"Expanded {len(expanded)} branches in {time.monotonic() - started:.3f}s: {expanded!r}"
        )
        return list(expanded)

    async def _expand_branch(
        self,
        context: str,
        token: str,
        model: str,
        expansion_depth: int,
        cancel: CancellationToken,
    ) -> str:
        # Failures stay inside the branch: the unexpanded token is its result
        try:
            return await self._backend.fetch_expansion(context, token, model, expansion_depth, cancel)
        except (BackendError, RequestCancelled) as e:
            logger.debug(f"Expansion of {token!r} failed: {e}")
        except Exception:
            logger.exception(f"Unexpected error expanding {token!r}")
        return token

    def _report_failure(self, error: BackendError) -> None:
        logger.error(f"LLM Expand error: {error}")
        if self._event_bus is not None:
            self._event_bus.publish(
                StatusMessage(
                    text=f"LLM Expand error: {error}",
                    duration=ERROR_STATUS_DURATION,
                    is_error=True,
                )
            )
