"""Per-request session owning the request's cancellation token."""

import itertools
import time
from typing import Optional

from llmexpand.domain.cancellation import CancellationToken
from llmexpand.logger import get_logger

logger = get_logger("session")

_request_ids = itertools.count(1)


class RequestSession:
    """One in-flight completion request.

    The session's token follows the host's token (if any) and is cancelled
    when the session closes, so nothing spawned for the request outlives it.

    Example:
        ```python
        async with RequestSession(host_token) as session:
            candidates = await engine.generate_candidates(..., session.token)
        ```
    """

    def __init__(self, host_token: Optional[CancellationToken] = None):
        self.request_id = next(_request_ids)
        self.token, self._detach = CancellationToken.linked_to(host_token)
        self._started = 0.0

    @property
    def cancelled(self) -> bool:
        return self.token.is_cancelled

    @property
    def elapsed(self) -> float:
        return time.monotonic() - self._started if self._started else 0.0

    def cancel(self, reason: str = "request cancelled") -> None:
        self.token.cancel(reason)

    async def __aenter__(self) -> "RequestSession":
        self._started = time.monotonic()
        logger.debug(f"Request #{self.request_id} started")
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        self._detach()
        was_cancelled = self.token.is_cancelled
        self.token.cancel("request finished")
        logger.debug(
            f"Request #{self.request_id} {'cancelled' if was_cancelled else 'finished'} "
            f"after {self.elapsed:.3f}s"
        )
