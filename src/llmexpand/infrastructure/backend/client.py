"""Async HTTP client for an Ollama-compatible ``/api/generate`` backend.

Two calls are exposed:
- ``fetch_top_tokens``: one-token generation returning the most probable
  next tokens (branches)
- ``fetch_expansion``: short continuation of one branch up to the next
  word boundary

No retries are made; one failed attempt is final for that call.
"""

from typing import Any, Optional

import httpx

from llmexpand.domain.cancellation import CancellationToken
from llmexpand.domain.errors import (
    BackendError,
    BackendUnavailable,
    ExpansionFailure,
    MalformedResponse,
    RequestCancelled,
)
from llmexpand.logger import get_logger

from .payloads import (
    GENERATE_PATH,
    build_branch_body,
    build_expansion_body,
    build_headers,
    parse_continuation,
    parse_top_tokens,
)

logger = get_logger("backend.client")


class GenerateClient:
    """Client for the generate endpoint, sharing one ``httpx.AsyncClient``.

    Example:
        >>> async with GenerateClient("http://localhost:11434") as client:
        ...     tokens = await client.fetch_top_tokens("The quick brown", "qwen3-base-4b", 10, token)
    """

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the client.

        Args:
            base_url: Backend root URL (e.g. "http://localhost:11434")
            api_key: Optional bearer token
            timeout: Transport timeout in seconds; None disables it so that
                cancellation is the only interruption
            http_client: Pre-built client (tests pass one with a MockTransport).
                Its lifetime stays with the caller.
        """
        self.base_url = base_url.rstrip("/")
        self._headers = build_headers(api_key)
        self._owns_http = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=timeout)
        logger.debug(f"GenerateClient initialized for {self.base_url} (auth={'yes' if api_key else 'no'})")

    @property
    def url(self) -> str:
        return f"{self.base_url}{GENERATE_PATH}"

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def __aenter__(self) -> "GenerateClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def _generate(self, body: dict[str, Any], cancel: CancellationToken) -> Any:
        """
        POST ``body`` and return the decoded JSON.

        Raises:
            BackendUnavailable: Transport error or non-success status
            MalformedResponse: Body is not JSON
            RequestCancelled: ``cancel`` fired first
        """
        try:
            response = await cancel.guard(self._http.post(self.url, json=body, headers=self._headers))
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise BackendUnavailable(f"Request to {self.url} failed: {e}") from e

        if not response.is_success:
            raise BackendUnavailable(
                f"Request failed: {response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise MalformedResponse(f"Response is not valid JSON: {e}") from e

    async def fetch_top_tokens(
        self,
        context: str,
        model: str,
        branch_count: int,
        cancel: CancellationToken,
    ) -> list[str]:
        """
        Fetch the ``branch_count`` most probable next tokens, highest first.

        Args:
            context: Prompt text
            model: Backend model name
            branch_count: Number of branches wanted (capped by the backend limit)
            cancel: Request cancellation token

        Returns:
            Tokens in backend probability order (possibly empty)

        Raises:
            BackendUnavailable: Transport failure or non-success status
            MalformedResponse: The response lacks logprobs
            RequestCancelled: ``cancel`` fired before the response arrived
        """
        body = build_branch_body(context, model, branch_count)
        logger.debug(f"Fetching {body['top_logprobs']} branches for context of {len(context)} chars")

        data = await self._generate(body, cancel)
        tokens = parse_top_tokens(data)[: body["top_logprobs"]]

        logger.debug(f"Backend returned {len(tokens)} branches: {tokens!r}")
        return tokens

    async def fetch_expansion(
        self,
        context: str,
        token: str,
        model: str,
        max_extra_tokens: int,
        cancel: CancellationToken,
    ) -> str:
        """
        Expand ``token`` into a complete word.

        Args:
            context: Prompt text the token continues
            token: Branch token to expand
            model: Backend model name
            max_extra_tokens: Maximum generated tokens after ``token``
            cancel: Request cancellation token

        Returns:
            ``token`` followed by the generated continuation, or ``token``
            alone if the expansion failed or was cancelled
        """
        body = build_expansion_body(context, token, model, max_extra_tokens)
        try:
            return await self._expand(token, body, cancel)
        except ExpansionFailure as e:
            logger.debug(str(e))
        except RequestCancelled:
            logger.debug(f"Expansion of {token!r} cancelled")
        return token

    async def _expand(self, token: str, body: dict[str, Any], cancel: CancellationToken) -> str:
        try:
            data = await self._generate(body, cancel)
            return token + parse_continuation(data)
        except BackendError as e:
            raise ExpansionFailure(token, e) from e
