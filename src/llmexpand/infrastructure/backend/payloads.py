"""Request bodies and response parsing for the ``/api/generate`` endpoint.

Everything here is pure: the same inputs always produce the same body, which
keeps the HTTP client thin and the wire format testable without a server.
"""

from typing import Any

from llmexpand.domain.errors import MalformedResponse

GENERATE_PATH = "/api/generate"

# Upper bound on top_logprobs the backend accepts
MAX_BRANCHES = 20

# Expansion stops at the first word boundary
WORD_BOUNDARY_STOPS = (" ", "\n", "\t", "\r")


def build_branch_body(context: str, model: str, branch_count: int) -> dict[str, Any]:
    """Body asking for one token plus the ``branch_count`` most probable alternatives."""
    return {
        "model": model,
        "prompt": context,
        "stream": False,
        "raw": True,
        "logprobs": True,
        "top_logprobs": max(1, min(branch_count, MAX_BRANCHES)),
        "options": {"num_predict": 1},
    }


def build_expansion_body(context: str, token: str, model: str, max_extra_tokens: int) -> dict[str, Any]:
    """Body continuing ``context + token`` until a word boundary or ``max_extra_tokens``."""
    return {
        "model": model,
        "prompt": context + token,
        "stream": False,
        "raw": True,
        "options": {
            "num_predict": max_extra_tokens,
            "stop": list(WORD_BOUNDARY_STOPS),
        },
    }


def build_headers(api_key: str | None) -> dict[str, str]:
    headers = {"Content-Type": "application/json"}
    if api_key:
        headers["Authorization"] = f"Bearer {api_key}"
    return headers


def parse_top_tokens(data: Any) -> list[str]:
    """
    Extract branch tokens from a logprobs response, highest probability first.

    Raises:
        MalformedResponse: If ``logprobs`` is missing or its entries are not
            shaped as ``{"top_logprobs": [{"token": str}, ...]}``
    """
    if not isinstance(data, dict):
        raise MalformedResponse(f"Expected a JSON object, got {type(data).__name__}")

    logprobs = data.get("logprobs")
    if not isinstance(logprobs, list):
        raise MalformedResponse("Response has no 'logprobs' list (does the model support logprobs?)")
    if not logprobs:
        return []

    first = logprobs[0]
    top = first.get("top_logprobs") if isinstance(first, dict) else None
    if not isinstance(top, list):
        raise MalformedResponse("Response 'logprobs[0]' has no 'top_logprobs' list")

    tokens = []
    for entry in top:
        token = entry.get("token") if isinstance(entry, dict) else None
        if not isinstance(token, str):
            raise MalformedResponse(f"Invalid top_logprobs entry: {entry!r}")
        tokens.append(token)
    return tokens


def parse_continuation(data: Any) -> str:
    """
    Extract the generated text of an expansion response.

    A missing ``response`` counts as an empty continuation.

    Raises:
        MalformedResponse: If the body is not an object or ``response`` is not a string
    """
    if not isinstance(data, dict):
        raise MalformedResponse(f"Expected a JSON object, got {type(data).__name__}")
    response = data.get("response")
    if response is None:
        return ""
    if not isinstance(response, str):
        raise MalformedResponse(f"'response' must be a string, got {type(response).__name__}")
    return response
