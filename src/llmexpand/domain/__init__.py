"""Domain layer: types, errors, protocols, cancellation and events.

Nothing here depends on the application, infrastructure or presentation
layers, or on any network library.
"""

from llmexpand.domain.cancellation import CancellationToken
from llmexpand.domain.errors import (
    BackendError,
    BackendUnavailable,
    ConfigError,
    ExpandError,
    ExpansionFailure,
    MalformedResponse,
    RequestCancelled,
)
from llmexpand.domain.types import (
    CompletionContext,
    CompletionItem,
    CompletionList,
    NormalizedCandidate,
    OffsetRange,
)

__all__ = [
    "CancellationToken",
    "BackendError",
    "BackendUnavailable",
    "ConfigError",
    "ExpandError",
    "ExpansionFailure",
    "MalformedResponse",
    "RequestCancelled",
    "CompletionContext",
    "CompletionItem",
    "CompletionList",
    "NormalizedCandidate",
    "OffsetRange",
]
