"""Application layer: suggestion engine, filtering, assembly and host wiring."""

from .activation import ActivationSession, TRIGGER_CHARACTERS
from .assembly import apply_completion, assemble_completions
from .context import extract_context, word_prefix
from .engine import BRANCH_MARGIN, SuggestionEngine, branch_count_for
from .filtering import SENTINEL_TOKENS, filter_and_normalize
from .provider import CompletionProvider
from .session import RequestSession

__all__ = [
    "ActivationSession",
    "TRIGGER_CHARACTERS",
    "apply_completion",
    "assemble_completions",
    "extract_context",
    "word_prefix",
    "BRANCH_MARGIN",
    "SuggestionEngine",
    "branch_count_for",
    "SENTINEL_TOKENS",
    "filter_and_normalize",
    "CompletionProvider",
    "RequestSession",
]
