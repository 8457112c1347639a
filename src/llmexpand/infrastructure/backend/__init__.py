"""HTTP access to the inference backend."""

from .client import GenerateClient
from .payloads import MAX_BRANCHES, WORD_BOUNDARY_STOPS

__all__ = ["GenerateClient", "MAX_BRANCHES", "WORD_BOUNDARY_STOPS"]
