"""LLM Expand: next-word completions from a local inference backend."""

__version__ = "0.1.0"
