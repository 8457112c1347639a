"""Extract what a completion request needs from the text before the cursor."""

import re

from llmexpand.domain.protocols import DocumentView
from llmexpand.domain.types import CompletionContext
from llmexpand.logger import get_logger

logger = get_logger("context")

# Trailing run of word characters (Unicode-aware) right before the cursor
_PARTIAL_WORD = re.compile(r"\w+\Z")


def word_prefix(text_before_cursor: str) -> str:
    """Return the in-progress word ending at the cursor ("" after a non-word character)."""
    match = _PARTIAL_WORD.search(text_before_cursor)
    return match.group(0) if match else ""


def extract_context(document: DocumentView, cursor: int, context_size: int) -> CompletionContext:
    """
    Build the completion context for ``cursor``.

    Completion begins where the in-progress word starts. The context is at
    most ``context_size`` characters ending there; if its last character is
    a space, that space is dropped and ``is_space_boundary`` is set, because
    backend tokens carry their own leading space.

    Args:
        document: Host document
        cursor: Cursor offset
        context_size: Maximum characters of preceding text

    Returns:
        The request's CompletionContext
    """
    cursor = max(0, min(cursor, len(document)))

    # The prefix can never be longer than what we are allowed to read
    prefix = word_prefix(document.get_text(max(0, cursor - context_size), cursor))
    start = cursor - len(prefix)

    window = document.get_text(max(0, start - context_size), start)
    is_space_boundary = window.endswith(" ")
    context = window[:-1] if is_space_boundary else window

    logger.debug(
        f"Context: {len(context)} chars, prefix={prefix!r}, space_boundary={is_space_boundary}"
    )
    return CompletionContext(
        context=context,
        prefix=prefix,
        is_space_boundary=is_space_boundary,
        cursor=cursor,
    )
