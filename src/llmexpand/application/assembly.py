"""Turn normalized candidates into completion items for the host."""

from collections.abc import Sequence

from llmexpand.domain.types import (
    CompletionContext,
    CompletionItem,
    CompletionList,
    NormalizedCandidate,
)

SORT_KEY_WIDTH = 5


def sort_key(rank: int) -> str:
    """Zero-padded rank, so hosts sorting by text keep the backend order."""
    return str(rank).zfill(SORT_KEY_WIDTH)


def assemble_completions(
    candidates: Sequence[NormalizedCandidate],
    context: CompletionContext,
    max_completions: int,
) -> CompletionList:
    """
    Build the ranked completion list.

    Every item replaces the consumed space (if any) and the typed prefix up
    to the cursor. Its filter text is the prefix plus the raw candidate so
    host-side prefix filtering does not hide it.

    Args:
        candidates: Filter output in ranking order
        context: The request's context
        max_completions: Maximum number of items

    Returns:
        A complete (non-incomplete) CompletionList
    """
    replace_range = context.replace_range
    items = tuple(
        CompletionItem(
            label=candidate.text,
            insert_text=candidate.text,
            replace_range=replace_range,
            filter_text=context.prefix + candidate.raw,
            sort_text=sort_key(rank),
            rank=rank,
        )
        for rank, candidate in enumerate(candidates[: max(0, max_completions)])
    )
    return CompletionList(items=items, is_incomplete=False)


def apply_completion(text: str, item: CompletionItem) -> tuple[str, int]:
    """
    Apply ``item`` to a plain string.

    Returns:
        The new text and the cursor offset right after the inserted text
    """
    start, end = item.replace_range.start, item.replace_range.end
    new_text = text[:start] + item.insert_text + text[end:]
    return new_text, start + len(item.insert_text)
