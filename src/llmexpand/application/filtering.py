"""
Candidate filtering and normalization.

Turns raw expanded candidates into clean insertion strings. Rules are
applied per candidate, in this order:

1. after a consumed space, candidates starting with a letter are rejected
2. whitespace-only candidates are rejected
3. candidates containing an end-of-sequence sentinel are rejected
4. with a typed prefix, candidates must extend it (case-insensitively)
5. the survivor is trimmed, and a single leading space is put back when the
   raw candidate started with whitespace or a space was consumed
6. duplicates of an already accepted normalized text are dropped
7. processing stops once ``max_completions`` candidates are accepted

The input order (backend probability order) is preserved.
"""

from __future__ import annotations

import unicodedata
from collections.abc import Iterable

from llmexpand.domain.types import NormalizedCandidate
from llmexpand.logger import get_logger

logger = get_logger("filtering")

SENTINEL_TOKENS = ("<|endoftext|>", "<|im_end|>")


def starts_with_letter(text: str) -> bool:
    """True when the first character is a Unicode letter (any ``L*`` category)."""
    return bool(text) and unicodedata.category(text[0]).startswith("L")


def contains_sentinel(text: str) -> bool:
    return any(sentinel in text for sentinel in SENTINEL_TOKENS)


def matches_prefix(trimmed: str, prefix: str) -> bool:
    """Whether ``trimmed`` extends ``prefix``; an exact (case-insensitive) repeat does not."""
    folded = trimmed.casefold()
    folded_prefix = prefix.casefold()
    return folded.startswith(folded_prefix) and folded != folded_prefix


def normalize_candidate(candidate: str, is_space_boundary: bool) -> str:
    trimmed = candidate.strip()
    if is_space_boundary or candidate[:1].isspace():
        return " " + trimmed
    return trimmed


def rejection_reason(candidate: str, is_space_boundary: bool, current_prefix: str) -> str | None:
    """Return why ``candidate`` is rejected, or None if it passes rules 1-4."""
    if is_space_boundary and starts_with_letter(candidate):
        return "letter after space boundary"
    trimmed = candidate.strip()
    if not trimmed:
        return "blank"
    if contains_sentinel(candidate):
        return "sentinel"
    if current_prefix and not matches_prefix(trimmed, current_prefix):
        return "prefix mismatch"
    return None


def filter_and_normalize(
    candidates: Iterable[str],
    *,
    is_space_boundary: bool,
    current_prefix: str = "",
    max_completions: int = 10,
) -> list[NormalizedCandidate]:
    """
    Filter, normalize and deduplicate candidates.

    Args:
        candidates: Raw candidates in ranking order
        is_space_boundary: Whether a separating space was consumed from the context
        current_prefix: The word the user already typed ("" if none)
        max_completions: Maximum number of results

    Returns:
        Accepted candidates in input order; empty when nothing survives
    """
    accepted: list[NormalizedCandidate] = []
    if max_completions <= 0:
        return accepted

    seen: set[str] = set()
    for candidate in candidates:
        reason = rejection_reason(candidate, is_space_boundary, current_prefix)
        if reason:
            logger.debug(f"Rejected {candidate!r}: {reason}")
            continue

        text = normalize_candidate(candidate, is_space_boundary)
        if text in seen:
            continue
        seen.add(text)
        accepted.append(NormalizedCandidate(text=text, raw=candidate))

        if len(accepted) >= max_completions:
            break

    if not accepted:
        logger.debug("No candidates survived filtering")
    return accepted
