"""Shared domain types for completion requests and results."""

from dataclasses import dataclass, field

__all__ = [
    "OffsetRange",
    "CompletionContext",
    "NormalizedCandidate",
    "CompletionItem",
    "CompletionList",
]


@dataclass(frozen=True, slots=True)
class OffsetRange:
    """Half-open character range ``[start, end)`` in a document."""

    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start < 0 or self.end < self.start:
            raise ValueError(f"Invalid range: [{self.start}, {self.end})")

    def __len__(self) -> int:
        return self.end - self.start


@dataclass(frozen=True, slots=True)
class CompletionContext:
    """Everything a request needs to know about the text around the cursor.

    Attributes:
        context: Text sent to the backend, ending where completion begins
            (a consumed separating space is not included)
        prefix: Word characters already typed before the cursor
        is_space_boundary: Whether a space right before the completion start
            was consumed from ``context``
        cursor: Cursor offset in the document
    """

    context: str
    prefix: str
    is_space_boundary: bool
    cursor: int

    @property
    def replace_range(self) -> OffsetRange:
        """Range that an accepted item replaces: consumed space + prefix up to the cursor."""
        start = self.cursor - len(self.prefix) - (1 if self.is_space_boundary else 0)
        return OffsetRange(max(0, start), self.cursor)


@dataclass(frozen=True, slots=True)
class NormalizedCandidate:
    """A filtered candidate.

    ``text`` is the insertion string and the deduplication key; ``raw`` is the
    candidate exactly as produced by expansion.
    """

    text: str
    raw: str


@dataclass(frozen=True, slots=True)
class CompletionItem:
    """A single suggestion handed to the host editor."""

    label: str
    insert_text: str
    replace_range: OffsetRange
    filter_text: str
    sort_text: str
    rank: int
    detail: str = "(LLM)"
    retrigger: bool = True
    """Ask the host to re-open suggestions after this item is accepted."""


@dataclass(frozen=True, slots=True)
class CompletionList:
    """Ordered, bounded result of one completion request."""

    items: tuple[CompletionItem, ...] = field(default_factory=tuple)
    is_incomplete: bool = False
    """False tells the host the list is final for this position; no re-query on further filtering."""

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self):
        return iter(self.items)

    @property
    def labels(self) -> list[str]:
        return [item.label for item in self.items]
