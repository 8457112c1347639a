"""Plain-string implementation of the document collaborator."""

from dataclasses import dataclass

__all__ = ["TextDocument"]


@dataclass(frozen=True)
class TextDocument:
    """Immutable text buffer with a language id.

    Offsets are Python string indices (code points).
    """

    text: str
    language: str = "plaintext"

    def get_text(self, start: int, end: int) -> str:
        start = max(0, min(start, len(self.text)))
        end = max(start, min(end, len(self.text)))
        return self.text[start:end]

    def __len__(self) -> int:
        return len(self.text)
