"""Tests for completion assembly and application."""

from llmexpand.application.assembly import apply_completion, assemble_completions, sort_key
from llmexpand.domain.types import CompletionContext, NormalizedCandidate, OffsetRange


def candidates(*pairs):
    return [NormalizedCandidate(text=text, raw=raw) for text, raw in pairs]


def test_sort_key_is_zero_padded():
    assert sort_key(0) == "00000"
    assert sort_key(12) == "00012"
    assert sorted(sort_key(r) for r in (10, 2, 1)) == ["00001", "00002", "00010"]


def test_items_after_space_boundary():
    context = CompletionContext(context="The quick brown", prefix="", is_space_boundary=True, cursor=16)

    completions = assemble_completions(
        candidates((" fox jumps", " fox jumps"), (" dog barks", " dog barks")), context, 10
    )

    assert completions.is_incomplete is False
    assert completions.labels == [" fox jumps", " dog barks"]
    first, second = completions.items
    assert first.insert_text == " fox jumps"
    assert first.replace_range == OffsetRange(15, 16)
    assert first.filter_text == " fox jumps"
    assert (first.sort_text, second.sort_text) == ("00000", "00001")
    assert (first.rank, second.rank) == (0, 1)
    assert first.retrigger is True
    assert first.detail == "(LLM)"


def test_filter_text_carries_prefix():
    context = CompletionContext(context="Hello", prefix="wor", is_space_boundary=True, cursor=9)

    completions = assemble_completions(candidates((" world", " world")), context, 10)

    item = completions.items[0]
    assert item.replace_range == OffsetRange(5, 9)
    assert item.filter_text == "wor world"


def test_respects_max_completions():
    context = CompletionContext(context="x", prefix="", is_space_boundary=False, cursor=1)
    many = candidates(*[(f"w{i}", f"w{i}") for i in range(8)])

    assert len(assemble_completions(many, context, 3)) == 3


def test_empty():
    context = CompletionContext(context="x", prefix="", is_space_boundary=False, cursor=1)
    completions = assemble_completions([], context, 10)

    assert completions.items == ()
    assert completions.is_incomplete is False


def test_apply_completion_replaces_space_and_prefix():
    context = CompletionContext(context="Hello", prefix="wor", is_space_boundary=True, cursor=9)
    item = assemble_completions(candidates((" world", " world")), context, 10).items[0]

    text, cursor = apply_completion("Hello wor", item)

    assert text == "Hello world"
    assert cursor == 11


def test_apply_completion_keeps_text_after_cursor():
    context = CompletionContext(context="The", prefix="", is_space_boundary=True, cursor=4)
    item = assemble_completions(candidates((" quick", " quick")), context, 10).items[0]

    text, cursor = apply_completion("The  fox", item)

    assert text == "The quick fox"
    assert cursor == 9
