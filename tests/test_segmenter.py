"""Reply segmentation and ordered delivery."""

import asyncio
import re

import pytest

from aimibot.segmenter import deliver, label_parts, segment


def _assert_reconstructs(text: str, chunks: list[str]) -> None:
    # Each chunk appears in order; only whitespace at the cuts is lost.
    pos = 0
    for chunk in chunks:
        found = text.find(chunk, pos)
        assert found >= 0, chunk[:40]
        assert text[pos:found].strip() == ""
        pos = found + len(chunk)
    assert text[pos:].strip() == ""


@pytest.mark.parametrize("text", ["", "short", "x" * 100])
def test_short_text_is_one_chunk(text) -> None:
    assert segment(text, limit=100) == [text]


def test_prefers_paragraph_break() -> None:
    text = "a" * 70 + "\n\n" + "b" * 70
    chunks = segment(text, limit=100)
    assert chunks == ["a" * 70, "b" * 70]


def test_early_paragraph_break_is_ignored() -> None:
    # Paragraph break in the first half; a sentence end late in the window wins.
    text = "a" * 20 + "\n\n" + "b" * 60 + ". " + "c" * 60
    chunks = segment(text, limit=100)
    assert chunks[0].endswith("b.")
    _assert_reconstructs(text, chunks)


def test_line_break_when_no_sentence_end() -> None:
    text = "a" * 80 + "\n" + "b" * 80
    assert segment(text, limit=100) == ["a" * 80, "b" * 80]


def test_hard_cut_without_boundaries() -> None:
    text = "z" * 250
    assert segment(text, limit=100) == ["z" * 100, "z" * 100, "z" * 50]


def test_long_prose_respects_limit_and_order() -> None:
    sentences = [f"Sentence number {i} talks about topic {i % 7}." for i in range(200)]
    paragraphs = ["\n".join(sentences[i:i + 5]) for i in range(0, 200, 5)]
    text = "\n\n".join(" ".join(p.split("\n")) for p in paragraphs)

    chunks = segment(text, limit=500)
    assert len(chunks) > 1
    assert all(len(c) <= 500 for c in chunks)
    _assert_reconstructs(text, chunks)


def test_label_parts() -> None:
    assert label_parts(["only"]) == ["only"]
    labelled = label_parts(["one", "two", "three"])
    assert labelled[0] == "**[Part 1/3]**\n\none"
    assert all(re.match(r"\*\*\[Part \d/3\]\*\*\n\n", p) for p in labelled)


def test_deliver_sends_in_order() -> None:
    sent: list[str] = []

    async def send(part: str) -> None:
        sent.append(part)

    count = asyncio.run(deliver(send, "a" * 70 + "\n\n" + "b" * 70, limit=100, delay=0))
    assert count == 2
    assert sent == ["**[Part 1/2]**\n\n" + "a" * 70, "**[Part 2/2]**\n\n" + "b" * 70]


def test_deliver_single_part_has_no_label() -> None:
    sent: list[str] = []

    async def send(part: str) -> None:
        sent.append(part)

    asyncio.run(deliver(send, "hello", delay=0))
    assert sent == ["hello"]
