"""
Splitting long replies into platform-sized messages.

Discord caps a message at 2000 characters; the default limit leaves room
for the ``**[Part i/N]**`` header added when a reply spans several messages.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable

MAX_MESSAGE_LENGTH = 1950
PART_DELAY = 0.5  # seconds between parts

_SENTENCE_ENDS = (". ", "! ", "? ")


def _split_point(text: str, limit: int) -> int:
    """Pick where to cut ``text`` so the head is at most ``limit`` characters."""
    # Paragraph break in the back half of the window
    para = text.rfind("\n\n", 0, limit + 2)
    if para > limit * 0.5:
        return para

    # Sentence end in the back 30%; cut after the punctuation
    sentence = max(text.rfind(end, 0, limit + 1) for end in _SENTENCE_ENDS)
    if sentence > limit * 0.7:
        return sentence + 1

    # Any line break in the back 30%
    line = text.rfind("\n", 0, limit + 1)
    if line > limit * 0.7:
        return line

    return limit


def segment(text: str, limit: int = MAX_MESSAGE_LENGTH) -> list[str]:
    """Split ``text`` into ordered chunks of at most ``limit`` characters.

    Whitespace at each cut is trimmed; nothing else is dropped.
    """
    if len(text) <= limit:
        return [text]

    chunks: list[str] = []
    remaining = text
    while remaining:
        if len(remaining) <= limit:
            chunks.append(remaining)
            break
        cut = _split_point(remaining, limit)
        head = remaining[:cut].strip()
        if head:
            chunks.append(head)
        remaining = remaining[cut:].strip()
    return chunks or [text.strip()]


def label_parts(chunks: list[str]) -> list[str]:
    """Prefix each chunk with ``**[Part i/N]**`` when there is more than one."""
    if len(chunks) <= 1:
        return list(chunks)
    total = len(chunks)
    return [f"**[Part {i}/{total}]**\n\n{chunk}" for i, chunk in enumerate(chunks, start=1)]


async def deliver(
    send: Callable[[str], Awaitable[object]],
    text: str,
    limit: int = MAX_MESSAGE_LENGTH,
    delay: float = PART_DELAY,
) -> int:
    """Segment ``text`` and send the parts in order. Returns the part count."""
    parts = label_parts(segment(text, limit))
    for i, part in enumerate(parts):
        await send(part)
        if i < len(parts) - 1:
            await asyncio.sleep(delay)
    return len(parts)
