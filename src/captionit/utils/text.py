from __future__ import annotations

from typing import Iterator


def normalize_text(text: str) -> str:
    return " ".join(text.split()).strip()


def preview_text(text: str, limit: int = 40) -> str:
    cleaned = normalize_text(text)
    if len(cleaned) <= limit:
        return cleaned
    return cleaned[: limit - 3].rstrip() + "..."


def _iter_lines(text: str, max_line_chars: int) -> Iterator[str]:
    # Shared by wrap_text and line_count so both always agree on the count.
    current = ""
    for word in text.split():
        if current and len(current) + 1 + len(word) > max_line_chars:
            yield current
            current = word
        else:
            current = f"{current} {word}" if current else word
    yield current


def wrap_text(text: str, max_line_chars: int) -> list[str]:
    """
    Greedily pack whitespace-separated words into lines of at most
    `max_line_chars` characters.

    Words longer than the budget are kept intact on their own line.
    Empty input yields a single empty line.
    """
    return list(_iter_lines(text, max_line_chars))


def line_count(text: str, max_line_chars: int) -> int:
    return sum(1 for _ in _iter_lines(text, max_line_chars))
