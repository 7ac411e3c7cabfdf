"""Forward-only extraction of <tag>...</tag> blocks from a feed document."""

from typing import Iterator, Tuple

from .exceptions import MalformedDocument


def _markers(tag: str) -> Tuple[str, str]:
    return f"<{tag}>", f"</{tag}>"


def empty_placeholder(tag: str) -> str:
    """Text used in place of an empty element."""
    return f"--- no {tag} ---"


def count_blocks(document: str, tag: str) -> int:
    """Count the opening markers for ``tag`` in the whole document."""
    opening, _ = _markers(tag)
    return document.count(opening)


def extract_block(document: str, cursor: int, tag: str) -> Tuple[str, int]:
    """
    Extract the next ``<tag>...</tag>`` block at or after ``cursor``.

    Args:
        document: The feed document.
        cursor: Position to start scanning from.
        tag: Element name, without angle brackets.

    Returns:
        Tuple of (value, next_cursor). ``next_cursor`` points just past the
        closing marker. An empty element yields ``empty_placeholder(tag)``.

    Raises:
        MalformedDocument: If the opening or closing marker is missing.
    """
    opening, closing = _markers(tag)

    open_pos = document.find(opening, cursor)
    if open_pos == -1:
        raise MalformedDocument(f"No <{tag}> found after position {cursor}")

    start = open_pos + len(opening)
    close_pos = document.find(closing, start)
    if close_pos == -1:
        raise MalformedDocument(f"<{tag}> at position {open_pos} is never closed")

    next_cursor = close_pos + len(closing)
    if close_pos == start:
        return empty_placeholder(tag), next_cursor
    return document[start:close_pos], next_cursor


def iter_blocks(document: str, tag: str) -> Iterator[str]:
    """Yield every ``tag`` block value in document order."""
    opening, _ = _markers(tag)
    cursor = 0
    while document.find(opening, cursor) != -1:
        value, cursor = extract_block(document, cursor, tag)
        yield value
