"""Decoder for the unread-mail Atom feed."""

import logging
from html import unescape

from .exceptions import MalformedDocument
from .extractor import count_blocks, empty_placeholder, extract_block
from .models import DecodedFeed, MailEntry

logger = logging.getLogger(__name__)

ENTRY_TAG = "entry"
TITLE_TAG = "title"
NAME_TAG = "name"
EMAIL_TAG = "email"


def _clean_value(value: str, tag: str) -> str:
    """Decode XML entities and trim pretty-printing whitespace."""
    cleaned = unescape(value).strip()
    return cleaned or empty_placeholder(tag)


def decode(document: str) -> DecodedFeed:
    """
    Decode a feed document into its unread entries.

    The number of ``<entry>`` markers is the unread count. Each entry then
    contributes exactly one title, sender name and sender email, read with a
    single cursor that only moves forward, so entry i's email is consumed
    before entry i+1's title.

    Args:
        document: Raw feed text.

    Returns:
        DecodedFeed with entries in document order.

    Raises:
        MalformedDocument: If any entry is missing one of its blocks. No
            partial result is returned.
    """
    unread_count = count_blocks(document, ENTRY_TAG)
    entry_marker = f"<{ENTRY_TAG}>"

    entries = []
    cursor = 0
    for index in range(unread_count):
        cursor = document.find(entry_marker, cursor)
        if cursor == -1:
            raise MalformedDocument(f"Entry {index + 1} of {unread_count} disappeared")
        cursor += len(entry_marker)

        try:
            title, cursor = extract_block(document, cursor, TITLE_TAG)
            name, cursor = extract_block(document, cursor, NAME_TAG)
            email, cursor = extract_block(document, cursor, EMAIL_TAG)
        except MalformedDocument as e:
            raise MalformedDocument(f"Entry {index + 1} of {unread_count}: {e}") from e

        entries.append(MailEntry(
            title=_clean_value(title, TITLE_TAG),
            sender_name=_clean_value(name, NAME_TAG),
            sender_email=_clean_value(email, EMAIL_TAG),
        ))

    logger.debug(f"Decoded {len(entries)} entries")
    return DecodedFeed(unread_count=unread_count, entries=tuple(entries))
