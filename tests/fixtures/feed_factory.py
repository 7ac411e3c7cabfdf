"""Factory functions for creating test feed documents."""

from typing import Iterable, Tuple


def create_test_entry(
    title: str = "Hello",
    name: str = "Ann",
    email: str = "ann@example.com",
) -> str:
    """Atom <entry> block the way the unread-mail feed lays it out."""
    return (
        "<entry>\n"
        f"<title>{title}</title>\n"
        "<summary>preview text</summary>\n"
        '<link rel="alternate" href="https://mail.example.com/?message_id=1" type="text/html" />\n'
        "<modified>2026-10-18T08:00:00Z</modified>\n"
        "<issued>2026-10-18T08:00:00Z</issued>\n"
        "<id>tag:mail.example.com,2004:1</id>\n"
        "<author>\n"
        f"<name>{name}</name>\n"
        f"<email>{email}</email>\n"
        "</author>\n"
        "</entry>\n"
    )


def create_test_feed(entries: Iterable[Tuple[str, str, str]] = ()) -> str:
    """
    Build a whole feed document.

    Args:
        entries: (title, name, email) triples, in document order.

    Returns:
        Feed text, including the feed-level title and count elements.
    """
    entries = list(entries)
    body = "".join(create_test_entry(title, name, email) for title, name, email in entries)
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<feed version="0.3" xmlns="http://purl.org/atom/ns#">\n'
        "<title>Inbox for user@example.com</title>\n"
        "<tagline>New messages in your Inbox</tagline>\n"
        f"<fullcount>{len(entries)}</fullcount>\n"
        '<link rel="alternate" href="https://mail.example.com" type="text/html" />\n'
        "<modified>2026-10-18T08:00:00Z</modified>\n"
        f"{body}"
        "</feed>\n"
    )
