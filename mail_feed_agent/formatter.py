"""Fixed-width rendering of the unread list."""

from typing import Sequence

from .models import MailEntry

NAME_WIDTH = 20
EMAIL_WIDTH = 20
SENDER_FIELD_WIDTH = 45
TITLE_FIELD_WIDTH = 40
SEPARATOR = " :: "

# Swedish letters whose UTF-8 bytes were read back as Latin-1.
# Narrow cosmetic repair only; unknown sequences are left alone.
ACCENTED_LETTERS = "åäöÅÄÖ"
CLEANUP_TABLE = tuple(
    (letter.encode("utf-8").decode("latin-1"), letter) for letter in ACCENTED_LETTERS
)


def clean_text(text: str) -> str:
    """Repair the known accented-character artifacts in ``text``."""
    for broken, fixed in CLEANUP_TABLE:
        text = text.replace(broken, fixed)
    return text


def format_entry(entry: MailEntry) -> str:
    name = clean_text(entry.sender_name)[:NAME_WIDTH]
    email = clean_text(entry.sender_email)[:EMAIL_WIDTH]
    title = clean_text(entry.title)
    sender = f"{name} <{email}>"
    return f"{sender:>{SENDER_FIELD_WIDTH}}{SEPARATOR}{title:<{TITLE_FIELD_WIDTH}}"


def format_entries(entries: Sequence[MailEntry]) -> str:
    """
    Render one line per entry, in the order given.

    Each line is the right-aligned "name <email>" field (45 wide, name and
    email cut to 20 characters), " :: ", then the left-aligned title (40
    wide, never cut). Lines are joined by newlines without a trailing one.
    """
    return "\n".join(format_entry(entry) for entry in entries)
