"""Data models for the mail feed agent."""

import re
from dataclasses import dataclass, field
from typing import Callable, Optional, Tuple


@dataclass(frozen=True)
class MailEntry:
    """One unread message as listed in the feed."""
    title: str
    sender_name: str
    sender_email: str


@dataclass(frozen=True)
class DecodedFeed:
    """Result of decoding one feed document."""
    unread_count: int
    entries: Tuple[MailEntry, ...]  # forward document order


@dataclass
class WatchRule:
    """
    A sender pattern with an optional action.

    The pattern is searched (not full-matched) against each sender name.
    The callback takes no arguments and runs on *every* poll where the
    pattern matches, not once per new message, so it must be safe to
    repeat.
    """
    pattern: str
    callback: Optional[Callable[[], None]] = None
    regex: re.Pattern = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        self.regex = re.compile(self.pattern)

    def matches(self, sender_name: str) -> bool:
        return self.regex.search(sender_name) is not None


@dataclass
class PollState:
    """Process-wide polling state, owned by the agent."""
    last_poll_timestamp: Optional[float] = None
    suspended: bool = False
    last_unread_count: int = 0
    last_formatted_output: str = ""
    highlight_active: bool = False
    help_text: str = ""


@dataclass(frozen=True)
class StatusSnapshot:
    """What a status display needs to render."""
    unread_count: int
    help_text: str
    highlight_active: bool
