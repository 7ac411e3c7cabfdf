"""Watch list matching against sender names."""

import logging
import shlex
import subprocess
from dataclasses import dataclass, field
from typing import List, Sequence

from .exceptions import CallbackError
from .models import MailEntry, WatchRule

logger = logging.getLogger(__name__)

COMMAND_TIMEOUT_SECONDS = 30


@dataclass
class WatchResult:
    """Outcome of matching one batch of entries."""
    any_matched: bool
    help_text: str
    errors: List[CallbackError] = field(default_factory=list)


class CommandCallback:
    """Watch callback that runs a configured command without a shell."""

    def __init__(self, command: str, timeout: float = COMMAND_TIMEOUT_SECONDS):
        self.command = command
        self.args = shlex.split(command)
        self.timeout = timeout

    def __call__(self) -> None:
        try:
            completed = subprocess.run(
                self.args,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            raise CallbackError(self.command, e) from e
        if completed.returncode != 0:
            raise CallbackError(
                self.command,
                f"exit status {completed.returncode}: {completed.stderr.strip()}",
            )

    def __repr__(self) -> str:
        return f"CommandCallback({self.command!r})"


def apply_watches(entries: Sequence[MailEntry], rules: Sequence[WatchRule]) -> WatchResult:
    """
    Match every entry's sender name against every watch rule.

    Entries are visited in the given order and rules in list order. Each
    match appends the sender name and a newline to the help text and runs
    the rule's callback, if any. A failing callback is logged and recorded;
    it never stops the remaining matches.

    Args:
        entries: Entries of the current cycle.
        rules: Watch rules, read as they are now.

    Returns:
        WatchResult with the highlight flag, help text and callback errors.
    """
    any_matched = False
    help_lines = []
    errors = []

    for entry in entries:
        for rule in rules:
            if not rule.matches(entry.sender_name):
                continue

            any_matched = True
            help_lines.append(entry.sender_name + "\n")
            if rule.callback is None:
                continue

            try:
                rule.callback()
            except Exception as e:
                error = e if isinstance(e, CallbackError) else CallbackError(rule.pattern, e)
                logger.error(
                    f"Watch callback for {rule.pattern!r} failed on {entry.sender_name!r}: {e}",
                    exc_info=True,
                )
                errors.append(error)

    return WatchResult(any_matched=any_matched, help_text="".join(help_lines), errors=errors)
