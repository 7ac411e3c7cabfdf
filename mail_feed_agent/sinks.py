"""Standard output sinks."""

import logging
import os
import smtplib
import sys
import tempfile
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from pathlib import Path
from typing import List, TextIO, Tuple

from twilio.rest import Client

from .config import SmtpConfig, TwilioConfig
from .dispatcher import OutputSink

logger = logging.getLogger(__name__)

COUNT_FILE_SUFFIX = "-nbmails.txt"
HEADERS_FILE_SUFFIX = "-headers.txt"
SMTP_TIMEOUT_SECONDS = 30
SMS_MAX_CHARS = 1500


class RecordingSink(OutputSink):
    """Keeps every delivery in memory, for hosts that render it themselves."""

    def __init__(self):
        self.deliveries: List[Tuple[int, str]] = []

    def deliver(self, count: int, text: str) -> None:
        self.deliveries.append((count, text))

    @property
    def last(self):
        return self.deliveries[-1] if self.deliveries else None


class DisplaySink(OutputSink):
    """Ephemeral display: shows the table only when there is unread mail."""

    def __init__(self, stream: TextIO = None):
        self.stream = stream

    def deliver(self, count: int, text: str) -> None:
        if count <= 0:
            return
        stream = self.stream or sys.stdout
        noun = "message" if count == 1 else "messages"
        stream.write(f"{count} unread {noun}\n{text}\n")
        stream.flush()


def _write_atomic(path: Path, content: str) -> None:
    """Write via a temp file in the same directory, then rename over ``path``."""
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=str(path.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as tmp:
            tmp.write(content)
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise


class FileSink(OutputSink):
    """
    Durable two-file state.

    ``<root>-nbmails.txt`` holds the count (blank when 0) and
    ``<root>-headers.txt`` holds the formatted table. Both always end with a
    newline when they have content and are replaced atomically, so a reader
    never sees a half-written file.
    """

    def __init__(self, root: str):
        self.root = root

    @property
    def count_path(self) -> Path:
        return Path(self.root + COUNT_FILE_SUFFIX)

    @property
    def headers_path(self) -> Path:
        return Path(self.root + HEADERS_FILE_SUFFIX)

    def deliver(self, count: int, text: str) -> None:
        self.count_path.parent.mkdir(parents=True, exist_ok=True)
        _write_atomic(self.count_path, (str(count) if count > 0 else "") + "\n")
        _write_atomic(self.headers_path, text + "\n" if text else "")
        logger.debug(f"Wrote {self.count_path} and {self.headers_path}")


class SmsSink(OutputSink):
    """Sends the summary as an SMS through Twilio when there is unread mail."""

    def __init__(self, config: TwilioConfig, client: Client = None):
        self.config = config
        self._client = client

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = Client(self.config.account_sid, self.config.auth_token)
        return self._client

    def deliver(self, count: int, text: str) -> None:
        if count <= 0:
            return

        body = f"{count} unread:\n{text}"
        if len(body) > SMS_MAX_CHARS:
            body = body[:SMS_MAX_CHARS - 3] + "..."

        try:
            message_obj = self.client.messages.create(
                body=body,
                from_=self.config.from_number,
                to=self.config.to_number,
            )
        except Exception as e:
            error_str = str(e)
            if "20003" in error_str or "Authenticate" in error_str or "401" in error_str:
                logger.error(
                    "Twilio authentication failed (Error 20003). "
                    "Check TWILIO_ACCOUNT_SID and TWILIO_AUTH_TOKEN. "
                    f"Current Account SID (first 10 chars): {self.config.account_sid[:10]}..."
                )
            raise
        logger.info(f"SMS sent successfully. SID: {message_obj.sid}")


class EmailSink(OutputSink):
    """Mails the summary over SMTP when there is unread mail."""

    def __init__(self, config: SmtpConfig, subject: str = "Unread mail summary"):
        self.config = config
        self.subject = subject

    def _connect(self) -> smtplib.SMTP:
        if self.config.port == 465:
            # Use SMTP_SSL for port 465
            return smtplib.SMTP_SSL(self.config.host, self.config.port, timeout=SMTP_TIMEOUT_SECONDS)
        # Use STARTTLS for everything else
        server = smtplib.SMTP(self.config.host, self.config.port, timeout=SMTP_TIMEOUT_SECONDS)
        try:
            server.starttls()
        except Exception:
            server.close()
            raise
        return server

    def deliver(self, count: int, text: str) -> None:
        if count <= 0:
            return

        from_email = self.config.from_email or self.config.username
        msg = MIMEMultipart()
        msg["From"] = from_email
        msg["To"] = self.config.to_email
        msg["Subject"] = f"{self.subject} ({count})"
        msg.attach(MIMEText(text, "plain", "utf-8"))

        server = self._connect()
        try:
            server.login(self.config.username, self.config.password)
            server.send_message(msg)
        except smtplib.SMTPAuthenticationError:
            logger.error(
                f"SMTP authentication failed for {self.config.username}. "
                "For Gmail, use an App Password rather than the account password."
            )
            raise
        finally:
            server.quit()

        logger.info(f"Email sent successfully to {self.config.to_email}")
