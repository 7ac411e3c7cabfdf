"""
Custom exceptions for the mail feed agent.

None of these is fatal to the polling loop: a failed cycle is a missed cycle.
"""


class MailFeedAgentError(Exception):
    """Base exception for all custom exceptions."""

    pass


class ConfigurationError(MailFeedAgentError):
    """Configuration is invalid or missing."""

    pass


class FetchError(MailFeedAgentError):
    """The feed could not be fetched (network, TLS, authentication, HTTP status)."""

    pass


class MalformedDocument(MailFeedAgentError):
    """The feed document does not have the expected repeated-block shape."""

    pass


class SinkDeliveryError(MailFeedAgentError):
    """An output sink failed to deliver a summary."""

    def __init__(self, sink_name: str, cause: BaseException):
        super().__init__(f"Sink {sink_name} failed: {cause}")
        self.sink_name = sink_name
        self.cause = cause


class CallbackError(MailFeedAgentError):
    """A watch rule callback failed."""

    def __init__(self, pattern: str, cause):
        super().__init__(f"Callback for watch {pattern!r} failed: {cause}")
        self.pattern = pattern
        self.cause = cause
