"""Output sink interface and fan-out."""

import logging
from abc import ABC, abstractmethod
from typing import List, Sequence

from .exceptions import SinkDeliveryError

logger = logging.getLogger(__name__)


class OutputSink(ABC):
    """Abstract base class for summary consumers."""

    @property
    def name(self) -> str:
        return type(self).__name__

    @abstractmethod
    def deliver(self, count: int, text: str) -> None:
        """
        Deliver one summary.

        Args:
            count: Unread count, or 0 for the resume notification.
            text: Formatted table, or the resume message.

        Raises:
            Exception: Any failure; the dispatcher isolates it.
        """
        pass


def dispatch(count: int, text: str, sinks: Sequence[OutputSink]) -> List[SinkDeliveryError]:
    """
    Deliver ``(count, text)`` to every sink in registration order.

    A failing sink is logged and skipped; later sinks still receive the
    summary.

    Returns:
        The delivery errors, in sink order.
    """
    errors = []
    for sink in list(sinks):
        try:
            sink.deliver(count, text)
        except Exception as e:
            error = SinkDeliveryError(sink.name, e)
            logger.error(f"Delivery to {sink.name} failed: {e}", exc_info=True)
            errors.append(error)
    return errors
