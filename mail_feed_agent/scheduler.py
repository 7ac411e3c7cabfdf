"""Rate-limited polling loop and the fetch-decode-dispatch cycle."""

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Callable, List, Optional

from .dispatcher import OutputSink, dispatch
from .exceptions import FetchError, MalformedDocument
from .feed_decoder import decode
from .formatter import format_entries
from .models import PollState, StatusSnapshot, WatchRule
from .watcher import apply_watches

logger = logging.getLogger(__name__)

RESUME_MESSAGE = "Mail checking resumed."


def should_poll(now: float, state: PollState, min_interval_seconds: float) -> bool:
    """
    Decide whether a fetch is due, recording the poll time when it is.

    Logic:
    - First call ever (no timestamp): due; the timestamp becomes ``now``.
    - Clock went backwards: not due; the timestamp is reset to ``now``.
    - Otherwise due iff at least ``min_interval_seconds`` have passed, in
      which case the timestamp becomes ``now``.

    Args:
        now: Current clock reading, in seconds.
        state: Poll state; its ``last_poll_timestamp`` is updated in place.
        min_interval_seconds: Minimum gap between polls.

    Returns:
        True if a poll should happen now.
    """
    last = state.last_poll_timestamp
    if last is None:
        state.last_poll_timestamp = now
        return True

    if now < last:
        logger.warning(
            f"Clock went backwards ({now} < {last}); resynchronising and skipping this tick"
        )
        state.last_poll_timestamp = now
        return False

    if now - last >= min_interval_seconds:
        state.last_poll_timestamp = now
        return True
    return False


class MailFeedAgent:
    """
    Owns the poll state and runs poll cycles on a recurring tick.

    ``tick()`` is meant to be called serially by one timer. A due tick hands
    the fetch to a single worker and returns at once; the rest of the cycle
    (decode, watch, format, dispatch) runs as a continuation on a later
    tick, or in ``wait()``. At most one fetch is in flight.

    ``watch_rules`` and ``sinks`` are plain lists the host may change at any
    time; each cycle reads them as they are.
    """

    def __init__(
        self,
        fetch: Callable[[str], str],
        feed_url: str,
        min_interval_seconds: float,
        rules: Optional[List[WatchRule]] = None,
        sinks: Optional[List[OutputSink]] = None,
        state: Optional[PollState] = None,
        clock: Callable[[], float] = time.monotonic,
        executor: Optional[ThreadPoolExecutor] = None,
    ):
        self.fetch = fetch
        self.feed_url = feed_url
        self.min_interval_seconds = min_interval_seconds
        self.watch_rules = rules if rules is not None else []
        self.sinks = sinks if sinks is not None else []
        self.state = state or PollState()
        self.clock = clock
        self._executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix="feed-fetch")
        self._pending: Optional[Future] = None
        self._lock = threading.RLock()
        self._stop = threading.Event()
        self._toggle_requested = threading.Event()

    def add_watch(self, pattern: str, callback: Optional[Callable[[], None]] = None) -> WatchRule:
        rule = WatchRule(pattern=pattern, callback=callback)
        self.watch_rules.append(rule)
        return rule

    def add_sink(self, sink: OutputSink) -> None:
        self.sinks.append(sink)

    @property
    def fetch_in_flight(self) -> bool:
        return self._pending is not None

    def tick(self, now: Optional[float] = None) -> bool:
        """
        One timer tick.

        Returns:
            True if a fetch was started.
        """
        if self._toggle_requested.is_set():
            self._toggle_requested.clear()
            self.toggle_suspend()

        self._collect()

        with self._lock:
            if self._pending is not None:
                logger.debug("Previous fetch still in flight; skipping tick")
                return False

            if now is None:
                now = self.clock()
            due = should_poll(now, self.state, self.min_interval_seconds)
            if not due or self.state.suspended:
                return False

            logger.debug(f"Fetching {self.feed_url}")
            self._pending = self._executor.submit(self.fetch, self.feed_url)
            return True

    def wait(self, timeout: Optional[float] = None) -> bool:
        """
        Block until the in-flight fetch finishes and run its continuation.

        Returns:
            True if a cycle completed successfully, False if there was nothing
            to wait for, the fetch did not finish in time, or the cycle failed.
        """
        pending = self._pending
        if pending is None:
            return False
        try:
            pending.exception(timeout=timeout)
        except FutureTimeoutError:
            logger.warning(f"Fetch did not finish within {timeout}s")
            return False
        return self._collect()

    def _collect(self) -> bool:
        """Run the continuation of a finished fetch, if there is one."""
        with self._lock:
            pending = self._pending
            if pending is None or not pending.done():
                return False
            self._pending = None

            try:
                document = pending.result()
            except FetchError as e:
                logger.warning(f"Fetch failed, will retry on the next due tick: {e}")
                return False
            except Exception as e:
                logger.error(f"Unexpected fetch failure: {e}", exc_info=True)
                return False

            if self.state.suspended:
                logger.info("Suspended while fetching; discarding the result")
                return False
        return self.process_document(document)

    def process_document(self, document: str) -> bool:
        """
        Decode, watch, format and dispatch one fetched document.

        Poll state is only updated once decoding has succeeded. Watch
        callbacks and sinks run without the agent lock held, so they may call
        ``get_status()`` or ``toggle_suspend()``.

        Returns:
            True if the cycle completed.
        """
        try:
            feed = decode(document)
        except MalformedDocument as e:
            logger.error(f"Malformed feed document, keeping previous state: {e}")
            return False

        watch = apply_watches(feed.entries, list(self.watch_rules))
        text = format_entries(feed.entries)

        with self._lock:
            self.state.last_unread_count = feed.unread_count
            self.state.last_formatted_output = text
            self.state.help_text = watch.help_text
            self.state.highlight_active = watch.any_matched
            sinks = list(self.sinks)

        logger.info(
            f"{feed.unread_count} unread message(s)"
            + (" (watched sender present)" if watch.any_matched else "")
        )
        dispatch(feed.unread_count, text, sinks)
        return True

    def toggle_suspend(self) -> bool:
        """
        Flip the suspended flag.

        Resuming sends ``(0, RESUME_MESSAGE)`` to every sink right away,
        without waiting for the interval.

        Returns:
            The new suspended state.
        """
        with self._lock:
            self.state.suspended = not self.state.suspended
            suspended = self.state.suspended
            sinks = list(self.sinks)

        if suspended:
            logger.info("Mail checking suspended")
        else:
            logger.info("Mail checking resumed")
            dispatch(0, RESUME_MESSAGE, sinks)
        return suspended

    def request_toggle(self) -> None:
        """Ask for a suspend toggle on the next tick (safe from signal handlers)."""
        self._toggle_requested.set()

    def get_status(self) -> StatusSnapshot:
        with self._lock:
            return StatusSnapshot(
                unread_count=self.state.last_unread_count,
                help_text=self.state.help_text,
                highlight_active=self.state.highlight_active,
            )

    def run_forever(self, tick_seconds: float) -> None:
        """Tick every ``tick_seconds`` until ``stop()`` is called."""
        logger.info(
            f"Polling {self.feed_url} at most every {self.min_interval_seconds}s "
            f"(tick {tick_seconds}s)"
        )
        self._stop.clear()
        while not self._stop.is_set():
            try:
                self.tick()
            except Exception as e:
                logger.error(f"Error during tick: {e}", exc_info=True)
            self._stop.wait(tick_seconds)

    def stop(self) -> None:
        self._stop.set()

    def close(self) -> None:
        self.stop()
        self._executor.shutdown(wait=False)
