"""Main entry point for the mail feed agent."""

import argparse
import logging
import os
import signal
import sys
from typing import List

from .config import AppConfig, OutputConfig, load_config
from .dispatcher import OutputSink
from .exceptions import ConfigurationError
from .fetcher import FeedFetcher
from .models import WatchRule
from .scheduler import MailFeedAgent
from .sinks import DisplaySink, EmailSink, FileSink, SmsSink
from .watcher import CommandCallback

# Configure logging
log_level = os.getenv("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)]
)
logging.getLogger("urllib3").setLevel(logging.WARNING)
logging.getLogger("twilio").setLevel(logging.WARNING)
logger = logging.getLogger(__name__)


def build_sinks(output: OutputConfig) -> List[OutputSink]:
    """Create the configured sinks, in delivery order."""
    sinks = []
    if output.display_enabled:
        sinks.append(DisplaySink())
    if output.output_root:
        sinks.append(FileSink(output.output_root))
    if output.notification_method == "sms":
        sinks.append(SmsSink(output.twilio))
    elif output.notification_method == "email":
        sinks.append(EmailSink(output.smtp))
    return sinks


def build_agent(config: AppConfig) -> MailFeedAgent:
    """Wire the fetcher, watch rules and sinks from configuration."""
    rules = [
        WatchRule(
            pattern=watch.pattern,
            callback=CommandCallback(watch.command) if watch.command else None,
        )
        for watch in config.watches
    ]
    return MailFeedAgent(
        fetch=FeedFetcher(config.feed),
        feed_url=config.feed.url,
        min_interval_seconds=config.scheduler.poll_interval_seconds,
        rules=rules,
        sinks=build_sinks(config.output),
    )


def _install_toggle_signal(agent: MailFeedAgent) -> None:
    """SIGUSR1 toggles suspend, where the platform has it."""
    if not hasattr(signal, "SIGUSR1"):
        return

    def _handler(signum, frame):
        agent.request_toggle()

    signal.signal(signal.SIGUSR1, _handler)


def run_once(agent: MailFeedAgent, timeout: float) -> bool:
    """Fetch and process the feed a single time."""
    if not agent.tick():
        logger.info("Nothing to do (suspended)")
        return True
    return agent.wait(timeout=timeout)


def main(argv=None) -> None:
    """Main entry point with command-line argument parsing."""
    parser = argparse.ArgumentParser(
        description="Poll an unread-mail feed, flag watched senders and publish a summary"
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single fetch cycle and exit (exit status 1 if it failed)"
    )
    parser.add_argument(
        "--interval",
        type=int,
        default=None,
        help="Minimum seconds between fetches (overrides POLL_INTERVAL_SECONDS)"
    )
    parser.add_argument(
        "--output-root",
        type=str,
        default=None,
        help="Write <root>-nbmails.txt and <root>-headers.txt (overrides OUTPUT_ROOT)"
    )
    parser.add_argument(
        "--no-display",
        action="store_true",
        help="Do not print the summary to stdout"
    )
    parser.add_argument(
        "--suspended",
        action="store_true",
        help="Start suspended; send SIGUSR1 to resume"
    )

    args = parser.parse_args(argv)

    try:
        config = load_config()
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        sys.exit(2)

    if args.interval is not None:
        config.scheduler.poll_interval_seconds = args.interval
    if args.output_root:
        config.output.output_root = args.output_root
    if args.no_display:
        config.output.display_enabled = False

    agent = build_agent(config)
    agent.state.suspended = args.suspended
    logger.info(
        f"Watching {len(agent.watch_rules)} sender pattern(s), "
        f"delivering to {len(agent.sinks)} sink(s)"
    )

    try:
        if args.once:
            ok = run_once(agent, timeout=config.feed.timeout_seconds * 4)
            if not ok:
                sys.exit(1)
            return

        _install_toggle_signal(agent)
        agent.run_forever(config.scheduler.tick_seconds)
    except KeyboardInterrupt:
        logger.info("Interrupted, stopping.")
    finally:
        agent.close()


if __name__ == "__main__":
    main()
