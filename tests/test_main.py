"""
Unit tests for CLI wiring.
"""

import os
from unittest.mock import Mock, patch

import pytest

from mail_feed_agent.config import (
    AppConfig,
    FeedConfig,
    OutputConfig,
    SchedulerConfig,
    SmtpConfig,
    WatchConfig,
)
from mail_feed_agent.exceptions import ConfigurationError
from mail_feed_agent.main import build_agent, build_sinks, main
from mail_feed_agent.sinks import DisplaySink, EmailSink, FileSink
from mail_feed_agent.watcher import CommandCallback
from tests.fixtures.feed_factory import create_test_feed


def _config(**output):
    return AppConfig(
        feed=FeedConfig(url="https://feed.example/atom", username="me", password="pw", timeout_seconds=1),
        scheduler=SchedulerConfig(poll_interval_seconds=60, tick_seconds=1),
        output=OutputConfig(**output),
        watches=[WatchConfig("Boss", "notify-send Boss"), WatchConfig("Alerts")],
    )


class TestBuildSinks:
    def test_display_then_file_then_notifier(self):
        smtp = SmtpConfig(host="h", port=587, username="u", password="p", to_email="t@x.com")

        sinks = build_sinks(OutputConfig(output_root="/tmp/mail", notification_method="email", smtp=smtp))

        assert [type(s) for s in sinks] == [DisplaySink, FileSink, EmailSink]

    def test_nothing_enabled(self):
        assert build_sinks(OutputConfig(display_enabled=False)) == []


class TestBuildAgent:
    def test_rules_from_config(self):
        agent = build_agent(_config())

        assert [r.pattern for r in agent.watch_rules] == ["Boss", "Alerts"]
        assert isinstance(agent.watch_rules[0].callback, CommandCallback)
        assert agent.watch_rules[1].callback is None
        assert agent.min_interval_seconds == 60
        agent.close()


class TestMain:
    """Tests for main()."""

    @patch("mail_feed_agent.main.FeedFetcher")
    @patch("mail_feed_agent.main.load_config")
    def test_once_writes_output_files(self, mock_load, mock_fetcher_cls, tmp_path):
        mock_load.return_value = _config(display_enabled=False)
        mock_fetcher_cls.return_value = Mock(return_value=create_test_feed([("Hi", "Ann", "a@x.com")]))
        root = tmp_path / "gmail"

        main(["--once", "--output-root", str(root)])

        assert (tmp_path / "gmail-nbmails.txt").read_text(encoding="utf-8") == "1\n"
        assert "Ann <a@x.com>" in (tmp_path / "gmail-headers.txt").read_text(encoding="utf-8")

    @patch("mail_feed_agent.main.FeedFetcher")
    @patch("mail_feed_agent.main.load_config")
    def test_once_exits_nonzero_on_malformed_feed(self, mock_load, mock_fetcher_cls):
        mock_load.return_value = _config(display_enabled=False)
        mock_fetcher_cls.return_value = Mock(return_value="<feed><entry><title>x</title></entry></feed>")

        with pytest.raises(SystemExit) as exc_info:
            main(["--once"])

        assert exc_info.value.code == 1

    @patch("mail_feed_agent.main.load_config")
    def test_configuration_error_exits_2(self, mock_load):
        mock_load.side_effect = ConfigurationError("Missing required environment variables: FEED_USERNAME")

        with pytest.raises(SystemExit) as exc_info:
            main([])

        assert exc_info.value.code == 2

    @patch("mail_feed_agent.main.FeedFetcher")
    @patch("mail_feed_agent.main.load_config")
    def test_once_while_suspended_does_not_fetch(self, mock_load, mock_fetcher_cls):
        mock_load.return_value = _config(display_enabled=False)
        fetch = Mock()
        mock_fetcher_cls.return_value = fetch

        main(["--once", "--suspended"])

        fetch.assert_not_called()

    @patch("mail_feed_agent.main.MailFeedAgent.run_forever", side_effect=KeyboardInterrupt)
    @patch("mail_feed_agent.main.FeedFetcher")
    @patch("mail_feed_agent.main.load_config")
    def test_loop_stops_on_interrupt(self, mock_load, mock_fetcher_cls, mock_run):
        mock_load.return_value = _config(display_enabled=False)

        main(["--interval", "30"])

        mock_run.assert_called_once_with(1)

    @patch("mail_feed_agent.main.FeedFetcher")
    def test_invalid_watch_pattern_exits_2(self, mock_fetcher_cls):
        env = {"FEED_USERNAME": "me", "FEED_PASSWORD": "pw", "WATCH_PATTERN_1": "(unclosed"}

        with patch.dict(os.environ, env, clear=True), patch("mail_feed_agent.config.load_dotenv"):
            with pytest.raises(SystemExit) as exc_info:
                main(["--once"])

        assert exc_info.value.code == 2
        mock_fetcher_cls.assert_not_called()
