"""HTTP client for the authenticated unread-mail feed."""

import logging
import time

import requests

from .config import FeedConfig
from .exceptions import FetchError

logger = logging.getLogger(__name__)

# Retry configuration
MAX_RETRIES = 3
RETRY_DELAY = 2  # seconds


class FeedFetcher:
    """
    Callable fetch primitive: ``fetcher(url) -> document text``.

    Uses HTTP basic authentication over a shared session. Connection errors
    and timeouts are retried; authentication failures and other HTTP errors
    are not. Every failure surfaces as FetchError.
    """

    def __init__(self, config: FeedConfig, session: requests.Session = None):
        self.config = config
        self.session = session or requests.Session()
        self.session.auth = (config.username, config.password)

    def __call__(self, url: str) -> str:
        for attempt in range(MAX_RETRIES):
            try:
                response = self.session.get(url, timeout=self.config.timeout_seconds)
            except (requests.ConnectionError, requests.Timeout) as e:
                if attempt < MAX_RETRIES - 1:
                    logger.warning(f"Fetch attempt {attempt + 1} failed: {e}. Retrying in {RETRY_DELAY}s...")
                    time.sleep(RETRY_DELAY)
                    continue
                logger.error(f"Failed to fetch feed after {MAX_RETRIES} attempts: {e}")
                raise FetchError(f"Could not reach {url}: {e}") from e
            except requests.RequestException as e:
                raise FetchError(f"Request to {url} failed: {e}") from e

            if response.status_code in (401, 403):
                logger.error(
                    f"Feed authentication failed for {self.config.username} (HTTP {response.status_code}). "
                    "For Gmail, use an App Password rather than the account password."
                )
                raise FetchError(f"Authentication failed for {url}: HTTP {response.status_code}")

            try:
                response.raise_for_status()
            except requests.HTTPError as e:
                raise FetchError(f"Feed request failed: {e}") from e

            return response.text

        raise FetchError(f"Could not fetch {url}")
