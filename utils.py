#!/usr/bin/env python3
"""
Happy Tweet Utilities

Logging setup and rate limiting/backoff helpers used by the search client.
"""

import logging
import sys
import time
from typing import Optional

import requests

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'


def setup_logging(verbose: bool = False):
    """Send logs to stderr so stdout stays free for the JSON output."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        stream=sys.stderr,
    )
    # urllib3 is chatty at DEBUG
    logging.getLogger('urllib3').setLevel(logging.INFO if verbose else logging.WARNING)


class RateLimiter:
    """Rate limit and backoff handling for Twitter API calls."""

    def __init__(self, default_wait: float = 60.0, max_wait: float = 900.0, base_delay: float = 1.0):
        self.default_wait = default_wait
        self.max_wait = max_wait
        self.base_delay = base_delay

    def reset_wait(self, response: requests.Response) -> float:
        """Seconds to wait until the rate limit window resets.

        Twitter sends the reset as epoch seconds in x-rate-limit-reset;
        Retry-After is honored if that is missing.
        """
        wait_time = self._get_reset_time(response)
        if wait_time is None:
            wait_time = self._get_retry_after(response)
        if wait_time is None:
            wait_time = self.default_wait
        return min(wait_time, self.max_wait)

    def wait_for_reset(self, response: requests.Response, attempt: int, max_attempts: int) -> float:
        wait_time = self.reset_wait(response)
        logger.warning(f"⏸️  Rate limited! Waiting {wait_time:.1f}s for reset (attempt {attempt + 1}/{max_attempts})")
        time.sleep(wait_time)
        return wait_time

    def throttle_if_exhausted(self, response: requests.Response) -> float:
        """Sleep until reset when the current window has no requests left."""
        remaining = response.headers.get('x-rate-limit-remaining')
        try:
            if remaining is None or int(remaining) > 0:
                return 0.0
        except ValueError:
            return 0.0

        wait_time = self.reset_wait(response)
        logger.info(f"⚠️  Rate limit window exhausted - waiting {wait_time:.1f}s before the next page")
        time.sleep(wait_time)
        return wait_time

    def exponential_backoff(self, attempt: int) -> float:
        """Sleep base_delay * 2**attempt, capped at max_wait."""
        delay = min(self.base_delay * (2 ** attempt), self.max_wait)
        logger.info(f"⏳ Backoff attempt {attempt + 1}: retrying in {delay:.1f}s")
        time.sleep(delay)
        return delay

    def _get_reset_time(self, response: requests.Response) -> Optional[float]:
        reset_header = response.headers.get('x-rate-limit-reset')
        if not reset_header:
            return None
        try:
            reset_time = float(reset_header)
        except ValueError:
            return None
        return max(0.0, reset_time - time.time()) + 1  # 1 second buffer

    def _get_retry_after(self, response: requests.Response) -> Optional[float]:
        retry_after = response.headers.get('Retry-After')
        if not retry_after:
            return None
        try:
            return max(0.0, float(retry_after))
        except ValueError:
            return None
