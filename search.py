#!/usr/bin/env python3
"""
Twitter Search Client

Fetches recent tweets page by page from the v2 recent-search endpoint with
rate limit handling and retry logic. Results are produced lazily: each page
is requested only when the previous one has been consumed.
"""

import logging
import time
from typing import Any, Dict, Iterator, Optional

import requests

from config import SearchConfig
from errors import (AuthError, NetworkError, PageLimitReached, ParseError,
                    QueryError, RateLimitExceeded)
from models import Post, SearchRequest, SearchResponse
from utils import RateLimiter

logger = logging.getLogger(__name__)


def _error_detail(response: requests.Response) -> str:
    """Pull a readable message out of an error body."""
    try:
        body = response.json()
    except ValueError:
        return response.text[:200].strip()

    if isinstance(body, dict):
        if body.get('detail'):
            return str(body['detail'])
        errors = body.get('errors')
        if isinstance(errors, list) and errors and isinstance(errors[0], dict):
            return str(errors[0].get('message') or errors[0].get('detail') or '')
        if body.get('title'):
            return str(body['title'])
    return ''


class TwitterSearchClient:
    """Handles recent-search API interactions with rate limiting and retry logic."""

    def __init__(self, config: SearchConfig, session: Optional[requests.Session] = None):
        self.config = config
        self.session = session or requests.Session()
        self.session.headers.update({
            'Authorization': f'Bearer {config.token}',
            'User-Agent': 'happy-tweet',
        })
        self.rate_limiter = RateLimiter(
            default_wait=config.rate_limit_default_wait,
            max_wait=config.rate_limit_max_wait,
            base_delay=config.base_delay,
        )
        self.last_response: Optional[requests.Response] = None
        self.pages_fetched = 0
        self.truncated = False

    def _make_request(self, params: Dict[str, Any]) -> requests.Response:
        """GET the search endpoint, retrying rate limits and transient failures."""
        rate_limit_retries = 0
        network_attempts = 0
        max_network = self.config.max_network_retries
        max_rate_limit = self.config.max_rate_limit_retries

        while True:
            try:
                logger.debug(f"🌐 Requesting {self.config.endpoint} "
                             f"(network attempt {network_attempts + 1}/{max_network})")
                response = self.session.get(self.config.endpoint, params=params, timeout=self.config.timeout)
            except requests.RequestException as e:
                network_attempts += 1
                logger.warning(f"🔌 Request failed (attempt {network_attempts}/{max_network}): {e}")
                if network_attempts >= max_network:
                    logger.error("💥 All retry attempts exhausted!")
                    raise NetworkError(f"Network error after {network_attempts} attempts: {e}") from e
                self.rate_limiter.exponential_backoff(network_attempts - 1)
                continue

            status = response.status_code

            if status == 429:
                if rate_limit_retries >= max_rate_limit:
                    raise RateLimitExceeded(rate_limit_retries + 1)
                self.rate_limiter.wait_for_reset(response, rate_limit_retries, max_rate_limit)
                rate_limit_retries += 1
                continue

            if status in (401, 403):
                raise AuthError(status, _error_detail(response))

            if 400 <= status < 500:
                raise QueryError(status, _error_detail(response))

            if status >= 500:
                network_attempts += 1
                logger.warning(f"🔌 Server error {status} (attempt {network_attempts}/{max_network})")
                if network_attempts >= max_network:
                    raise NetworkError(f"Server error {status} after {network_attempts} attempts")
                self.rate_limiter.exponential_backoff(network_attempts - 1)
                continue

            return response

    def fetch_page(self, query: str, next_token: Optional[str] = None,
                   page_size: Optional[int] = None) -> SearchResponse:
        """Fetch and parse a single page of results."""
        request = SearchRequest(
            query=query,
            max_results=page_size or self.config.page_size,
            pagination_token=next_token,
        )
        response = self._make_request(request.to_params())
        self.last_response = response

        try:
            payload = response.json()
        except ValueError as e:
            raise ParseError(f"response body is not valid JSON: {e}", source="search") from e

        # A 200 carrying only `errors` means the query itself was refused
        if isinstance(payload, dict) and 'errors' in payload and 'data' not in payload and 'meta' not in payload:
            raise QueryError(response.status_code, _error_detail(response))

        try:
            return SearchResponse.from_json(payload)
        except ParseError as e:
            raise ParseError(str(e), source="search") from e

    def fetch(self, query: str) -> Iterator[Post]:
        """Yield matching posts in provider order until results run out or a cap is hit."""
        fetched = 0
        next_token = None
        start_time = time.time()
        self.pages_fetched = 0
        self.truncated = False

        logger.info(f"Starting search for query: '{query}'")
        logger.info(f"Will fetch up to {self.config.max_results} results, "
                    f"{self.config.page_size} per page, at most {self.config.max_pages} pages")

        while True:
            if self.pages_fetched >= self.config.max_pages:
                if self.config.on_page_cap == 'fail':
                    raise PageLimitReached(self.pages_fetched, fetched)
                logger.warning(f"⚠️  Page limit of {self.config.max_pages} reached with more results "
                               f"pending - keeping {fetched} posts")
                self.truncated = True
                break

            page_number = self.pages_fetched + 1
            page_size = min(self.config.page_size, self.config.max_results - fetched)
            logger.info(f"📄 Fetching page {page_number}...")
            page_start_time = time.time()
            page = self.fetch_page(query, next_token, page_size)
            self.pages_fetched += 1
            logger.info(f"✅ Page {page_number} received {len(page.posts)} posts "
                        f"in {time.time() - page_start_time:.2f}s")

            for post in page.posts:
                if fetched >= self.config.max_results:
                    break
                yield post
                fetched += 1

            if fetched >= self.config.max_results:
                logger.info(f"📝 Reached max_results ({self.config.max_results})")
                break

            if not page.next_token:
                logger.info("🏁 No more pages")
                break

            next_token = page.next_token
            self.rate_limiter.throttle_if_exhausted(self.last_response)

        elapsed_time = time.time() - start_time
        logger.info(f"🎉 Completed search! Fetched {fetched:,} posts from "
                    f"{self.pages_fetched} pages in {elapsed_time:.1f}s")
