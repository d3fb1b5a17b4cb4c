#!/usr/bin/env python3
"""
Happy Tweet Errors

Exception hierarchy shared by the query builder, search client and writer.
Everything the CLI reports to the user derives from HappyTweetError.
"""

from typing import Optional


class HappyTweetError(Exception):
    """Base class for all happy-tweet failures."""


class InvalidQuery(HappyTweetError):
    """Raised when a search term cannot be turned into a valid query."""


class ConfigError(HappyTweetError):
    """Raised when the runtime configuration is incomplete or out of range."""


class SearchError(HappyTweetError):
    """Base class for failures talking to the search endpoint."""


class AuthError(SearchError):
    """Raised on 401/403 responses. Never retried."""

    def __init__(self, status_code: int, detail: str = ""):
        self.status_code = status_code
        message = f"Authentication failed (HTTP {status_code})"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class QueryError(SearchError):
    """Raised on 4xx responses other than auth and rate limiting."""

    def __init__(self, status_code: int, detail: str = ""):
        self.status_code = status_code
        message = f"Search request rejected (HTTP {status_code})"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class RateLimitExceeded(SearchError):
    """Raised when rate limiting persists past the retry budget."""

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(f"Still rate limited after {attempts} attempts")


class NetworkError(SearchError):
    """Raised when transport failures persist past the retry budget."""


class PageLimitReached(SearchError):
    """Raised when the page cap is hit and partial results are not wanted."""

    def __init__(self, pages: int, fetched: int):
        self.pages = pages
        self.fetched = fetched
        super().__init__(
            f"Stopped after {pages} pages ({fetched} posts) with more results pending"
        )


class ParseError(HappyTweetError):
    """Raised when a response body or an existing output file has the wrong shape."""

    def __init__(self, message: str, source: Optional[str] = None):
        self.source = source
        if source:
            message = f"{source}: {message}"
        super().__init__(message)


class WriteError(HappyTweetError):
    """Raised when the output document cannot be written."""
