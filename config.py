#!/usr/bin/env python3
"""
Happy Tweet Configuration

The immutable settings object built once at start-up and handed to the
search client. Nothing below the CLI reads the environment.
"""

from dataclasses import dataclass
from typing import Mapping, Optional

from errors import ConfigError
from models import MAX_PAGE_SIZE, MIN_PAGE_SIZE

BEARER_ENV_TOKEN_NAME = "HAPPY_TWEET_BEARER_TOKEN"
RECENT_SEARCH_URL = "https://api.twitter.com/2/tweets/search/recent"
PAGE_CAP_POLICIES = ("keep", "fail")


def normalize_token(token: Optional[str]) -> Optional[str]:
    """Strip whitespace and an optional 'Bearer ' prefix."""
    if token is None:
        return None
    token = token.strip()
    if token.startswith("Bearer "):
        token = token[len("Bearer "):].strip()
    return token or None


@dataclass(frozen=True)
class SearchConfig:
    """Configuration for Twitter API interactions."""
    token: str
    max_results: int = 100
    page_size: int = MAX_PAGE_SIZE
    max_pages: int = 10
    on_page_cap: str = "keep"
    max_rate_limit_retries: int = 3
    max_network_retries: int = 3
    base_delay: float = 1.0
    rate_limit_default_wait: float = 60.0
    rate_limit_max_wait: float = 900.0
    timeout: float = 30.0
    endpoint: str = RECENT_SEARCH_URL

    def __post_init__(self):
        if not self.token:
            raise ConfigError("A bearer token is required")
        if self.max_results < 1:
            raise ConfigError("max_results must be at least 1")
        if not MIN_PAGE_SIZE <= self.page_size <= MAX_PAGE_SIZE:
            raise ConfigError(f"page_size must be between {MIN_PAGE_SIZE} and {MAX_PAGE_SIZE}")
        if self.max_pages < 1:
            raise ConfigError("max_pages must be at least 1")
        if self.on_page_cap not in PAGE_CAP_POLICIES:
            raise ConfigError(f"on_page_cap must be one of {', '.join(PAGE_CAP_POLICIES)}")
        if self.max_rate_limit_retries < 0 or self.max_network_retries < 1:
            raise ConfigError("retry limits must be non-negative (network retries at least 1)")
        if self.timeout <= 0:
            raise ConfigError("timeout must be positive")

    def __repr__(self) -> str:
        return (f"SearchConfig(token='***', max_results={self.max_results}, "
                f"page_size={self.page_size}, max_pages={self.max_pages}, "
                f"on_page_cap={self.on_page_cap!r})")


def load_config(args, environ: Mapping[str, str]) -> SearchConfig:
    """Build a SearchConfig from parsed CLI arguments and an environment mapping.

    The --token flag wins over the environment variable.
    """
    token = normalize_token(getattr(args, 'token', None)) or normalize_token(environ.get(BEARER_ENV_TOKEN_NAME))
    if not token:
        raise ConfigError(
            f"You need to provide a bearer token with --token or set an env variable "
            f"named `{BEARER_ENV_TOKEN_NAME}`"
        )

    return SearchConfig(
        token=token,
        max_results=args.max_results,
        page_size=args.page_size,
        max_pages=args.max_pages,
        on_page_cap=args.on_page_cap,
    )
