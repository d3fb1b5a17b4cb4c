#!/usr/bin/env python3
"""
Query Builder

Turns a raw search term into a recent-search query that is biased toward
happy tweets. Plain keywords are ANDed with the sentiment filter; terms that
already use Twitter's search operators are passed through untouched inside
parentheses.
"""

import re
import unicodedata
from typing import Optional, Sequence
from urllib.parse import quote

from errors import InvalidQuery

# Recent search limit for standard (non-academic) access
MAX_QUERY_LENGTH = 512

HAPPY_MARKERS = (
    'happy', 'joy', 'love', 'awesome',
    '#happy', '#joy', '#grateful',
    '😊', '😀', '❤️',
)

OPERATOR_NAMES = (
    'from', 'to', 'url', 'retweets_of', 'context', 'entity',
    'conversation_id', 'place', 'place_country', 'point_radius',
    'bounding_box', 'is', 'has', 'lang', 'list', 'sample',
    'bio', 'bio_name', 'bio_location',
)

OPERATOR_PATTERNS = (
    re.compile(r'(^|[\s(-])(' + '|'.join(OPERATOR_NAMES) + r'):[\w"#@$]'),  # from:, lang:, is: ...
    re.compile(r'(^|\s)[@#$]\w'),     # mentions, hashtags, cashtags
    re.compile(r'(^|\s)-\S'),         # negation
    re.compile(r'\bOR\b'),
    re.compile(r'\([^()]*\)'),        # grouping
    re.compile(r'"[^"]*"'),           # exact phrases
)

LANG_PATTERN = re.compile(r'^[a-z]{2}$')


def has_operators(term: str) -> bool:
    """Check whether a term already uses search operators."""
    return any(pattern.search(term) for pattern in OPERATOR_PATTERNS)


class QueryBuilder:
    """Builds sentiment-filtered search queries."""

    def __init__(self, markers: Sequence[str] = HAPPY_MARKERS, max_length: int = MAX_QUERY_LENGTH,
                 lang: Optional[str] = None, exclude_retweets: bool = False):
        if not markers:
            raise ValueError("at least one sentiment marker is required")
        if lang is not None and not LANG_PATTERN.match(lang):
            raise InvalidQuery(f"Language must be a two-letter code, got {lang!r}")
        self.markers = tuple(markers)
        self.max_length = max_length
        self.lang = lang
        self.exclude_retweets = exclude_retweets

    @property
    def sentiment_clause(self) -> str:
        return "(" + " OR ".join(self.markers) + ")"

    def build(self, term: str) -> str:
        """Build the final query for a raw term.

        Plain keywords have whitespace runs collapsed. Terms using search
        operators are only trimmed, so exact phrases keep their spacing.
        Raises InvalidQuery for empty terms, control characters, or a
        result longer than the provider accepts.
        """
        if term is None:
            raise InvalidQuery("Search term cannot be empty")

        for char in term:
            if unicodedata.category(char) == 'Cc':
                raise InvalidQuery(f"Search term contains a control character: {char!r}")

        normalized = " ".join(term.split())
        if not normalized:
            raise InvalidQuery("Search term cannot be empty")

        if has_operators(normalized):
            # Operator terms go through as typed, only trimmed
            parts = [f"({term.strip()})", self.sentiment_clause]
        else:
            parts = [normalized, self.sentiment_clause]

        if self.lang:
            parts.append(f"lang:{self.lang}")
        if self.exclude_retweets:
            parts.append("-is:retweet")

        query = " ".join(parts)
        if len(query) > self.max_length:
            raise InvalidQuery(
                f"Query is {len(query)} characters long, the limit is {self.max_length}"
            )
        return query

    @staticmethod
    def encode(query: str) -> str:
        """URL-encode a query for display or for building a URL by hand."""
        return quote(query, safe='')
