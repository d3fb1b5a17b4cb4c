#!/usr/bin/env python3
"""
Sentiment filtering for fetched tweets.

The query already biases results toward happy content; this pass scores
each post with VADER and drops anything that is not clearly positive.
"""

import logging
from typing import Iterable, Iterator

from vaderSentiment.vaderSentiment import SentimentIntensityAnalyzer

from models import Post

logger = logging.getLogger(__name__)

POSITIVE_THRESHOLD = 0.05


class HappyFilter:
    """Keeps posts whose VADER compound score is positive."""

    def __init__(self, threshold: float = POSITIVE_THRESHOLD, analyzer=None):
        self.threshold = threshold
        self.analyzer = analyzer or SentimentIntensityAnalyzer()
        self.kept = 0
        self.dropped = 0

    def score(self, post: Post) -> float:
        return self.analyzer.polarity_scores(post.text)["compound"]

    def is_happy(self, post: Post) -> bool:
        return self.score(post) > self.threshold

    def filter(self, posts: Iterable[Post]) -> Iterator[Post]:
        for post in posts:
            if self.is_happy(post):
                self.kept += 1
                yield post
            else:
                self.dropped += 1
                logger.debug(f"Dropping post {post.id}: not positive")
