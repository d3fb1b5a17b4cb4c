#!/usr/bin/env python3
"""
Happy Tweet Models

Data types passed between the search client and the result writer.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from errors import ParseError

TWEET_FIELDS = "created_at,lang,author_id"
USER_FIELDS = "username,profile_image_url"
MIN_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100
TWEET_URL = "https://twitter.com/{username}/status/{id}"


def parse_timestamp(value: Any) -> datetime:
    """Parse a provider timestamp such as '2022-03-01T12:00:00.000Z'."""
    if not isinstance(value, str) or not value:
        raise ParseError(f"invalid created_at: {value!r}")
    text = value[:-1] + "+00:00" if value.endswith("Z") else value
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        raise ParseError(f"invalid created_at: {value!r}")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def format_timestamp(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _optional_str(item: Dict[str, Any], key: str) -> Optional[str]:
    value = item.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ParseError(f"field '{key}' must be a string, got {type(value).__name__}")
    return value


def _required_str(item: Dict[str, Any], key: str) -> str:
    value = _optional_str(item, key)
    if value is None:
        raise ParseError(f"missing required field '{key}'")
    return value


@dataclass
class SearchRequest:
    """Parameters for one call to the recent-search endpoint."""
    query: str
    max_results: int = MAX_PAGE_SIZE
    pagination_token: Optional[str] = None

    def to_params(self) -> Dict[str, Any]:
        params = {
            'query': self.query,
            'max_results': max(MIN_PAGE_SIZE, min(self.max_results, MAX_PAGE_SIZE)),
            'tweet.fields': TWEET_FIELDS,
            'expansions': 'author_id',
            'user.fields': USER_FIELDS,
        }
        if self.pagination_token:
            params['next_token'] = self.pagination_token
        return params


@dataclass(frozen=True)
class Post:
    """A single tweet as persisted in the output document."""
    id: str
    text: str
    created_at: datetime
    author_id: Optional[str] = None
    language: Optional[str] = None
    username: Optional[str] = None
    url: Optional[str] = None

    @classmethod
    def from_api(cls, item: Dict[str, Any], users: Optional[Dict[str, Dict[str, Any]]] = None) -> "Post":
        """Build a Post from a `data` entry, resolving the author from `includes.users`."""
        if not isinstance(item, dict):
            raise ParseError(f"post entry must be an object, got {type(item).__name__}")

        post_id = _required_str(item, 'id')
        author_id = _optional_str(item, 'author_id')
        author = (users or {}).get(author_id) if author_id else None
        username = author.get('username') if author else None
        url = TWEET_URL.format(username=username, id=post_id) if username else None

        return cls(
            id=post_id,
            text=_required_str(item, 'text'),
            created_at=parse_timestamp(item.get('created_at')),
            author_id=author_id,
            language=_optional_str(item, 'lang'),
            username=username,
            url=url,
        )

    @classmethod
    def from_dict(cls, item: Dict[str, Any]) -> "Post":
        """Build a Post from the persisted layout."""
        if not isinstance(item, dict):
            raise ParseError(f"post entry must be an object, got {type(item).__name__}")
        return cls(
            id=_required_str(item, 'id'),
            text=_required_str(item, 'text'),
            created_at=parse_timestamp(item.get('created_at')),
            author_id=_optional_str(item, 'author_id'),
            language=_optional_str(item, 'language'),
            username=_optional_str(item, 'username'),
            url=_optional_str(item, 'url'),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'text': self.text,
            'author_id': self.author_id,
            'created_at': format_timestamp(self.created_at),
            'language': self.language,
            'username': self.username,
            'url': self.url,
        }


@dataclass
class SearchResponse:
    """One page of search results."""
    posts: List[Post]
    next_token: Optional[str] = None
    result_count: int = 0

    @classmethod
    def from_json(cls, payload: Any) -> "SearchResponse":
        """Parse a decoded recent-search body.

        The provider omits `data` entirely when a page is empty, so a
        missing `data` key is an empty page rather than an error.
        """
        if not isinstance(payload, dict):
            raise ParseError("response body must be a JSON object")

        data = payload.get('data', [])
        if not isinstance(data, list):
            raise ParseError("'data' must be an array")

        includes = payload.get('includes', {})
        if not isinstance(includes, dict):
            raise ParseError("'includes' must be an object")
        users = {
            user['id']: user
            for user in includes.get('users', [])
            if isinstance(user, dict) and 'id' in user
        }

        meta = payload.get('meta', {})
        if not isinstance(meta, dict):
            raise ParseError("'meta' must be an object")
        next_token = _optional_str(meta, 'next_token') or None

        posts = [Post.from_api(item, users) for item in data]
        result_count = meta.get('result_count', len(posts))
        if not isinstance(result_count, int):
            raise ParseError("'meta.result_count' must be an integer")

        return cls(posts=posts, next_token=next_token, result_count=result_count)


@dataclass
class OutputDocument:
    """In-memory copy of the output file: an ordered, id-unique post sequence."""
    posts: List[Post] = field(default_factory=list)

    @classmethod
    def from_json(cls, payload: Any, source: Optional[str] = None) -> "OutputDocument":
        if not isinstance(payload, list):
            raise ParseError("output document must be a JSON array of posts", source)
        try:
            posts = [Post.from_dict(item) for item in payload]
        except ParseError as e:
            raise ParseError(str(e), source)
        document = cls()
        document.merge(posts)
        return document

    def merge(self, posts: Iterable[Post]) -> int:
        """Append posts whose id is not already present. Returns the number added."""
        seen = {post.id for post in self.posts}
        added = 0
        for post in posts:
            if post.id in seen:
                continue
            seen.add(post.id)
            self.posts.append(post)
            added += 1
        return added

    def replace(self, posts: Iterable[Post]) -> None:
        self.posts = []
        self.merge(posts)

    def to_json(self) -> List[Dict[str, Any]]:
        return [post.to_dict() for post in self.posts]
