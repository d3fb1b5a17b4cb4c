import json
from datetime import datetime, timezone

import requests

from models import Post


def api_item(post_id, text="so happy today", author_id="u1", created_at="2022-03-01T12:00:00.000Z", lang="en"):
    return {
        "id": post_id,
        "text": text,
        "author_id": author_id,
        "created_at": created_at,
        "lang": lang,
    }


def api_page(ids, next_token=None, users=None):
    body = {
        "data": [api_item(post_id) for post_id in ids],
        "includes": {"users": users or [{"id": "u1", "username": "sunny", "name": "Sunny"}]},
        "meta": {"result_count": len(ids)},
    }
    if next_token:
        body["meta"]["next_token"] = next_token
    return body


def make_response(status=200, body=None, headers=None, raw=None):
    response = requests.Response()
    response.status_code = status
    response._content = raw if raw is not None else json.dumps(body if body is not None else {}).encode("utf-8")
    response.encoding = "utf-8"
    response.headers.update(headers or {})
    return response


def make_post(post_id, text="what a lovely day"):
    return Post(
        id=post_id,
        text=text,
        created_at=datetime(2022, 3, 1, 12, 0, tzinfo=timezone.utc),
        author_id="u1",
        language="en",
        username="sunny",
        url=f"https://twitter.com/sunny/status/{post_id}",
    )
