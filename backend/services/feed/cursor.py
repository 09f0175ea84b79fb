"""Opaque feed cursors.

A cursor encodes the ``(created_at, id)`` key of the last post on a page as
URL-safe base64 JSON. Feed order is ``created_at desc, id desc`` so the key is
compared lexicographically, which keeps pages stable when several posts share
a timestamp and when newer posts are inserted between requests.
"""

from __future__ import annotations

import base64
import json
from dataclasses import dataclass
from datetime import datetime

from .common import ensure_aware

MAX_CURSOR_LENGTH = 256
MAX_CURSOR_ID_LENGTH = 64


@dataclass(frozen=True)
class FeedCursor:
    created_at: datetime
    post_id: str


def encode_cursor(created_at: datetime, post_id: str) -> str:
    payload = json.dumps(
        {"c": ensure_aware(created_at).isoformat(), "i": post_id},
        separators=(",", ":"),
    )
    token = base64.urlsafe_b64encode(payload.encode("utf-8")).decode("ascii")
    return token.rstrip("=")


def decode_cursor(cursor: str | None) -> FeedCursor | None:
    """Return the decoded cursor, or None for anything that is not a valid token."""
    if not cursor:
        return None
    raw = cursor.strip()
    if not raw or len(raw) > MAX_CURSOR_LENGTH:
        return None

    padded = raw + "=" * (-len(raw) % 4)
    try:
        decoded = base64.urlsafe_b64decode(padded.encode("ascii"))
        payload = json.loads(decoded.decode("utf-8"))
    except ValueError:
        # binascii.Error, UnicodeError and JSONDecodeError are all ValueErrors.
        return None

    if not isinstance(payload, dict):
        return None
    created_raw = payload.get("c")
    post_id = payload.get("i")
    if not isinstance(created_raw, str) or not isinstance(post_id, str):
        return None
    if not post_id or len(post_id) > MAX_CURSOR_ID_LENGTH:
        return None
    try:
        created_at = datetime.fromisoformat(created_raw)
    except ValueError:
        return None
    return FeedCursor(created_at=ensure_aware(created_at), post_id=post_id)
