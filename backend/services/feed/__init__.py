"""Feed pagination and like aggregation services."""

from .comments import COMMENT_TREE_TARGET_TYPES, build_comment_view, build_reply_view, get_comment_tree
from .cursor import FeedCursor, decode_cursor, encode_cursor
from .likes import DEFAULT_PREVIEW_LIMIT, LikeSummary, aggregate_likes
from .posts import FeedPage, build_post_view, get_feed_page, resolve_cursor
from .targets import (
    require_comment_exists,
    require_post_exists,
    require_target_exists,
    target_exists,
)
from .toggle import toggle_like

__all__ = [
    "COMMENT_TREE_TARGET_TYPES",
    "DEFAULT_PREVIEW_LIMIT",
    "FeedCursor",
    "FeedPage",
    "LikeSummary",
    "aggregate_likes",
    "build_comment_view",
    "build_post_view",
    "build_reply_view",
    "decode_cursor",
    "encode_cursor",
    "get_comment_tree",
    "get_feed_page",
    "require_comment_exists",
    "require_post_exists",
    "require_target_exists",
    "resolve_cursor",
    "target_exists",
    "toggle_like",
]
