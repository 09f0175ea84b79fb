"""Database seed script for local development.

Usage:
    python scripts/seed.py

Creates a handful of users, a text-only feed with comments and replies, and a
spread of likes so pagination and like previews have something to show. The
script is idempotent: users are matched by email and content is only added to
an empty feed.
"""

from __future__ import annotations

import asyncio
import sys
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Any, cast

from sqlalchemy import func, select
from sqlalchemy.sql import ColumnElement

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.append(str(ROOT_DIR))

from core.security import hash_password  # noqa: E402
from db.session import AsyncSessionMaker  # noqa: E402
from models import Comment, Like, LikeTargetType, Post, Reply, User  # noqa: E402
from models.common import utcnow  # noqa: E402

DEFAULT_PASSWORD = "password123"
POSTS_PER_USER = 8


def _eq(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column == value)


@dataclass(frozen=True)
class SeedUser:
    email: str
    topic: str


SEED_USERS: Sequence[SeedUser] = [
    SeedUser(email="alex@example.com", topic="trail running"),
    SeedUser(email="sam@example.com", topic="sourdough"),
    SeedUser(email="jordan@example.com", topic="film photography"),
    SeedUser(email="riley@example.com", topic="houseplants"),
    SeedUser(email="casey@example.com", topic="chess openings"),
]


async def get_or_create_user(session, payload: SeedUser) -> User:
    result = await session.execute(select(User).where(_eq(User.email, payload.email)))
    user = result.scalar_one_or_none()
    if user:
        return user

    user = User(email=payload.email, password_hash=hash_password(DEFAULT_PASSWORD))
    session.add(user)
    await session.flush()
    return user


async def feed_is_empty(session) -> bool:
    result = await session.execute(select(func.count()).select_from(Post))
    return int(result.scalar_one()) == 0


def build_posts(users: Sequence[tuple[User, SeedUser]]) -> list[Post]:
    now = utcnow()
    posts: list[Post] = []
    for index in range(POSTS_PER_USER):
        for offset, (user, payload) in enumerate(users):
            created_at = now - timedelta(hours=index * len(users) + offset)
            posts.append(
                Post(
                    author_id=user.id,
                    content=f"Notes on {payload.topic}, part {index + 1}.",
                    created_at=created_at,
                    updated_at=created_at,
                )
            )
    return posts


def build_threads(posts: Sequence[Post], users: Sequence[User]) -> tuple[list[Comment], list[Reply]]:
    comments: list[Comment] = []
    replies: list[Reply] = []
    for post_index, post in enumerate(posts[::3]):
        commenter = users[post_index % len(users)]
        comment = Comment(
            post_id=post.id,
            author_id=commenter.id,
            content="Great post, thanks for sharing!",
            created_at=post.created_at + timedelta(minutes=5),
        )
        comments.append(comment)
        responder = users[(post_index + 1) % len(users)]
        replies.append(
            Reply(
                comment_id=comment.id,
                author_id=responder.id,
                content="Agreed!",
                created_at=comment.created_at + timedelta(minutes=1),
            )
        )
    return comments, replies


def build_likes(
    posts: Sequence[Post],
    comments: Sequence[Comment],
    users: Sequence[User],
) -> list[Like]:
    likes: list[Like] = []
    for post_index, post in enumerate(posts):
        for user in users[: post_index % (len(users) + 1)]:
            likes.append(
                Like(
                    user_id=user.id,
                    target_type=LikeTargetType.POST.value,
                    target_id=post.id,
                )
            )
    for comment in comments[::2]:
        likes.append(
            Like(
                user_id=users[0].id,
                target_type=LikeTargetType.COMMENT.value,
                target_id=comment.id,
            )
        )
    return likes


async def seed() -> None:
    async with AsyncSessionMaker() as session:
        seeded_users: list[tuple[User, SeedUser]] = []
        for payload in SEED_USERS:
            seeded_users.append((await get_or_create_user(session, payload), payload))
        users = [user for user, _payload in seeded_users]

        if not await feed_is_empty(session):
            await session.commit()
            print("Feed already has posts; only users were ensured.")
            return

        posts = build_posts(seeded_users)
        session.add_all(posts)
        await session.flush()

        comments, replies = build_threads(posts, users)
        session.add_all(comments)
        await session.flush()
        session.add_all(replies)

        likes = build_likes(posts, comments, users)
        session.add_all(likes)
        await session.commit()

    print("✅ Seed data inserted.")
    print("   Users:", ", ".join(payload.email for payload in SEED_USERS))
    print("   Default password:", DEFAULT_PASSWORD)
    print("   Posts:", len(posts))
    print("   Comments:", len(comments), "Replies:", len(replies))
    print("   Likes:", len(likes))


if __name__ == "__main__":
    asyncio.run(seed())
