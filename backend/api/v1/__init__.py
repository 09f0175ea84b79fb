"""Version 1 API routers."""

from fastapi import APIRouter

from . import auth, comments, posts, replies

api_router = APIRouter()
api_router.include_router(auth.router)
api_router.include_router(posts.router)
api_router.include_router(comments.router)
api_router.include_router(replies.router)

__all__ = ["api_router"]
