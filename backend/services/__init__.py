"""Business logic services."""

from .images import (
    IMAGE_EXTENSIONS,
    ImageUpload,
    UnsupportedImageTypeError,
    UploadTooLargeError,
    read_image_upload,
    read_upload_file,
)
from .rate_limiter import (
    InMemoryRateLimiter,
    RateLimiter,
    RateLimitResult,
    RedisRateLimiter,
    get_rate_limiter,
    run_rate_limit_sweeper,
    set_rate_limiter,
)
from .storage import (
    delete_object,
    ensure_bucket,
    get_minio_client,
    public_object_url,
    put_object,
)

__all__ = [
    "IMAGE_EXTENSIONS",
    "ImageUpload",
    "UnsupportedImageTypeError",
    "UploadTooLargeError",
    "read_image_upload",
    "read_upload_file",
    "InMemoryRateLimiter",
    "RateLimiter",
    "RateLimitResult",
    "RedisRateLimiter",
    "get_rate_limiter",
    "run_rate_limit_sweeper",
    "set_rate_limiter",
    "get_minio_client",
    "ensure_bucket",
    "put_object",
    "delete_object",
    "public_object_url",
]
