"""
Hybrid in-memory + Redis rate limiting utilities
Counts live in process memory and are synced to Redis periodically
"""

import logging
import os
import time
from threading import Lock
from typing import Optional

import redis
from fastapi import HTTPException, Request, status

from .config import RATE_LIMIT_ENABLED

logger = logging.getLogger(__name__)

redis_client: Optional[redis.Redis] = None

# Format: {key: {'count': int, 'reset_time': int, 'last_redis_sync': int}}
memory_cache: dict[str, dict] = {}
cache_lock = Lock()

MEMORY_CACHE_SYNC_INTERVAL = 10  # Sync to Redis every 10 seconds
MEMORY_CACHE_CLEANUP_INTERVAL = 60  # Clean up expired entries every 60 seconds
last_cleanup_time = 0


def get_redis_client() -> redis.Redis:
    """
    Get or create Redis client.
    REDIS_URL takes precedence over the individual host settings.
    """
    global redis_client

    if redis_client is None:
        redis_url = os.getenv("REDIS_URL")
        try:
            if redis_url:
                client = redis.from_url(
                    redis_url,
                    decode_responses=True,
                    socket_connect_timeout=5,
                    socket_timeout=10,
                    retry_on_timeout=True,
                    health_check_interval=30,
                )
                target = redis_url.split("@")[-1]
            else:
                redis_host = os.getenv("REDIS_HOST", "localhost")
                redis_port = int(os.getenv("REDIS_PORT", "6379"))
                client = redis.Redis(
                    host=redis_host,
                    port=redis_port,
                    password=os.getenv("REDIS_PASSWORD"),
                    db=int(os.getenv("REDIS_DB", "0")),
                    ssl=os.getenv("REDIS_SSL", "false").lower() == "true",
                    decode_responses=True,
                    socket_connect_timeout=5,
                    socket_timeout=10,
                    retry_on_timeout=True,
                    health_check_interval=30,
                )
                target = f"{redis_host}:{redis_port}"
            client.ping()
            redis_client = client
            logger.info(f"✅ Redis connected successfully at {target}")
        except Exception as e:
            logger.error(f"❌ Failed to connect to Redis: {str(e)}")
            raise

    return redis_client


def cleanup_expired_cache():
    """Remove expired entries from memory cache"""
    global last_cleanup_time
    current_time = int(time.time())

    if current_time - last_cleanup_time < MEMORY_CACHE_CLEANUP_INTERVAL:
        return

    with cache_lock:
        expired_keys = [
            k for k, v in memory_cache.items() if current_time >= v.get("reset_time", 0)
        ]
        for k in expired_keys:
            del memory_cache[k]

        if expired_keys:
            logger.debug(f"🧹 Cleaned up {len(expired_keys)} expired rate limit entries")

    last_cleanup_time = current_time


def check_rate_limit(
    key: str, limit: int, window_seconds: int, client: redis.Redis
) -> tuple[bool, int, int]:
    """Check if rate limit is exceeded using the hybrid in-memory + Redis approach

    Returns:
        Tuple of (is_allowed, current_count, ttl_seconds)
    """
    try:
        current_time = int(time.time())
        cleanup_expired_cache()

        with cache_lock:
            if key not in memory_cache:
                # Initialize from Redis if another worker already counted this window
                entry = {
                    "count": 0,
                    "reset_time": current_time + window_seconds,
                    "last_redis_sync": current_time,
                }
                try:
                    redis_count = client.get(key)
                    redis_ttl = client.ttl(key)
                    if redis_count and redis_ttl > 0:
                        entry["count"] = int(redis_count)
                        entry["reset_time"] = current_time + redis_ttl
                except Exception as e:
                    logger.warning(f"⚠️ Failed to load from Redis, using memory only: {e}")
                memory_cache[key] = entry

            cache_entry = memory_cache[key]

            if current_time >= cache_entry["reset_time"]:
                cache_entry["count"] = 0
                cache_entry["reset_time"] = current_time + window_seconds
                cache_entry["last_redis_sync"] = 0

            is_allowed = cache_entry["count"] < limit
            if is_allowed:
                cache_entry["count"] += 1

            if current_time - cache_entry.get("last_redis_sync", 0) >= MEMORY_CACHE_SYNC_INTERVAL:
                try:
                    client.set(key, cache_entry["count"], ex=window_seconds)
                    cache_entry["last_redis_sync"] = current_time
                except Exception as e:
                    logger.warning(f"⚠️ Failed to sync to Redis: {e}")

            ttl = cache_entry["reset_time"] - current_time
            return is_allowed, cache_entry["count"], max(0, ttl)

    except Exception as e:
        logger.error(f"❌ Rate limit check failed: {str(e)}")
        logger.warning("🔒 Denying request due to rate limiting error (fail-closed mode)")
        return False, limit, 0


def get_client_ip(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


async def rate_limit_dependency(
    request: Request,
    limit: int,
    window_seconds: int,
    key_prefix: str = "rate_limit",
    use_ip: bool = True,
):
    """
    FastAPI dependency for rate limiting

    Args:
        request: FastAPI request object
        limit: Maximum requests allowed
        window_seconds: Time window in seconds
        key_prefix: Prefix for Redis key
        use_ip: If True, use client IP in key (per-IP limit), otherwise global
    """
    if not RATE_LIMIT_ENABLED:
        return

    try:
        client = get_redis_client()
        key = f"{key_prefix}:{get_client_ip(request)}" if use_ip else f"{key_prefix}:global"

        is_allowed, current_count, ttl = check_rate_limit(key, limit, window_seconds, client)

        if not is_allowed:
            logger.warning(
                f"🚫 Rate limit EXCEEDED for {key} - {current_count}/{limit} requests used"
            )
            raise HTTPException(
                status_code=429,
                detail={
                    "message": f"Rate limit exceeded. Maximum {limit} requests per {window_seconds} seconds.",
                    "retry_after": ttl,
                    "limit": limit,
                    "window_seconds": window_seconds,
                },
                headers={"Retry-After": str(ttl)},
            )

        request.state.rate_limit_remaining = limit - current_count
        request.state.rate_limit_limit = limit
        request.state.rate_limit_reset = int(time.time()) + ttl

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"❌ Rate limiting error: {str(e)}")
        logger.warning("🔒 Denying request due to rate limiting error (fail-closed mode)")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Rate limiting service temporarily unavailable",
        ) from e


def create_rate_limiter(
    limit: int, window_seconds: int, key_prefix: str = "rate_limit", use_ip: bool = True
):
    """
    Create a rate limiter dependency with specific parameters

    Example usage:
        rate_limit_contact = create_rate_limiter(limit=5, window_seconds=3600, key_prefix="contact")

        @router.post("/contact")
        async def send_contact_message(data: ContactRequest, _: None = Depends(rate_limit_contact)):
            ...
    """

    async def rate_limiter(request: Request):
        return await rate_limit_dependency(request, limit, window_seconds, key_prefix, use_ip)

    return rate_limiter
