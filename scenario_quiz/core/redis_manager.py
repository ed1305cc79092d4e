from redis.asyncio import Redis
from .config import Settings, settings as default_settings

_redis: Redis | None = None


async def get_redis(settings: Settings | None = None) -> Redis:
    """
    Returns the process-wide Redis client. TLS works through the rediss://
    scheme; the timeouts suit managed providers (Upstash, Redis Cloud).
    The URL comes from ``settings`` on first use.
    """
    global _redis
    settings = settings or default_settings
    if _redis is None:
        client = Redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            health_check_interval=30,
            socket_timeout=3,
            socket_connect_timeout=3,
            retry_on_timeout=True,
            max_connections=50,
        )
        # fail fast at startup if Redis is unreachable
        await client.ping()
        _redis = client
    return _redis


async def close_redis():
    global _redis
    if _redis is not None:
        await _redis.aclose()
        _redis = None
