import logging
from redis import Redis
from redis.exceptions import RedisError
from rq import Queue

from .config import settings

logger = logging.getLogger(__name__)

# Redis connection (connects lazily on first command)
redis_conn = Redis(
    host=settings.REDIS_HOST,
    port=settings.REDIS_PORT,
    db=settings.REDIS_DB,
    decode_responses=False,
)

# Queue for decision notifications (emails to applicants)
notification_queue = Queue(settings.NOTIFICATION_QUEUE, connection=redis_conn)


def get_queue() -> Queue:
    """Get the notification queue."""
    return notification_queue


def test_redis_connection() -> bool:
    """Test Redis connection."""
    try:
        redis_conn.ping()
        logger.info("Redis connection successful")
        return True
    except RedisError as e:
        logger.error(f"Redis connection failed: {e}")
        return False
