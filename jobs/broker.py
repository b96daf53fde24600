"""
Dramatiq broker configuration.

Redis-based message broker for the daily batch actors.
"""

import dramatiq
from dramatiq.brokers.redis import RedisBroker
from dramatiq.middleware import CurrentMessage, Retries, ShutdownNotifications
from loguru import logger

from app.config.settings import settings

redis_broker = RedisBroker(
    host=settings.redis_host,
    port=settings.redis_port,
    password=settings.redis_password if settings.redis_password else None,
    db=settings.redis_db,
)

# ShutdownNotifications: lets workers stop between sweeps
# CurrentMessage: exposes the message id to actors for log context
# Retries: daily actors opt out with max_retries=0, the job-run guard
# decides whether a day is re-run
redis_broker.add_middleware(ShutdownNotifications())
redis_broker.add_middleware(CurrentMessage())
redis_broker.add_middleware(
    Retries(
        max_retries=3,
        min_backoff=1000,  # 1 second
        max_backoff=60000,  # 1 minute
    )
)

dramatiq.set_broker(redis_broker)

broker = redis_broker

logger.info(
    f"Dramatiq broker initialized: "
    f"redis://{settings.redis_host}:{settings.redis_port}/{settings.redis_db}"
)
