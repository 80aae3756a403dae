"""Background job tasks"""

import json
from typing import List

import redis
import structlog

from app.jobs.celery_app import celery_app
from app.config import settings

logger = structlog.get_logger()


def order_event_channels(event: dict) -> List[str]:
    """Redis channels an order event is published on"""
    return [
        f"user:{event['customer_id']}",
        f"order:{event['order_id']}",
        f"store:{event['store_id']}",
    ]


@celery_app.task(
    name="broadcast_order_update",
    bind=True,
    max_retries=3,
    default_retry_delay=2,
    autoretry_for=(redis.RedisError,),
    retry_backoff=True,
)
def broadcast_order_update(self, event: dict):
    """Publish an order event to the customer, the order and the store"""
    logger.info(
        "Broadcasting order update",
        order_id=event.get("order_id"),
        status=event.get("status"),
    )

    payload = json.dumps({"type": "order-status-update", "data": event})
    client = redis.Redis.from_url(settings.redis_url)
    try:
        receivers = 0
        for channel in order_event_channels(event):
            receivers += client.publish(channel, payload)
    finally:
        client.close()

    logger.info(
        "Broadcasted order update",
        order_id=event.get("order_id"),
        receivers=receivers,
    )
    return receivers
