"""Celery application for order event fan-out"""

from celery import Celery
from kombu import Queue

from app.config import settings

ORDER_EVENTS_QUEUE = "order-events"

celery_app = Celery(
    "vibe_orders",
    broker=settings.redis_url,
    include=["app.jobs.tasks"],
)

# Broadcasts are short and idempotent for subscribers; results are never read
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,
    task_ignore_result=True,
    task_time_limit=30,
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    worker_prefetch_multiplier=1,
    task_default_queue=ORDER_EVENTS_QUEUE,
    task_queues=(Queue(ORDER_EVENTS_QUEUE),),
    task_routes={"broadcast_order_update": {"queue": ORDER_EVENTS_QUEUE}},
    broker_connection_retry_on_startup=True,
)
