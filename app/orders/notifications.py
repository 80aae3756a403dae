"""Order event notifications

Events are fire-and-forget: a notifier failure is logged and never undoes or
fails the order operation that produced it.
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from functools import lru_cache
from typing import Optional
from uuid import UUID

import structlog

from app.config import get_settings
from app.models.order import Order, OrderStatus

logger = structlog.get_logger()


@dataclass(frozen=True)
class OrderEvent:
    """Order created or moved to a new status"""
    order_id: UUID
    order_number: str
    status: OrderStatus
    customer_id: UUID
    store_id: UUID
    estimated_delivery_time: Optional[datetime] = None
    timestamp: datetime = field(default_factory=datetime.utcnow)

    @classmethod
    def from_order(cls, order: Order) -> "OrderEvent":
        return cls(
            order_id=order.id,
            order_number=order.order_number,
            status=OrderStatus(order.status),
            customer_id=order.customer_id,
            store_id=order.store_id,
            estimated_delivery_time=order.estimated_delivery_time,
        )

    def to_dict(self) -> dict:
        return {
            "order_id": str(self.order_id),
            "order_number": self.order_number,
            "status": self.status.value,
            "customer_id": str(self.customer_id),
            "store_id": str(self.store_id),
            "estimated_delivery_time": (
                self.estimated_delivery_time.isoformat() if self.estimated_delivery_time else None
            ),
            "timestamp": self.timestamp.isoformat(),
        }


class BaseOrderNotifier(ABC):
    """Delivers order events to the real-time layer"""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        pass

    @abstractmethod
    async def publish(self, event: OrderEvent) -> None:
        pass

    async def emit(self, event: OrderEvent) -> bool:
        """Publish `event`, logging instead of raising on failure"""
        try:
            await self.publish(event)
        except Exception as e:
            logger.warning(
                "Order notification failed",
                provider=self.provider_name,
                order_id=str(event.order_id),
                status=event.status.value,
                error=str(e),
            )
            return False
        return True


class LoggingNotifier(BaseOrderNotifier):
    """Writes events to the log only"""

    @property
    def provider_name(self) -> str:
        return "log"

    async def publish(self, event: OrderEvent) -> None:
        payload = event.to_dict()
        # structlog's TimeStamper owns the "timestamp" key
        payload["occurred_at"] = payload.pop("timestamp")
        logger.info("Order event", **payload)


class CeleryNotifier(BaseOrderNotifier):
    """Queues events for the broadcast worker"""

    @property
    def provider_name(self) -> str:
        return "celery"

    async def publish(self, event: OrderEvent) -> None:
        from app.jobs.tasks import broadcast_order_update

        # .delay talks to the broker synchronously
        await asyncio.to_thread(broadcast_order_update.delay, event.to_dict())


@lru_cache()
def get_notifier() -> BaseOrderNotifier:
    """Get the configured notifier"""
    backend = get_settings().order_notifier
    if backend == "celery":
        return CeleryNotifier()
    if backend != "log":
        logger.warning("Unknown order notifier, falling back to log", backend=backend)
    return LoggingNotifier()
