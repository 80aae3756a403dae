"""Role-scoped order reads"""

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from app.models.order import Order, OrderStatus
from app.models.user import UserRole
from app.orders.catalog import CatalogReader
from app.orders.exceptions import Forbidden, ValidationError
from app.orders.policies import Actor, require_order_access, require_store_access
from app.orders.repository import OrderFilters, OrderRepository, StoreOrderStats
from app.schemas.order import OrderSummary

MAX_PAGE_SIZE = 100


@dataclass
class OrderListFilters:
    status: Optional[OrderStatus] = None
    store_id: Optional[UUID] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    page: int = 1
    limit: int = 20


@dataclass
class OrderPage:
    orders: List[OrderSummary] = field(default_factory=list)
    total: int = 0
    page: int = 1
    limit: int = 20

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    @property
    def has_next_page(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_previous_page(self) -> bool:
        return self.page > 1


def to_summary(order: Order) -> OrderSummary:
    """Project an order (with store and items loaded) for list views"""
    store = order.store
    return OrderSummary(
        id=order.id,
        order_number=order.order_number,
        status=order.status,
        total=order.total,
        store_name=store.name if store else "Unknown Store",
        store_category=store.category if store else None,
        item_count=order.item_count,
        estimated_delivery_time=order.estimated_delivery_time,
        created_at=order.created_at,
    )


class OrderQueryService:
    """Listing and detail reads, scoped to what the actor may see"""

    def __init__(self, repository: OrderRepository, catalog: CatalogReader):
        self.repository = repository
        self.catalog = catalog

    async def list_orders(self, actor: Actor, filters: OrderListFilters = None) -> OrderPage:
        filters = filters or OrderListFilters()
        if filters.page < 1:
            raise ValidationError("Page must be 1 or greater")
        if not 1 <= filters.limit <= MAX_PAGE_SIZE:
            raise ValidationError(f"Limit must be between 1 and {MAX_PAGE_SIZE}")

        query_filters = OrderFilters(
            store_id=filters.store_id,
            status=filters.status,
            date_from=filters.date_from,
            date_to=filters.date_to,
        )

        if actor.role == UserRole.CUSTOMER:
            query_filters.customer_id = actor.id
        elif actor.role == UserRole.STORE_OWNER:
            if filters.store_id is None:
                raise ValidationError("Store ID is required for store owners")
            if not await self.catalog.is_store_owner(filters.store_id, actor.id):
                raise Forbidden("Unauthorized access to store", store_id=str(filters.store_id))
        elif actor.role != UserRole.ADMIN:
            raise Forbidden(role=str(actor.role))

        orders, total = await self.repository.find_many(query_filters, filters.page, filters.limit)
        return OrderPage(
            orders=[to_summary(order) for order in orders],
            total=total,
            page=filters.page,
            limit=filters.limit,
        )

    async def get_order_details(self, order_id: UUID, actor: Actor) -> Order:
        order = await self.repository.find_by_id_with_details(order_id)
        owns_store = actor.role == UserRole.STORE_OWNER and await self.catalog.is_store_owner(
            order.store_id, actor.id
        )
        require_order_access(actor, order.customer_id, owns_store)
        return order

    async def get_store_stats(self, store_id: UUID, actor: Actor) -> StoreOrderStats:
        owns_store = actor.role == UserRole.STORE_OWNER and await self.catalog.is_store_owner(
            store_id, actor.id
        )
        require_store_access(actor, owns_store)
        return await self.repository.get_store_order_stats(store_id)
