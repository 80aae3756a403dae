"""Order service: the operations exposed to callers

Wires the catalog reader, pricing, repository, state machine and query service
together around one session factory.
"""

import asyncio
from datetime import datetime, timedelta
from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
import structlog

from app.config import settings
from app.models.order import Order, OrderStatus
from app.orders.catalog import CatalogMenuItem, CatalogReader, CatalogStore
from app.orders.exceptions import (
    MenuItemNotFound,
    MenuItemUnavailable,
    OperationTimedOut,
    PersistenceError,
    StoreNotFound,
    ValidationError,
)
from app.orders.notifications import BaseOrderNotifier, OrderEvent, get_notifier
from app.orders.policies import Actor
from app.orders.pricing import (
    CatalogPrice,
    LineItem,
    PricingRules,
    compute_totals,
    line_total,
    to_money,
)
from app.orders.queries import OrderListFilters, OrderPage, OrderQueryService
from app.orders.repository import NewOrder, NewOrderItem, OrderRepository, StoreOrderStats
from app.orders.state_machine import OrderStateMachine
from app.schemas.order import OrderCreate

logger = structlog.get_logger()


class OrderService:
    """Create, read and advance orders"""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        notifier: Optional[BaseOrderNotifier] = None,
        rules: Optional[PricingRules] = None,
    ):
        self.catalog = CatalogReader(session_factory)
        self.repository = OrderRepository(session_factory)
        self.state_machine = OrderStateMachine(self.repository, self.catalog)
        self.queries = OrderQueryService(self.repository, self.catalog)
        self.notifier = notifier or get_notifier()
        self.rules = rules or PricingRules.from_settings()

    async def create_order(self, customer_id: UUID, request: OrderCreate) -> Order:
        """Validate, price and persist a new order"""
        logger.info(
            "Creating order",
            customer_id=str(customer_id),
            store_id=str(request.store_id),
            item_count=len(request.items),
        )
        self._validate_request(request)

        store = await self.catalog.get_store(request.store_id)
        if store is None or not store.is_active:
            raise StoreNotFound(store_id=str(request.store_id))

        menu_items = await self._get_orderable_items(store, request)

        breakdown = compute_totals(
            [LineItem(line.menu_item_id, line.quantity) for line in request.items],
            {
                item_id: CatalogPrice(price=item.price, is_available=item.is_available)
                for item_id, item in menu_items.items()
            },
            store.delivery_fee,
            store.minimum_order,
            self.rules,
        )

        now = datetime.utcnow()
        order_data = NewOrder(
            customer_id=customer_id,
            store_id=store.id,
            subtotal=breakdown.subtotal,
            delivery_fee=breakdown.delivery_fee,
            tax=breakdown.tax,
            total=breakdown.total,
            payment_method=request.payment_method,
            delivery_address=request.delivery_address,
            customer_phone=request.customer_phone,
            notes=request.notes or None,
            estimated_delivery_time=now + timedelta(minutes=store.estimated_delivery_time),
        )
        items_data = [
            NewOrderItem(
                menu_item_id=line.menu_item_id,
                quantity=line.quantity,
                unit_price=to_money(menu_items[line.menu_item_id].price),
                total_price=line_total(menu_items[line.menu_item_id].price, line.quantity),
                special_instructions=line.special_instructions or None,
            )
            for line in request.items
        ]

        order = await self._persist(order_data, items_data)

        logger.info(
            "Order created",
            order_id=str(order.id),
            order_number=order.order_number,
            total=str(order.total),
        )
        await self.notifier.emit(OrderEvent.from_order(order))
        return order

    async def get_order_details(self, order_id: UUID, actor: Actor) -> Order:
        return await self.queries.get_order_details(order_id, actor)

    async def list_orders(self, actor: Actor, filters: OrderListFilters = None) -> OrderPage:
        return await self.queries.list_orders(actor, filters)

    async def get_store_stats(self, store_id: UUID, actor: Actor) -> StoreOrderStats:
        return await self.queries.get_store_stats(store_id, actor)

    async def update_order_status(
        self,
        order_id: UUID,
        actor: Actor,
        new_status: OrderStatus,
        notes: Optional[str] = None,
    ) -> Order:
        """Apply a status transition on behalf of `actor`"""
        order = await self.repository.find_by_id_with_details(order_id)
        updated = await self.state_machine.transition(
            order,
            new_status,
            actor,
            notes=notes,
            timeout=settings.order_operation_timeout_seconds,
        )
        await self.notifier.emit(OrderEvent.from_order(updated))
        return updated

    async def cancel_order(self, order_id: UUID, actor: Actor, reason: Optional[str] = None) -> Order:
        return await self.update_order_status(order_id, actor, OrderStatus.CANCELLED, notes=reason)

    def _validate_request(self, request: OrderCreate) -> None:
        if not request.items:
            raise ValidationError("Order must contain at least one item")

        seen = set()
        for line in request.items:
            if line.menu_item_id in seen:
                raise ValidationError(
                    "Each menu item may appear only once per order",
                    menu_item_id=str(line.menu_item_id),
                )
            seen.add(line.menu_item_id)

    async def _get_orderable_items(
        self,
        store: CatalogStore,
        request: OrderCreate,
    ) -> Dict[UUID, CatalogMenuItem]:
        menu_items = await self.catalog.get_menu_items(line.menu_item_id for line in request.items)

        for line in request.items:
            item = menu_items.get(line.menu_item_id)
            if item is None or item.store_id != store.id:
                raise MenuItemNotFound(menu_item_id=str(line.menu_item_id))
            if not item.is_available:
                raise MenuItemUnavailable(menu_item_id=str(line.menu_item_id))

        return menu_items

    async def _persist(self, order_data: NewOrder, items_data: List[NewOrderItem]) -> Order:
        """Create the order, retrying transient database failures with backoff"""
        attempts = max(1, settings.persistence_max_attempts)
        delay = settings.persistence_retry_backoff_seconds

        for attempt in range(1, attempts + 1):
            try:
                return await self.repository.create_with_items(
                    order_data,
                    items_data,
                    timeout=settings.order_operation_timeout_seconds,
                )
            except OperationTimedOut:
                raise
            except PersistenceError as e:
                if not e.transient or attempt == attempts:
                    raise
                logger.warning(
                    "Retrying order creation",
                    store_id=str(order_data.store_id),
                    attempt=attempt,
                    delay=delay,
                )
                await asyncio.sleep(delay)
                delay *= 2
