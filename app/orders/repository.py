"""Order persistence

Every write is its own transaction: creating an order inserts the order, its
items, the day's sequence bump and the store counter together or not at all.
Database errors leave this module only as `PersistenceError`.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload
import structlog

from app.models.order import Order, OrderItem, OrderStatus, PaymentMethod
from app.models.store import Store
from app.orders.exceptions import OperationTimedOut, OrderNotFound, PersistenceError
from app.orders.numbering import next_order_number

logger = structlog.get_logger()

# serialization_failure, deadlock_detected, lock_not_available
TRANSIENT_SQLSTATES = {"40001", "40P01", "55P03"}

# Unique keys that a retry resolves by drawing a fresh sequence value
RETRYABLE_CONSTRAINTS = ("order_sequences", "order_number")

PENDING_STATUSES = (
    OrderStatus.NEW,
    OrderStatus.CONFIRMED,
    OrderStatus.PREPARING,
    OrderStatus.READY,
    OrderStatus.PICKED_UP,
)


@dataclass
class NewOrder:
    customer_id: UUID
    store_id: UUID
    subtotal: Decimal
    delivery_fee: Decimal
    tax: Decimal
    total: Decimal
    payment_method: PaymentMethod
    delivery_address: str
    customer_phone: str
    notes: Optional[str] = None
    estimated_delivery_time: Optional[datetime] = None


@dataclass
class NewOrderItem:
    menu_item_id: UUID
    quantity: int
    unit_price: Decimal
    total_price: Decimal
    special_instructions: Optional[str] = None


@dataclass
class OrderFilters:
    customer_id: Optional[UUID] = None
    store_id: Optional[UUID] = None
    status: Optional[OrderStatus] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None


@dataclass
class StoreOrderStats:
    total_orders: int = 0
    pending_orders: int = 0
    completed_orders: int = 0
    total_revenue: Decimal = field(default_factory=lambda: Decimal("0.00"))


def _sqlstate(exc: DBAPIError) -> Optional[str]:
    for candidate in (exc.orig, getattr(exc.orig, "__cause__", None)):
        code = getattr(candidate, "sqlstate", None) or getattr(candidate, "pgcode", None)
        if code:
            return code
    return None


def is_transient(exc: SQLAlchemyError) -> bool:
    """Whether retrying the whole transaction can succeed"""
    if not isinstance(exc, DBAPIError):
        return False
    if exc.connection_invalidated or isinstance(exc, OperationalError):
        return True
    if _sqlstate(exc) in TRANSIENT_SQLSTATES:
        return True
    if isinstance(exc, IntegrityError):
        return any(name in str(exc.orig) for name in RETRYABLE_CONSTRAINTS)
    return False


def to_persistence_error(exc: SQLAlchemyError, operation: str) -> PersistenceError:
    transient = is_transient(exc)
    logger.error(
        "Order persistence failed",
        operation=operation,
        transient=transient,
        error=str(exc),
    )
    return PersistenceError(transient=transient, operation=operation)


def _apply_filters(query, filters: OrderFilters):
    if filters.customer_id:
        query = query.where(Order.customer_id == filters.customer_id)
    if filters.store_id:
        query = query.where(Order.store_id == filters.store_id)
    if filters.status:
        query = query.where(Order.status == filters.status)
    if filters.date_from:
        query = query.where(Order.created_at >= filters.date_from)
    if filters.date_to:
        query = query.where(Order.created_at <= filters.date_to)
    return query


async def _bounded(work, timeout: Optional[float], operation: str):
    """Await `work` inside an open transaction, giving up after `timeout` seconds"""
    try:
        return await asyncio.wait_for(work, timeout=timeout)
    except asyncio.TimeoutError:
        logger.error("Order persistence timed out", operation=operation, timeout=timeout)
        raise OperationTimedOut(operation=operation, timeout=timeout)


async def _load_with_details(db: AsyncSession, order_id: UUID) -> Optional[Order]:
    result = await db.execute(
        select(Order)
        .where(Order.id == order_id)
        .options(
            selectinload(Order.customer),
            selectinload(Order.store),
            selectinload(Order.items).selectinload(OrderItem.menu_item),
        )
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


class OrderRepository:
    """Database access for orders and their items"""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def create_with_items(
        self,
        order_data: NewOrder,
        items_data: List[NewOrderItem],
        now: Optional[datetime] = None,
        timeout: Optional[float] = None,
    ) -> Order:
        """
        Insert an order with its items and bump the store's order counter atomically.

        The returned order is loaded with its details inside the same
        transaction, so once this returns the order is committed and nothing
        else can fail. `timeout` bounds the work before commit; when it
        expires the transaction rolls back and `OperationTimedOut` is raised.
        """
        now = now or datetime.utcnow()

        try:
            async with self.session_factory() as db:
                async with db.begin():
                    order = await _bounded(
                        self._insert_order(db, order_data, items_data, now),
                        timeout,
                        "create_with_items",
                    )
        except SQLAlchemyError as e:
            raise to_persistence_error(e, "create_with_items") from e

        logger.info(
            "Order persisted",
            order_id=str(order.id),
            order_number=order.order_number,
            item_count=len(items_data),
        )
        return order

    async def _insert_order(
        self,
        db: AsyncSession,
        order_data: NewOrder,
        items_data: List[NewOrderItem],
        now: datetime,
    ) -> Order:
        # Sequence first: it takes the write lock before anything else
        order_number = await next_order_number(db, now.date())

        order = Order(
            order_number=order_number,
            customer_id=order_data.customer_id,
            store_id=order_data.store_id,
            status=OrderStatus.NEW,
            subtotal=order_data.subtotal,
            delivery_fee=order_data.delivery_fee,
            tax=order_data.tax,
            total=order_data.total,
            payment_method=order_data.payment_method,
            delivery_address=order_data.delivery_address,
            customer_phone=order_data.customer_phone,
            notes=order_data.notes,
            estimated_delivery_time=order_data.estimated_delivery_time,
            created_at=now,
            updated_at=now,
        )
        db.add(order)
        await db.flush()

        for item in items_data:
            db.add(
                OrderItem(
                    order_id=order.id,
                    menu_item_id=item.menu_item_id,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                    total_price=item.total_price,
                    special_instructions=item.special_instructions,
                    created_at=now,
                )
            )
        await db.flush()

        await self._increment_store_order_count(db, order_data.store_id)
        return await _load_with_details(db, order.id)

    async def _increment_store_order_count(self, db: AsyncSession, store_id: UUID) -> None:
        await db.execute(
            update(Store)
            .where(Store.id == store_id)
            .values(total_orders=Store.total_orders + 1)
            .execution_options(synchronize_session=False)
        )

    async def find_by_id_with_details(self, order_id: UUID) -> Order:
        """Load an order with its customer, store and items"""
        try:
            async with self.session_factory() as db:
                order = await _load_with_details(db, order_id)
        except SQLAlchemyError as e:
            raise to_persistence_error(e, "find_by_id_with_details") from e

        if order is None:
            raise OrderNotFound(order_id=str(order_id))
        return order

    async def update_status(
        self,
        order_id: UUID,
        status: OrderStatus,
        notes: Optional[str] = None,
        expected_status: Optional[OrderStatus] = None,
        timeout: Optional[float] = None,
    ) -> Optional[Order]:
        """
        Set the order's status in a single write.

        Notes are replaced only when given. Moving to DELIVERED stamps the
        actual delivery time. With `expected_status` the write only applies
        while the order is still in that status; otherwise None is returned.
        The updated order is loaded before commit, under the same `timeout`
        as the write.
        """
        now = datetime.utcnow()
        values = {"status": status, "updated_at": now}
        if notes:
            values["notes"] = notes
        if status == OrderStatus.DELIVERED:
            values["actual_delivery_time"] = now

        query = update(Order).where(Order.id == order_id)
        if expected_status is not None:
            query = query.where(Order.status == expected_status)
        query = query.values(**values).execution_options(synchronize_session=False)

        try:
            async with self.session_factory() as db:
                async with db.begin():
                    updated = await _bounded(
                        self._write_status(db, query, order_id),
                        timeout,
                        "update_status",
                    )
        except SQLAlchemyError as e:
            raise to_persistence_error(e, "update_status") from e

        if updated is None and expected_status is None:
            raise OrderNotFound(order_id=str(order_id))
        return updated

    async def _write_status(self, db: AsyncSession, statement, order_id: UUID) -> Optional[Order]:
        result = await db.execute(statement)
        if not result.rowcount:
            return None
        return await _load_with_details(db, order_id)

    async def find_many(
        self,
        filters: OrderFilters,
        page: int = 1,
        limit: int = 20,
    ) -> Tuple[List[Order], int]:
        """Filtered page of orders, newest first, with store and items loaded"""
        query = _apply_filters(select(Order), filters)
        count_query = _apply_filters(select(func.count(Order.id)), filters)

        offset = (page - 1) * limit
        query = (
            query.options(selectinload(Order.store), selectinload(Order.items))
            .order_by(Order.created_at.desc(), Order.order_number.desc())
            .offset(offset)
            .limit(limit)
        )

        try:
            async with self.session_factory() as db:
                total_result = await db.execute(count_query)
                total = total_result.scalar() or 0

                result = await db.execute(query)
                orders = list(result.scalars().all())
        except SQLAlchemyError as e:
            raise to_persistence_error(e, "find_many") from e

        return orders, total

    async def find_by_customer_id(self, customer_id: UUID, page: int = 1, limit: int = 20):
        return await self.find_many(OrderFilters(customer_id=customer_id), page, limit)

    async def find_by_store_id(
        self,
        store_id: UUID,
        status: Optional[OrderStatus] = None,
        page: int = 1,
        limit: int = 20,
    ):
        return await self.find_many(OrderFilters(store_id=store_id, status=status), page, limit)

    async def belongs_to_customer(self, order_id: UUID, customer_id: UUID) -> bool:
        owner = await self._scalar(select(Order.customer_id).where(Order.id == order_id))
        return owner is not None and owner == customer_id

    async def belongs_to_store(self, order_id: UUID, store_id: UUID) -> bool:
        owner = await self._scalar(select(Order.store_id).where(Order.id == order_id))
        return owner is not None and owner == store_id

    async def get_store_order_stats(self, store_id: UUID) -> StoreOrderStats:
        """Order counts and delivered revenue for a store"""
        by_store = Order.store_id == store_id

        try:
            async with self.session_factory() as db:
                total = await db.scalar(select(func.count(Order.id)).where(by_store))
                pending = await db.scalar(
                    select(func.count(Order.id)).where(by_store, Order.status.in_(PENDING_STATUSES))
                )
                completed = await db.scalar(
                    select(func.count(Order.id)).where(by_store, Order.status == OrderStatus.DELIVERED)
                )
                revenue = await db.scalar(
                    select(func.sum(Order.total)).where(by_store, Order.status == OrderStatus.DELIVERED)
                )
        except SQLAlchemyError as e:
            raise to_persistence_error(e, "get_store_order_stats") from e

        return StoreOrderStats(
            total_orders=total or 0,
            pending_orders=pending or 0,
            completed_orders=completed or 0,
            total_revenue=Decimal(str(revenue or 0)).quantize(Decimal("0.01")),
        )

    async def _scalar(self, query):
        try:
            async with self.session_factory() as db:
                return await db.scalar(query)
        except SQLAlchemyError as e:
            raise to_persistence_error(e, "lookup") from e
