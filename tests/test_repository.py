"""Tests for order persistence"""

from datetime import datetime, timedelta
from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, OperationalError

from app.models.order import Order, OrderItem, OrderSequence, OrderStatus, PaymentMethod
from app.models.store import Store
from app.orders.exceptions import OrderNotFound, PersistenceError
from app.orders.repository import (
    NewOrder,
    NewOrderItem,
    OrderFilters,
    OrderRepository,
    is_transient,
)


@pytest.fixture
def repository(session_factory):
    return OrderRepository(session_factory)


@pytest.fixture
def new_order(test_customer, test_store):
    return NewOrder(
        customer_id=test_customer.id,
        store_id=test_store.id,
        subtotal=Decimal("24.00"),
        delivery_fee=Decimal("2.99"),
        tax=Decimal("1.92"),
        total=Decimal("28.91"),
        payment_method=PaymentMethod.CREDIT_CARD,
        delivery_address="1 Test Lane",
        customer_phone="+15550000000",
        notes="Ring twice",
        estimated_delivery_time=datetime.utcnow() + timedelta(minutes=30),
    )


@pytest.fixture
def new_items(test_menu_items):
    return [
        NewOrderItem(test_menu_items["beef_noodles"].id, 2, Decimal("12.00"), Decimal("24.00"), "No cilantro"),
    ]


async def _count(session_factory, model) -> int:
    async with session_factory() as db:
        return await db.scalar(select(func.count()).select_from(model))


@pytest.mark.asyncio
async def test_create_with_items(repository, session_factory, new_order, new_items, test_store):
    order = await repository.create_with_items(new_order, new_items)

    assert order.status == OrderStatus.NEW
    assert order.order_number.startswith("ORD-")
    assert order.total == Decimal("28.91")
    assert order.customer.email == "customer@example.com"
    assert order.store.name == "Noodle House"
    assert len(order.items) == 1
    assert order.items[0].menu_item.name == "Beef Noodles"
    assert order.items[0].special_instructions == "No cilantro"
    assert order.item_count == 2

    async with session_factory() as db:
        store = await db.get(Store, test_store.id)
    assert store.total_orders == 1


@pytest.mark.asyncio
async def test_create_rolls_back_on_failure(repository, session_factory, new_order, new_items, test_store, monkeypatch):
    async def fail(self, db, store_id):
        raise OperationalError("UPDATE stores", {}, Exception("connection reset"))

    monkeypatch.setattr(OrderRepository, "_increment_store_order_count", fail)

    with pytest.raises(PersistenceError) as exc_info:
        await repository.create_with_items(new_order, new_items)

    assert exc_info.value.transient is True
    assert await _count(session_factory, Order) == 0
    assert await _count(session_factory, OrderItem) == 0
    assert await _count(session_factory, OrderSequence) == 0

    async with session_factory() as db:
        store = await db.get(Store, test_store.id)
    assert store.total_orders == 0


def test_transient_classification():
    assert is_transient(OperationalError("SELECT 1", {}, Exception("server closed the connection")))
    assert is_transient(
        IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed: order_sequences.day"))
    )
    assert not is_transient(
        IntegrityError("INSERT", {}, Exception("NOT NULL constraint failed: orders.total"))
    )


@pytest.mark.asyncio
async def test_find_by_id_not_found(repository):
    with pytest.raises(OrderNotFound):
        await repository.find_by_id_with_details(uuid4())


@pytest.mark.asyncio
async def test_update_status(repository, make_order):
    order = await make_order(OrderStatus.PICKED_UP)

    updated = await repository.update_status(order.id, OrderStatus.DELIVERED, notes="Left at door")

    assert updated.status == OrderStatus.DELIVERED
    assert updated.notes == "Left at door"
    assert updated.actual_delivery_time is not None


@pytest.mark.asyncio
async def test_update_status_keeps_notes_when_none_given(repository, make_order):
    order = await make_order(OrderStatus.NEW)
    await repository.update_status(order.id, OrderStatus.CONFIRMED, notes="Extra napkins")

    updated = await repository.update_status(order.id, OrderStatus.PREPARING)

    assert updated.notes == "Extra napkins"
    assert updated.actual_delivery_time is None


@pytest.mark.asyncio
async def test_update_status_with_stale_expectation(repository, make_order):
    order = await make_order(OrderStatus.CANCELLED)

    result = await repository.update_status(
        order.id, OrderStatus.CONFIRMED, expected_status=OrderStatus.NEW
    )

    assert result is None
    reloaded = await repository.find_by_id_with_details(order.id)
    assert reloaded.status == OrderStatus.CANCELLED


@pytest.mark.asyncio
async def test_update_status_unknown_order(repository):
    with pytest.raises(OrderNotFound):
        await repository.update_status(uuid4(), OrderStatus.CONFIRMED)


@pytest.mark.asyncio
async def test_find_many_pages_newest_first(repository, make_order):
    start = datetime(2025, 8, 1, 9, 0, 0)
    created = [await make_order(created_at=start + timedelta(minutes=i)) for i in range(5)]

    first_page, total = await repository.find_many(OrderFilters(), page=1, limit=2)
    last_page, _ = await repository.find_many(OrderFilters(), page=3, limit=2)

    assert total == 5
    assert [o.id for o in first_page] == [created[4].id, created[3].id]
    assert [o.id for o in last_page] == [created[0].id]
    assert first_page[0].store.name == "Noodle House"


@pytest.mark.asyncio
async def test_find_many_filters(repository, make_order, other_customer, other_store):
    mine = await make_order(OrderStatus.NEW, created_at=datetime(2025, 8, 1, 10, 0, 0))
    await make_order(OrderStatus.DELIVERED, created_at=datetime(2025, 8, 2, 10, 0, 0))
    await make_order(OrderStatus.NEW, customer=other_customer, store=other_store)

    orders, total = await repository.find_by_customer_id(mine.customer_id)
    assert total == 2

    orders, total = await repository.find_by_store_id(mine.store_id, status=OrderStatus.NEW)
    assert [o.id for o in orders] == [mine.id]

    orders, total = await repository.find_many(
        OrderFilters(date_from=datetime(2025, 8, 2), date_to=datetime(2025, 8, 3))
    )
    assert total == 1
    assert orders[0].status == OrderStatus.DELIVERED


@pytest.mark.asyncio
async def test_ownership_checks(repository, make_order, test_customer, other_customer, test_store, other_store):
    order = await make_order()

    assert await repository.belongs_to_customer(order.id, test_customer.id)
    assert not await repository.belongs_to_customer(order.id, other_customer.id)
    assert await repository.belongs_to_store(order.id, test_store.id)
    assert not await repository.belongs_to_store(order.id, other_store.id)
    assert not await repository.belongs_to_customer(uuid4(), test_customer.id)


@pytest.mark.asyncio
async def test_store_order_stats(repository, make_order, test_store):
    await make_order(OrderStatus.NEW)
    await make_order(OrderStatus.PREPARING)
    await make_order(OrderStatus.DELIVERED)
    await make_order(OrderStatus.DELIVERED)
    await make_order(OrderStatus.CANCELLED)

    stats = await repository.get_store_order_stats(test_store.id)

    assert stats.total_orders == 5
    assert stats.pending_orders == 2
    assert stats.completed_orders == 2
    assert stats.total_revenue == Decimal("31.90")


@pytest.mark.asyncio
async def test_store_order_stats_empty(repository, test_store):
    stats = await repository.get_store_order_stats(test_store.id)

    assert stats.total_orders == 0
    assert stats.total_revenue == Decimal("0.00")
