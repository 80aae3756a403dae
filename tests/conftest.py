"""Test configuration and fixtures"""

from datetime import datetime
from decimal import Decimal
from typing import List

import pytest
from httpx import ASGITransport, AsyncClient
from jose import jwt
from uuid import uuid4

from app.main import app
from app.api.orders import get_order_service
from app.config import settings
from app.database import Base, create_engine, create_session_factory
from app.models.order import Order, OrderItem, OrderStatus, PaymentMethod
from app.models.store import MenuItem, Store, StoreCategory
from app.models.user import User, UserRole
from app.orders import Actor, OrderService
from app.orders.notifications import BaseOrderNotifier, OrderEvent
from app.orders.pricing import PricingRules


class RecordingNotifier(BaseOrderNotifier):
    """Keeps published events in memory"""

    def __init__(self):
        self.events: List[OrderEvent] = []

    @property
    def provider_name(self) -> str:
        return "recording"

    async def publish(self, event: OrderEvent) -> None:
        self.events.append(event)


class FailingNotifier(BaseOrderNotifier):
    """Raises on every publish"""

    @property
    def provider_name(self) -> str:
        return "failing"

    async def publish(self, event: OrderEvent) -> None:
        raise ConnectionError("realtime gateway unreachable")


@pytest.fixture
def pricing_rules():
    return PricingRules(
        min_order_value=Decimal("10.00"),
        max_order_value=Decimal("200.00"),
        tax_rate=Decimal("0.08"),
        max_quantity_per_item=10,
    )


@pytest.fixture
async def session_factory(tmp_path):
    """File-backed SQLite so concurrent sessions share one database"""
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'orders.db'}", echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield create_session_factory(engine)

    await engine.dispose()


@pytest.fixture
async def test_db(session_factory):
    async with session_factory() as session:
        yield session


async def _add_user(db, role: UserRole, email: str, first_name: str) -> User:
    user = User(
        id=uuid4(),
        email=email,
        first_name=first_name,
        last_name="Tester",
        phone="+15550000000",
        role=role,
        is_active=True,
    )
    db.add(user)
    await db.commit()
    return user


@pytest.fixture
async def test_customer(test_db):
    return await _add_user(test_db, UserRole.CUSTOMER, "customer@example.com", "Casey")


@pytest.fixture
async def other_customer(test_db):
    return await _add_user(test_db, UserRole.CUSTOMER, "other.customer@example.com", "Robin")


@pytest.fixture
async def test_owner(test_db):
    return await _add_user(test_db, UserRole.STORE_OWNER, "owner@example.com", "Morgan")


@pytest.fixture
async def other_owner(test_db):
    return await _add_user(test_db, UserRole.STORE_OWNER, "other.owner@example.com", "Jordan")


@pytest.fixture
async def test_admin(test_db):
    return await _add_user(test_db, UserRole.ADMIN, "admin@example.com", "Alex")


@pytest.fixture
async def test_store(test_db, test_owner):
    """Active store: $10.00 minimum, $2.99 delivery, 30 minute estimate"""
    store = Store(
        id=uuid4(),
        owner_id=test_owner.id,
        name="Noodle House",
        description="Hand-pulled noodles",
        category=StoreCategory.LUNCH,
        is_active=True,
        address="12 Market St",
        phone="+15551230000",
        delivery_fee=Decimal("2.99"),
        minimum_order=Decimal("10.00"),
        estimated_delivery_time=30,
        total_orders=0,
    )
    test_db.add(store)
    await test_db.commit()
    return store


@pytest.fixture
async def other_store(test_db, other_owner):
    store = Store(
        id=uuid4(),
        owner_id=other_owner.id,
        name="Bean Counter",
        category=StoreCategory.COFFEE,
        is_active=True,
        delivery_fee=Decimal("1.50"),
        minimum_order=Decimal("5.00"),
        estimated_delivery_time=15,
        total_orders=0,
    )
    test_db.add(store)
    await test_db.commit()
    return store


@pytest.fixture
async def inactive_store(test_db, test_owner):
    store = Store(
        id=uuid4(),
        owner_id=test_owner.id,
        name="Closed Diner",
        category=StoreCategory.DINNER,
        is_active=False,
        delivery_fee=Decimal("2.99"),
        minimum_order=Decimal("10.00"),
        estimated_delivery_time=45,
        total_orders=0,
    )
    test_db.add(store)
    await test_db.commit()
    return store


@pytest.fixture
async def test_menu_items(test_db, test_store):
    """Menu keyed by name"""
    items = {
        "beef_noodles": MenuItem(
            store_id=test_store.id,
            name="Beef Noodles",
            description="Braised beef, hand-pulled noodles",
            price=Decimal("12.00"),
            category="Noodles",
            is_available=True,
        ),
        "dumplings": MenuItem(
            store_id=test_store.id,
            name="Pork Dumplings",
            price=Decimal("9.99"),
            category="Sides",
            is_available=True,
        ),
        "banquet": MenuItem(
            store_id=test_store.id,
            name="Banquet Platter",
            price=Decimal("50.00"),
            category="Sharing",
            is_available=True,
        ),
        "sold_out": MenuItem(
            store_id=test_store.id,
            name="Seasonal Special",
            price=Decimal("14.50"),
            category="Specials",
            is_available=False,
        ),
    }

    for item in items.values():
        test_db.add(item)

    await test_db.commit()
    return items


@pytest.fixture
async def other_store_item(test_db, other_store):
    item = MenuItem(
        store_id=other_store.id,
        name="Flat White",
        price=Decimal("4.50"),
        is_available=True,
    )
    test_db.add(item)
    await test_db.commit()
    return item


@pytest.fixture
def make_order(session_factory, test_customer, test_store, test_menu_items):
    """Insert an order directly in the given status"""
    async def _make_order(status: OrderStatus = OrderStatus.NEW, customer=None, store=None, created_at=None):
        customer = customer or test_customer
        store = store or test_store
        created_at = created_at or datetime.utcnow()
        async with session_factory() as db:
            order = Order(
                id=uuid4(),
                order_number=f"ORD-{created_at:%Y%m%d}-{uuid4().hex[:6]}",
                customer_id=customer.id,
                store_id=store.id,
                status=status,
                subtotal=Decimal("12.00"),
                delivery_fee=Decimal("2.99"),
                tax=Decimal("0.96"),
                total=Decimal("15.95"),
                payment_method=PaymentMethod.CASH_ON_DELIVERY,
                delivery_address="1 Test Lane",
                customer_phone="+15550000000",
                created_at=created_at,
                updated_at=created_at,
            )
            db.add(order)
            db.add(
                OrderItem(
                    order_id=order.id,
                    menu_item_id=test_menu_items["beef_noodles"].id,
                    quantity=1,
                    unit_price=Decimal("12.00"),
                    total_price=Decimal("12.00"),
                )
            )
            await db.commit()
            return order

    return _make_order


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def order_service(session_factory, notifier, pricing_rules):
    return OrderService(session_factory, notifier=notifier, rules=pricing_rules)


def actor_for(user: User) -> Actor:
    return Actor(id=user.id, role=UserRole(user.role))


@pytest.fixture
def customer_actor(test_customer):
    return actor_for(test_customer)


@pytest.fixture
def owner_actor(test_owner):
    return actor_for(test_owner)


@pytest.fixture
def other_owner_actor(other_owner):
    return actor_for(other_owner)


@pytest.fixture
def admin_actor(test_admin):
    return actor_for(test_admin)


def create_access_token(user: User) -> str:
    """Token shaped like the ones the identity service issues"""
    claims = {"sub": str(user.id), "role": UserRole(user.role).value, "type": "access"}
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


@pytest.fixture
async def client(order_service):
    """Create test client wired to the test database"""
    app.dependency_overrides[get_order_service] = lambda: order_service

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user)}"}


@pytest.fixture
def headers_for():
    return auth_headers


@pytest.fixture
def failing_notifier():
    return FailingNotifier()
