#!/usr/bin/env python3
"""
Seed script to create demo store, menu and users, then place one order
"""

import asyncio
import uuid
from decimal import Decimal

from jose import jwt


def create_demo_token(user) -> str:
    from app.config import settings

    claims = {"sub": str(user.id), "role": user.role.value, "type": "access"}
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


async def seed_demo_data():
    """Seed demo data for development"""
    from sqlalchemy import select

    from app.database import SessionLocal, engine, Base
    from app.models.store import Store, StoreCategory, MenuItem
    from app.models.user import User, UserRole
    from app.orders import OrderService
    from app.schemas.order import OrderCreate, OrderItemCreate

    # Create tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with SessionLocal() as db:
        # Check if demo store already exists
        result = await db.execute(
            select(Store).where(Store.name == "Mario's Italian Kitchen")
        )
        existing = result.scalar_one_or_none()

        if existing:
            print("Demo data already exists. Skipping...")
            return

        print("Creating demo users...")

        admin_user = User(
            id=uuid.uuid4(),
            email="admin@vibe.food",
            first_name="System",
            last_name="Admin",
            role=UserRole.ADMIN,
        )
        owner = User(
            id=uuid.uuid4(),
            email="mario@marios-kitchen.com",
            first_name="Mario",
            last_name="Rossi",
            phone="+15559876543",
            role=UserRole.STORE_OWNER,
        )
        customer = User(
            id=uuid.uuid4(),
            email="sam@example.com",
            first_name="Sam",
            last_name="Lee",
            phone="+15551112222",
            role=UserRole.CUSTOMER,
        )
        db.add_all([admin_user, owner, customer])
        await db.flush()

        store = Store(
            id=uuid.uuid4(),
            owner_id=owner.id,
            name="Mario's Italian Kitchen",
            description="Pizza, pasta and dessert",
            category=StoreCategory.DINNER,
            address="123 Main Street, New York, NY 10001",
            phone="+15551234567",
            delivery_fee=Decimal("2.99"),
            minimum_order=Decimal("10.00"),
            estimated_delivery_time=35,
        )
        db.add(store)
        await db.flush()

        print(f"Created store: {store.name} (ID: {store.id})")
        print("Creating menu items...")

        menu_items = [
            {"name": "Bruschetta", "description": "Grilled bread topped with fresh tomatoes, garlic and basil", "price": "8.99", "category": "Appetizers"},
            {"name": "Calamari Fritti", "description": "Crispy fried calamari with marinara sauce", "price": "12.99", "category": "Appetizers"},
            {"name": "Margherita Pizza", "description": "Fresh mozzarella, tomato sauce, and basil", "price": "14.99", "category": "Pizza"},
            {"name": "Pepperoni Pizza", "description": "Classic pepperoni with mozzarella cheese", "price": "16.99", "category": "Pizza"},
            {"name": "Spaghetti Bolognese", "description": "Spaghetti with rich meat sauce", "price": "15.99", "category": "Pasta"},
            {"name": "Lasagna", "description": "Layers of pasta, meat sauce, ricotta, and mozzarella", "price": "16.99", "category": "Pasta"},
            {"name": "Caesar Salad", "description": "Romaine, parmesan, croutons, caesar dressing", "price": "10.99", "category": "Salads"},
            {"name": "Tiramisu", "description": "Classic Italian coffee-flavored dessert", "price": "8.99", "category": "Desserts"},
            {"name": "Truffle Risotto", "description": "Seasonal, back in autumn", "price": "24.99", "category": "Specials", "is_available": False},
        ]

        items = []
        for item_data in menu_items:
            item = MenuItem(
                store_id=store.id,
                name=item_data["name"],
                description=item_data["description"],
                price=Decimal(item_data["price"]),
                category=item_data["category"],
                is_available=item_data.get("is_available", True),
            )
            db.add(item)
            items.append(item)

        await db.commit()

    print("Placing a demo order...")

    service = OrderService(SessionLocal)
    order = await service.create_order(
        customer.id,
        OrderCreate(
            store_id=store.id,
            items=[
                OrderItemCreate(menu_item_id=items[2].id, quantity=2),
                OrderItemCreate(menu_item_id=items[7].id, quantity=1, special_instructions="Extra cocoa"),
            ],
            delivery_address="55 Water Street, Apt 4B, New York, NY 10004",
            customer_phone=customer.phone,
        ),
    )

    print(f"""
Demo data created successfully!

Store: {store.name}
  ID: {store.id}

Order: {order.order_number}
  Status: {order.status.value}
  Total: ${order.total}

Access tokens (Authorization: Bearer <token>):
  Admin ({admin_user.email}):
    {create_demo_token(admin_user)}

  Store owner ({owner.email}):
    {create_demo_token(owner)}

  Customer ({customer.email}):
    {create_demo_token(customer)}

Menu: {len(menu_items)} items created
""")


if __name__ == "__main__":
    asyncio.run(seed_demo_data())
