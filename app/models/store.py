"""Store and menu models"""

import uuid
from datetime import datetime
from decimal import Decimal
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Integer, Numeric, Text, Enum
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
import enum

from app.database import Base


class StoreCategory(str, enum.Enum):
    """Store categories"""
    LUNCH = "LUNCH"
    DINNER = "DINNER"
    COFFEE = "COFFEE"
    TEA = "TEA"
    DESSERT = "DESSERT"
    FAST_FOOD = "FAST_FOOD"


class Store(Base):
    """Restaurant store"""
    __tablename__ = "stores"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    owner_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    description = Column(String(500))
    category = Column(Enum(StoreCategory), nullable=False)
    is_active = Column(Boolean, default=True)
    address = Column(String(200))
    phone = Column(String(20))

    # Ordering terms
    delivery_fee = Column(Numeric(10, 2), nullable=False, default=Decimal("2.99"))
    minimum_order = Column(Numeric(10, 2), nullable=False, default=Decimal("10.00"))
    estimated_delivery_time = Column(Integer, nullable=False, default=30)  # minutes

    # Incremented in the same transaction that creates an order
    total_orders = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    owner = relationship("User", back_populates="stores")
    menu_items = relationship("MenuItem", back_populates="store")
    orders = relationship("Order", back_populates="store")


class MenuItem(Base):
    """Menu items"""
    __tablename__ = "menu_items"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    store_id = Column(UUID(as_uuid=True), ForeignKey("stores.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    description = Column(Text)
    price = Column(Numeric(10, 2), nullable=False)
    category = Column(String(50))
    is_available = Column(Boolean, default=True)
    image_url = Column(String(500))
    preparation_time = Column(Integer, default=15)  # minutes
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    store = relationship("Store", back_populates="menu_items")
