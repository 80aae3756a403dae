"""Database models"""

from app.models.user import User, UserRole
from app.models.store import Store, StoreCategory, MenuItem
from app.models.order import Order, OrderItem, OrderSequence, OrderStatus, PaymentMethod

__all__ = [
    "User",
    "UserRole",
    "Store",
    "StoreCategory",
    "MenuItem",
    "Order",
    "OrderItem",
    "OrderSequence",
    "OrderStatus",
    "PaymentMethod",
]
