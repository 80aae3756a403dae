"""Order lifecycle engine"""

from app.orders.policies import Actor
from app.orders.queries import OrderListFilters, OrderPage
from app.orders.service import OrderService

__all__ = [
    "Actor",
    "OrderListFilters",
    "OrderPage",
    "OrderService",
]
