"""Pydantic schemas for request/response validation"""

from app.schemas.order import (
    OrderCreate,
    OrderItemCreate,
    OrderStatusUpdate,
    OrderResponse,
    OrderItemResponse,
    OrderSummary,
    OrderListResponse,
    StoreOrderStatsResponse,
)

__all__ = [
    "OrderCreate",
    "OrderItemCreate",
    "OrderStatusUpdate",
    "OrderResponse",
    "OrderItemResponse",
    "OrderSummary",
    "OrderListResponse",
    "StoreOrderStatsResponse",
]
