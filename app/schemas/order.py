"""Order schemas"""

from datetime import datetime
from decimal import Decimal
from typing import Optional, List
from uuid import UUID
from pydantic import BaseModel, Field

from app.models.order import OrderStatus, PaymentMethod
from app.models.store import StoreCategory


class OrderItemCreate(BaseModel):
    """Requested line item"""
    menu_item_id: UUID
    quantity: int = 1
    special_instructions: Optional[str] = Field(default=None, max_length=200)


class OrderCreate(BaseModel):
    """Create order request"""
    store_id: UUID
    items: List[OrderItemCreate] = Field(min_length=1)
    payment_method: PaymentMethod = PaymentMethod.CASH_ON_DELIVERY
    delivery_address: str = Field(min_length=1, max_length=200)
    customer_phone: str = Field(min_length=1, max_length=20)
    notes: Optional[str] = Field(default=None, max_length=500)


class OrderStatusUpdate(BaseModel):
    """Status change request"""
    status: OrderStatus
    notes: Optional[str] = Field(default=None, max_length=500)


class OrderCustomer(BaseModel):
    id: UUID
    first_name: str
    last_name: str
    email: str

    class Config:
        from_attributes = True


class OrderStore(BaseModel):
    id: UUID
    name: str
    category: StoreCategory
    phone: Optional[str]

    class Config:
        from_attributes = True


class OrderMenuItem(BaseModel):
    id: UUID
    name: str
    price: Decimal
    image_url: Optional[str]

    class Config:
        from_attributes = True


class OrderItemResponse(BaseModel):
    """Order item in response"""
    id: UUID
    menu_item_id: UUID
    quantity: int
    unit_price: Decimal
    total_price: Decimal
    special_instructions: Optional[str]
    menu_item: Optional[OrderMenuItem] = None

    class Config:
        from_attributes = True


class OrderResponse(BaseModel):
    """Order with details"""
    id: UUID
    order_number: str
    status: OrderStatus
    customer_id: UUID
    store_id: UUID
    subtotal: Decimal
    delivery_fee: Decimal
    tax: Decimal
    total: Decimal
    payment_method: PaymentMethod
    delivery_address: str
    customer_phone: str
    notes: Optional[str]
    estimated_delivery_time: Optional[datetime]
    actual_delivery_time: Optional[datetime]
    created_at: datetime
    updated_at: datetime
    customer: Optional[OrderCustomer] = None
    store: Optional[OrderStore] = None
    items: List[OrderItemResponse] = []

    class Config:
        from_attributes = True


class OrderSummary(BaseModel):
    """List-view projection of an order"""
    id: UUID
    order_number: str
    status: OrderStatus
    total: Decimal
    store_name: str
    store_category: Optional[StoreCategory]
    item_count: int
    estimated_delivery_time: Optional[datetime]
    created_at: datetime


class OrderListResponse(BaseModel):
    """Paginated order list"""
    items: List[OrderSummary]
    total: int
    page: int
    limit: int
    total_pages: int
    has_next_page: bool
    has_previous_page: bool


class StoreOrderStatsResponse(BaseModel):
    """Order counters for a store"""
    store_id: UUID
    total_orders: int
    pending_orders: int
    completed_orders: int
    total_revenue: Decimal
