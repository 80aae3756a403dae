"""Order API endpoints"""

from typing import Optional
from uuid import UUID
from datetime import datetime

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
import structlog

from app.api.auth import get_current_actor, require_role
from app.database import get_session_factory
from app.models.order import OrderStatus
from app.models.user import UserRole
from app.orders import Actor, OrderListFilters, OrderService
from app.orders.exceptions import (
    Forbidden,
    InvalidStatusTransition,
    NotFound,
    OrderError,
    PersistenceError,
)
from app.schemas.order import (
    OrderCreate,
    OrderListResponse,
    OrderResponse,
    OrderStatusUpdate,
    StoreOrderStatsResponse,
)

router = APIRouter()
logger = structlog.get_logger()

# Checked in order; the first matching class wins
ERROR_STATUS_CODES = [
    (NotFound, status.HTTP_404_NOT_FOUND),
    (Forbidden, status.HTTP_403_FORBIDDEN),
    (InvalidStatusTransition, status.HTTP_409_CONFLICT),
    (PersistenceError, status.HTTP_503_SERVICE_UNAVAILABLE),
    (OrderError, status.HTTP_400_BAD_REQUEST),
]


def to_http_exception(error: OrderError) -> HTTPException:
    """Translate an order engine failure into an HTTP error"""
    status_code = next(code for cls, code in ERROR_STATUS_CODES if isinstance(error, cls))
    logger.info(
        "Order request rejected",
        code=error.code,
        status_code=status_code,
        **error.context,
    )
    return HTTPException(
        status_code=status_code,
        detail={"code": error.code, "message": error.message},
    )


def get_order_service(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> OrderService:
    return OrderService(session_factory)


@router.post("", response_model=OrderResponse, status_code=201)
async def create_order(
    order_data: OrderCreate,
    actor: Actor = Depends(require_role(UserRole.CUSTOMER)),
    service: OrderService = Depends(get_order_service),
):
    """Place a new order"""
    try:
        order = await service.create_order(actor.id, order_data)
    except OrderError as e:
        raise to_http_exception(e)
    return OrderResponse.model_validate(order)


@router.get("", response_model=OrderListResponse)
async def list_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status: Optional[OrderStatus] = None,
    store_id: Optional[UUID] = None,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    actor: Actor = Depends(get_current_actor),
    service: OrderService = Depends(get_order_service),
):
    """List orders visible to the caller, newest first"""
    filters = OrderListFilters(
        status=status,
        store_id=store_id,
        date_from=date_from,
        date_to=date_to,
        page=page,
        limit=limit,
    )
    try:
        result = await service.list_orders(actor, filters)
    except OrderError as e:
        raise to_http_exception(e)

    return OrderListResponse(
        items=result.orders,
        total=result.total,
        page=result.page,
        limit=result.limit,
        total_pages=result.total_pages,
        has_next_page=result.has_next_page,
        has_previous_page=result.has_previous_page,
    )


@router.get("/store/{store_id}/stats", response_model=StoreOrderStatsResponse)
async def get_store_order_stats(
    store_id: UUID,
    actor: Actor = Depends(get_current_actor),
    service: OrderService = Depends(get_order_service),
):
    """Order counters for one store"""
    try:
        stats = await service.get_store_stats(store_id, actor)
    except OrderError as e:
        raise to_http_exception(e)

    return StoreOrderStatsResponse(
        store_id=store_id,
        total_orders=stats.total_orders,
        pending_orders=stats.pending_orders,
        completed_orders=stats.completed_orders,
        total_revenue=stats.total_revenue,
    )


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: UUID,
    actor: Actor = Depends(get_current_actor),
    service: OrderService = Depends(get_order_service),
):
    """Get order details"""
    try:
        order = await service.get_order_details(order_id, actor)
    except OrderError as e:
        raise to_http_exception(e)
    return OrderResponse.model_validate(order)


@router.put("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: UUID,
    update: OrderStatusUpdate,
    actor: Actor = Depends(get_current_actor),
    service: OrderService = Depends(get_order_service),
):
    """Move an order to a new status"""
    try:
        order = await service.update_order_status(order_id, actor, update.status, update.notes)
    except OrderError as e:
        raise to_http_exception(e)
    return OrderResponse.model_validate(order)


@router.post("/{order_id}/cancel", response_model=OrderResponse)
async def cancel_order(
    order_id: UUID,
    reason: Optional[str] = Body(default=None, embed=True, max_length=500),
    actor: Actor = Depends(get_current_actor),
    service: OrderService = Depends(get_order_service),
):
    """Cancel an order"""
    try:
        order = await service.cancel_order(order_id, actor, reason)
    except OrderError as e:
        raise to_http_exception(e)
    return OrderResponse.model_validate(order)
