"""Order status state machine"""

from typing import Dict, FrozenSet, Optional

import structlog

from app.models.order import Order, OrderStatus
from app.models.user import UserRole
from app.orders.catalog import CatalogReader
from app.orders.exceptions import InvalidStatusTransition
from app.orders.policies import Actor, require_order_access, require_transition_permission
from app.orders.repository import OrderRepository

logger = structlog.get_logger()

ORDER_STATUS_TRANSITIONS: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    OrderStatus.NEW: frozenset({OrderStatus.CONFIRMED, OrderStatus.CANCELLED}),
    OrderStatus.CONFIRMED: frozenset({OrderStatus.PREPARING, OrderStatus.CANCELLED}),
    OrderStatus.PREPARING: frozenset({OrderStatus.READY, OrderStatus.CANCELLED}),
    OrderStatus.READY: frozenset({OrderStatus.PICKED_UP, OrderStatus.CANCELLED}),
    OrderStatus.PICKED_UP: frozenset({OrderStatus.DELIVERED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

TERMINAL_STATES = frozenset(
    status for status, allowed in ORDER_STATUS_TRANSITIONS.items() if not allowed
)


def is_allowed_transition(current: OrderStatus, requested: OrderStatus) -> bool:
    return requested in ORDER_STATUS_TRANSITIONS[current]


def validate_transition(current: OrderStatus, requested: OrderStatus) -> None:
    if not is_allowed_transition(current, requested):
        raise InvalidStatusTransition(
            f"Cannot move order from {current.value} to {requested.value}",
            current=current.value,
            requested=requested.value,
        )


class OrderStateMachine:
    """Applies role-gated status transitions to persisted orders"""

    def __init__(self, repository: OrderRepository, catalog: CatalogReader):
        self.repository = repository
        self.catalog = catalog

    async def transition(
        self,
        order: Order,
        requested_status: OrderStatus,
        actor: Actor,
        notes: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> Order:
        """
        Move `order` to `requested_status` on behalf of `actor`.

        Checks run in this order: the actor must be related to the order
        (Forbidden), the pair must be in the transition table
        (InvalidStatusTransition), then role limits apply (Forbidden). The
        write is conditional on the status read here; if another transition
        committed in between, the call fails with InvalidStatusTransition.
        """
        current = OrderStatus(order.status)
        owns_store = (
            actor.role == UserRole.STORE_OWNER
            and await self.catalog.is_store_owner(order.store_id, actor.id)
        )

        require_order_access(actor, order.customer_id, owns_store)
        validate_transition(current, requested_status)
        require_transition_permission(actor, current, requested_status)

        updated = await self.repository.update_status(
            order.id,
            requested_status,
            notes=notes,
            expected_status=current,
            timeout=timeout,
        )
        if updated is None:
            logger.warning(
                "Order status changed concurrently",
                order_id=str(order.id),
                expected=current.value,
                requested=requested_status.value,
            )
            raise InvalidStatusTransition(
                "Order status changed while updating, reload and try again",
                current=current.value,
                requested=requested_status.value,
            )

        logger.info(
            "Order status updated",
            order_id=str(order.id),
            from_status=current.value,
            to_status=requested_status.value,
            actor_id=str(actor.id),
            actor_role=actor.role.value,
        )
        return updated
