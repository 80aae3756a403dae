"""Authorization rules for orders

Pure functions over the actor's role and precomputed ownership facts. Callers
look up store ownership first and pass the answer in, so every rule here can
be tested without a database.
"""

from dataclasses import dataclass
from uuid import UUID

from app.models.order import OrderStatus
from app.models.user import UserRole
from app.orders.exceptions import Forbidden

CUSTOMER_CANCELLABLE_STATES = frozenset({OrderStatus.NEW, OrderStatus.CONFIRMED})


@dataclass(frozen=True)
class Actor:
    """Authenticated caller"""
    id: UUID
    role: UserRole


def is_related_to_order(actor: Actor, customer_id: UUID, owns_store: bool) -> bool:
    """Whether the actor may see the order at all"""
    if actor.role == UserRole.ADMIN:
        return True
    if actor.role == UserRole.CUSTOMER:
        return actor.id == customer_id
    if actor.role == UserRole.STORE_OWNER:
        return owns_store
    return False


def require_order_access(actor: Actor, customer_id: UUID, owns_store: bool) -> None:
    if not is_related_to_order(actor, customer_id, owns_store):
        raise Forbidden(actor_id=str(actor.id), role=actor.role.value)


def require_store_access(actor: Actor, owns_store: bool) -> None:
    """Store-wide views: the owning store owner or an admin"""
    if actor.role == UserRole.ADMIN:
        return
    if actor.role == UserRole.STORE_OWNER and owns_store:
        return
    raise Forbidden("Unauthorized access to store", actor_id=str(actor.id), role=actor.role.value)


def require_transition_permission(
    actor: Actor,
    current_status: OrderStatus,
    requested_status: OrderStatus,
) -> None:
    """
    Role limits on a transition the table already allows.

    Customers may only cancel, and only before preparation starts. Store
    owners and admins may apply any allowed transition.
    """
    if actor.role != UserRole.CUSTOMER:
        return
    if requested_status != OrderStatus.CANCELLED:
        raise Forbidden("Customers can only cancel orders")
    if current_status not in CUSTOMER_CANCELLABLE_STATES:
        raise Forbidden("Order cannot be cancelled at this stage")
