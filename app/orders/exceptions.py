"""Order engine exceptions

Raised by the order services when a business rule, an authorization rule or
the database rejects an operation. The HTTP layer translates them into
responses; nothing here knows about status codes.
"""


class OrderError(Exception):
    """Base class for all order engine failures"""

    code = "order_error"
    message = "Order operation failed"

    def __init__(self, message: str = None, **context):
        self.message = message or self.message
        self.context = context
        super().__init__(self.message)


class NotFound(OrderError):
    code = "not_found"
    message = "Resource not found"


class StoreNotFound(NotFound):
    code = "store_not_found"
    message = "Store not found or inactive"


class MenuItemNotFound(NotFound):
    code = "menu_item_not_found"
    message = "One or more menu items not found"


class OrderNotFound(NotFound):
    code = "order_not_found"
    message = "Order not found"


class ValidationError(OrderError):
    code = "validation_error"
    message = "Invalid request"


class Forbidden(OrderError):
    code = "forbidden"
    message = "Unauthorized access to order"


class InvalidStatusTransition(OrderError):
    code = "invalid_status_transition"
    message = "Invalid order status transition"


class ItemUnavailable(OrderError):
    code = "item_unavailable"
    message = "One or more menu items are unavailable"


class MenuItemUnavailable(ItemUnavailable):
    code = "menu_item_unavailable"


class MinimumOrderNotMet(OrderError):
    code = "minimum_order_not_met"
    message = "Minimum order value not met"


class MaximumOrderExceeded(OrderError):
    code = "maximum_order_exceeded"
    message = "Maximum order value exceeded"


class InvalidQuantity(OrderError):
    code = "invalid_quantity"
    message = "Invalid item quantity"


class PersistenceError(OrderError):
    """Transaction or connection failure; `transient` marks retryable causes"""

    code = "persistence_error"
    message = "Order could not be saved"

    def __init__(self, message: str = None, transient: bool = False, **context):
        super().__init__(message, **context)
        self.transient = transient


class OperationTimedOut(PersistenceError):
    """The transaction ran past its deadline and was rolled back"""

    code = "operation_timed_out"
    message = "Order operation timed out"

    def __init__(self, message: str = None, **context):
        super().__init__(message, transient=True, **context)
