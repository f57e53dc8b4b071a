# Overview: Domain exceptions raised by order placement, reservation and order management.


class OrderError(Exception):
    """
    Raised for order operation errors.

    `code` is a stable machine-readable identifier returned to clients next
    to the human-readable message.
    """
    code = "ORDER_ERROR"

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


# Client input

class EmptyCartError(OrderError):
    code = "EMPTY_CART"


class MissingCustomerDetailsError(OrderError):
    code = "MISSING_CUSTOMER_DETAILS"


class InvalidOrderItemError(OrderError):
    code = "INVALID_ITEM"


class InvalidStatusError(OrderError):
    code = "INVALID_STATUS"


# Not found

class ProductNotFoundError(OrderError):
    code = "PRODUCT_NOT_FOUND"


class VariantNotFoundError(OrderError):
    code = "VARIANT_NOT_FOUND"


class OrderNotFoundError(OrderError):
    code = "ORDER_NOT_FOUND"


# Business rules

class InsufficientStockError(OrderError):
    code = "INSUFFICIENT_STOCK"
