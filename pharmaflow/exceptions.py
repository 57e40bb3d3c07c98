"""
Domain exceptions for the order lifecycle and inventory engine

Business-rule violations are raised as typed exceptions and mapped to HTTP
status codes by the API layer. Ledger invariant violations form a separate
branch: they indicate a bug in a caller, not a business condition.
"""


class OrderEngineError(Exception):
    """Base exception for engine errors"""
    status_code = 400


class NotFound(OrderEngineError):
    """Referenced entity does not exist"""
    status_code = 404


class ValidationError(OrderEngineError):
    """Malformed input: empty item list, non-positive quantity, ..."""
    status_code = 422


class InsufficientStock(OrderEngineError):
    """Reservation exceeds available stock"""
    status_code = 409

    def __init__(self, product_id: int, requested: int, available: int):
        self.product_id = product_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient stock for product {product_id}: "
            f"requested {requested}, available {available}"
        )


class InvalidTransition(OrderEngineError):
    """State machine guard violation"""
    status_code = 409


class OverDelivery(OrderEngineError):
    """Delivered quantity would exceed the ordered quantity"""
    status_code = 409


class InvalidReturnRequest(OrderEngineError):
    """Return quantity exceeds the returnable remainder or order is ineligible"""
    status_code = 422


class ConcurrentModification(OrderEngineError):
    """Optimistic lock conflict; the caller may re-read and retry"""
    status_code = 409


class LedgerInvariantError(OrderEngineError):
    """Inventory ledger invariant violated (internal error)"""
    status_code = 500


class InvalidRelease(LedgerInvariantError):
    """Release exceeds reserved quantity"""
    pass


class InvalidCommit(LedgerInvariantError):
    """Commit exceeds reserved quantity"""
    pass
