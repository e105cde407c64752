"""Custom exceptions for the shop POS application."""

class PosError(Exception):
    """Base exception for all application errors."""
    def __init__(self, message="An internal error occurred", status_code=500, payload=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    def to_dict(self):
        rv = dict(self.payload or ())
        rv['error'] = self.message
        rv['status'] = 'error'
        return rv

class ValidationError(PosError):
    """Malformed, missing or out-of-range input."""
    def __init__(self, message, payload=None):
        super().__init__(message, 400, payload)

class NotFoundError(PosError):
    """Exception raised when a resource is not found or belongs to another business."""
    def __init__(self, message="Resource not found", payload=None):
        super().__init__(message, 404, payload)

class InsufficientStockError(PosError):
    """Raised when a sale asks for more units than are on hand."""
    def __init__(self, product_name, required, available):
        self.product_name = product_name
        self.required = required
        self.available = available
        message = f"Insufficient stock for {product_name}: requested {required}, available {available}"
        super().__init__(message, 409, {'product': product_name, 'available': available})

class StoreError(PosError):
    """Persistence failure. The message never carries driver details."""
    def __init__(self, message="Failed to complete sale"):
        super().__init__(message, 500)

class UnauthorizedError(PosError):
    """Raised when no authenticated operator is attached to the request."""
    def __init__(self, message="Not authenticated"):
        super().__init__(message, 401)
