"""Custom exceptions for the checkout service."""


class CheckoutError(Exception):
    """Base exception for all application errors."""

    kind = 'INTERNAL_ERROR'

    def __init__(self, message="An internal error occurred", status_code=500, payload=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    def to_dict(self):
        rv = dict(self.payload or ())
        rv['status'] = 'error'
        rv['kind'] = self.kind
        rv['error'] = self.message
        return rv


class ValidationError(CheckoutError):
    """Malformed or missing input."""

    kind = 'VALIDATION_ERROR'

    def __init__(self, message, payload=None):
        super().__init__(message, 400, payload)


class NotFoundError(CheckoutError):
    """Exception raised when a resource is not found."""

    kind = 'NOT_FOUND'

    def __init__(self, message="Resource not found", payload=None):
        super().__init__(message, 404, payload)


class InsufficientStockError(CheckoutError):
    """Raised when the requested quantity exceeds what is available."""

    kind = 'INSUFFICIENT_STOCK'

    def __init__(self, product_name, required, available, product_id=None, payload=None):
        if available is None:
            message = f"Insufficient stock for {product_name}: requested {required}, no longer available"
        else:
            message = f"Insufficient stock for {product_name}: requested {required}, available {available}"
        rv = dict(payload or ())
        if product_id is not None:
            rv['product_id'] = product_id
        super().__init__(message, 400, rv)
        self.product_id = product_id


class SelfPurchaseError(CheckoutError):
    """Raised when a buyer tries to purchase their own listing."""

    kind = 'SELF_PURCHASE'

    def __init__(self, product_name, product_id=None, payload=None):
        rv = dict(payload or ())
        if product_id is not None:
            rv['product_id'] = product_id
        super().__init__(f"Cannot purchase your own product: {product_name}", 400, rv)
        self.product_id = product_id


class EmptyCartError(CheckoutError):
    """Raised when checkout is requested for an empty cart."""

    kind = 'EMPTY_CART'

    def __init__(self, message="Cart is empty.", payload=None):
        super().__init__(message, 400, payload)


class ConflictError(CheckoutError):
    """The request conflicts with the current state of the resource."""

    kind = 'CONFLICT'

    def __init__(self, message, payload=None):
        super().__init__(message, 409, payload)


class InternalError(CheckoutError):
    """Unexpected storage or infrastructure failure."""

    kind = 'INTERNAL_ERROR'

    def __init__(self, message="Internal server error.", payload=None):
        super().__init__(message, 500, payload)
