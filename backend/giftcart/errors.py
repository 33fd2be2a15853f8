class CartError(Exception):
    """Base for cart failures that map onto an HTTP status."""

    status_code = 400


class CartValidationError(CartError):
    status_code = 400


class OwnerNotResolved(CartError):
    status_code = 401

    def __init__(self, message: str = "Owner not found"):
        super().__init__(message)


class CartNotFound(CartError):
    status_code = 404


class CartStoreError(CartError):
    """A store write failed; the message comes from the driver and is safe to surface."""

    status_code = 500
