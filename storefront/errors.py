# storefront/errors.py
from .utils.api import err


class StorefrontError(Exception):
    """Base class for errors raised by the cart and checkout core."""


class StorageError(StorefrontError):
    """The durable cart store could not be read or written."""


class CorruptCartError(StorefrontError):
    def __init__(self, index: int, problems: list[str]) -> None:
        super().__init__(f"stored cart entry {index} is invalid: {', '.join(problems)}")
        self.index = index
        self.problems = problems


class CheckoutError(StorefrontError):
    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


class OrderNotFound(StorefrontError):
    pass


def register_error_handlers(app):
    @app.errorhandler(CheckoutError)
    def handle_checkout_error(e):
        return err(e.message, 409, {"code": e.code})

    @app.errorhandler(OrderNotFound)
    def handle_order_not_found(e):
        return err(str(e) or "order not found", 404)

    @app.errorhandler(ValueError)
    def handle_value_error(e):
        return err(str(e), 422)
