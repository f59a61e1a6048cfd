# checkout/domain/errors.py


class CheckoutError(Exception):
    """Base for every error the checkout/payment core reports to a caller."""

    status_code = 500
    default_detail = "Internal error"

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class ValidationError(CheckoutError):
    status_code = 400
    default_detail = "Invalid request"


class EmptyCartError(ValidationError):
    default_detail = "Cart is empty. Add items before creating an order."


class InactiveItemError(ValidationError):
    default_detail = "Cart contains inactive items. Please refresh your cart before checkout."

    def __init__(self, item_ids=None, detail: str | None = None):
        self.item_ids = list(item_ids or [])
        super().__init__(detail)


class NotFoundError(CheckoutError):
    status_code = 404
    default_detail = "Not found"


class SignatureInvalidError(CheckoutError):
    status_code = 400
    default_detail = "Invalid signature"


class RateLimitedError(CheckoutError):
    status_code = 429
    default_detail = "Too many requests"


class GatewayUnavailableError(CheckoutError):
    status_code = 502
    default_detail = "Payment gateway unavailable, please retry"


class UnknownPaymentError(NotFoundError):
    default_detail = "Payment not found for gateway order"


class TransactionFailure(CheckoutError):
    status_code = 500
    default_detail = "Could not complete the request, please retry"
