# checkout/domain/status.py
"""
Closed status types for orders and payments.

Every status change goes through one of the lookup tables below; a pair that
is not in a table is not a legal move. Statuses only ever advance:

    Payment: INITIATED -> AUTHORIZED -> CAPTURED
             INITIATED/AUTHORIZED -> FAILED
    Order:   CREATED -> PAYMENT_PENDING -> PAID | PAYMENT_FAILED
"""
from enum import Enum


class OrderStatus(str, Enum):
    CREATED = "CREATED"
    PAYMENT_PENDING = "PAYMENT_PENDING"
    PAID = "PAID"
    PAYMENT_FAILED = "PAYMENT_FAILED"


class PaymentStatus(str, Enum):
    INITIATED = "INITIATED"
    AUTHORIZED = "AUTHORIZED"
    CAPTURED = "CAPTURED"
    FAILED = "FAILED"


class PaymentEvent(str, Enum):
    AUTHORIZED = "payment.authorized"
    CAPTURED = "payment.captured"
    FAILED = "payment.failed"


# (current payment status, gateway event) -> (new payment status, new order status)
PAYMENT_TRANSITIONS = {
    (PaymentStatus.INITIATED, PaymentEvent.AUTHORIZED): (PaymentStatus.AUTHORIZED, OrderStatus.PAYMENT_PENDING),
    (PaymentStatus.INITIATED, PaymentEvent.CAPTURED): (PaymentStatus.CAPTURED, OrderStatus.PAID),
    (PaymentStatus.AUTHORIZED, PaymentEvent.CAPTURED): (PaymentStatus.CAPTURED, OrderStatus.PAID),
    (PaymentStatus.INITIATED, PaymentEvent.FAILED): (PaymentStatus.FAILED, OrderStatus.PAYMENT_FAILED),
    (PaymentStatus.AUTHORIZED, PaymentEvent.FAILED): (PaymentStatus.FAILED, OrderStatus.PAYMENT_FAILED),
}

ORDER_TRANSITIONS = {
    OrderStatus.CREATED: {OrderStatus.PAYMENT_PENDING, OrderStatus.PAID},
    OrderStatus.PAYMENT_PENDING: {OrderStatus.PAYMENT_PENDING, OrderStatus.PAID, OrderStatus.PAYMENT_FAILED},
    OrderStatus.PAID: set(),
    OrderStatus.PAYMENT_FAILED: set(),
}

TERMINAL_PAYMENT_STATUSES = frozenset({PaymentStatus.CAPTURED, PaymentStatus.FAILED})


def next_payment_state(current: PaymentStatus, event: PaymentEvent):
    """Return (payment_status, order_status) for a legal move, None for a no-op."""
    return PAYMENT_TRANSITIONS.get((current, event))


def can_move_order(current: OrderStatus, target: OrderStatus) -> bool:
    return target in ORDER_TRANSITIONS[current]


def parse_event(name: str) -> PaymentEvent | None:
    try:
        return PaymentEvent(name)
    except ValueError:
        return None
