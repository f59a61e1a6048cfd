import pytest

from checkout.domain.status import (
    OrderStatus,
    PaymentEvent,
    PaymentStatus,
    can_move_order,
    next_payment_state,
    parse_event,
)


@pytest.mark.parametrize(
    "current, event, expected",
    [
        (PaymentStatus.INITIATED, PaymentEvent.AUTHORIZED, (PaymentStatus.AUTHORIZED, OrderStatus.PAYMENT_PENDING)),
        (PaymentStatus.INITIATED, PaymentEvent.CAPTURED, (PaymentStatus.CAPTURED, OrderStatus.PAID)),
        (PaymentStatus.AUTHORIZED, PaymentEvent.CAPTURED, (PaymentStatus.CAPTURED, OrderStatus.PAID)),
        (PaymentStatus.INITIATED, PaymentEvent.FAILED, (PaymentStatus.FAILED, OrderStatus.PAYMENT_FAILED)),
        (PaymentStatus.AUTHORIZED, PaymentEvent.FAILED, (PaymentStatus.FAILED, OrderStatus.PAYMENT_FAILED)),
    ],
)
def test_allowed_moves(current, event, expected):
    assert next_payment_state(current, event) == expected


@pytest.mark.parametrize(
    "current, event",
    [
        (PaymentStatus.CAPTURED, PaymentEvent.CAPTURED),
        (PaymentStatus.CAPTURED, PaymentEvent.FAILED),
        (PaymentStatus.CAPTURED, PaymentEvent.AUTHORIZED),
        (PaymentStatus.FAILED, PaymentEvent.CAPTURED),
        (PaymentStatus.FAILED, PaymentEvent.FAILED),
        (PaymentStatus.AUTHORIZED, PaymentEvent.AUTHORIZED),
    ],
)
def test_everything_else_is_a_noop(current, event):
    assert next_payment_state(current, event) is None


def test_paid_and_failed_orders_are_final():
    for target in OrderStatus:
        assert not can_move_order(OrderStatus.PAID, target)
        assert not can_move_order(OrderStatus.PAYMENT_FAILED, target)


def test_created_order_can_be_paid_directly():
    assert can_move_order(OrderStatus.CREATED, OrderStatus.PAID)
    assert not can_move_order(OrderStatus.CREATED, OrderStatus.PAYMENT_FAILED)


def test_parse_event():
    assert parse_event("payment.captured") is PaymentEvent.CAPTURED
    assert parse_event("refund.created") is None
