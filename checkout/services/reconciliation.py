# checkout/services/reconciliation.py
"""
Payment reconciliation - the one code path behind both confirmation channels
(client callback and gateway webhook).

Every event is applied at most once: the payment row is re-read under a row
lock inside the transaction, the move is looked up in PAYMENT_TRANSITIONS and
written with a compare-and-set on the current status. A redelivered event, or
the slower of two racing channels, finds the status already moved and exits
as a no-op.

Invoice and notification side effects run after commit and can never roll
back a financial state change.
"""
from dataclasses import dataclass
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from checkout.domain.errors import CheckoutError, TransactionFailure, UnknownPaymentError
from checkout.domain.status import (
    OrderStatus,
    PaymentEvent,
    PaymentStatus,
    TERMINAL_PAYMENT_STATUSES,
    can_move_order,
    next_payment_state,
)
from checkout.repos.order_repo import OrderRepo
from checkout.repos.payment_repo import PaymentRepo
from checkout.repos.user_repo import UserRepo
from checkout.services.audit_service import AuditAction, AuditService
from checkout.services.invoice_service import InvoiceService
from checkout.services.notification_service import NotificationService, PAYMENT_SUCCESS
from checkout.utils.logging import get_logger

logger = get_logger(__name__)

_AUDIT_ACTIONS = {
    PaymentStatus.AUTHORIZED: AuditAction.PAYMENT_AUTHORIZED,
    PaymentStatus.CAPTURED: AuditAction.PAYMENT_CAPTURED,
    PaymentStatus.FAILED: AuditAction.PAYMENT_FAILED,
}


@dataclass(frozen=True)
class ReconcileResult:
    order_id: int
    payment_status: PaymentStatus
    order_status: OrderStatus
    applied: bool


class ReconciliationService:
    def __init__(
        self,
        db: Session,
        audit: AuditService | None = None,
        notifications: NotificationService | None = None,
        schedule_invoice=None,
    ):
        self.db = db
        self.payments = PaymentRepo(db)
        self.orders = OrderRepo(db)
        self.users = UserRepo(db)
        self.audit = audit or AuditService()
        self.notifications = notifications or NotificationService()
        self.schedule_invoice = schedule_invoice or InvoiceService.schedule

    def reconcile(
        self,
        gateway_order_id: str,
        event: PaymentEvent,
        payload: dict | None = None,
        source: str = "webhook",
    ) -> ReconcileResult:
        """
        Apply one gateway event to the payment identified by `gateway_order_id`.

        `payload` is the gateway's payment entity; only its "id" (the gateway
        payment id) and "error_description" are used.
        """
        payload = payload or {}
        event = PaymentEvent(event)

        try:
            payment = self.payments.get_by_gateway_order_id(gateway_order_id, for_update=True)
            if not payment:
                logger.error(f"Payment not found for gateway order {gateway_order_id} ({event.value} via {source})")
                raise UnknownPaymentError()

            order = self.orders.get_order_for_update(payment.order_id)
            current = PaymentStatus(payment.status)
            order_status = OrderStatus(order.status)
            target = next_payment_state(current, event)

            if target is None:
                self.db.rollback()
                if current in TERMINAL_PAYMENT_STATUSES:
                    logger.info(
                        f"Payment {payment.id} already {current.value}, {event.value} via {source} is a no-op"
                    )
                else:
                    logger.info(f"Payment {payment.id} is {current.value}, ignoring {event.value} via {source}")
                return ReconcileResult(order.id, current, order_status, applied=False)

            new_payment_status, new_order_status = target
            if not can_move_order(order_status, new_order_status):
                self.db.rollback()
                logger.error(
                    f"Order {order.id} is {order_status.value}, cannot move to {new_order_status.value} "
                    f"for payment {payment.id} ({event.value} via {source})"
                )
                return ReconcileResult(order.id, current, order_status, applied=False)

            gateway_payment_id = payload.get("id") or payment.gateway_payment_id
            moved = self.payments.advance_status(payment.id, current, new_payment_status, gateway_payment_id)
            if moved == 0:
                # the other channel committed first
                self.db.rollback()
                # rollback expired both instances, attribute access reloads the committed state
                logger.info(
                    f"Payment {payment.id} moved concurrently to {PaymentStatus(payment.status).value}, "
                    f"{event.value} via {source} is a no-op"
                )
                return ReconcileResult(
                    order.id,
                    PaymentStatus(payment.status),
                    OrderStatus(order.status),
                    applied=False,
                )

            if new_order_status != order_status:
                if self.orders.update_status_if(order.id, order_status, new_order_status) == 0:
                    self.db.rollback()
                    logger.error(f"Order {order.id} changed status concurrently, rolled back {event.value}")
                    raise TransactionFailure()

            self.db.commit()
        except CheckoutError:
            self.db.rollback()
            raise
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception(f"Reconciliation of {gateway_order_id} ({event.value} via {source}) failed")
            raise TransactionFailure()

        logger.info(
            f"Payment {payment.id} {current.value} -> {new_payment_status.value}, "
            f"order {order.id} -> {new_order_status.value} ({event.value} via {source})"
        )

        self.audit.record(
            _AUDIT_ACTIONS[new_payment_status],
            entity="Payment",
            entity_id=order.id,
            actor_id=payment.user_id,
            metadata={
                "gateway_order_id": gateway_order_id,
                "gateway_payment_id": gateway_payment_id,
                "source": source,
                "reason": payload.get("error_description"),
            },
        )

        if new_order_status == OrderStatus.PAID:
            self._after_paid(order.id, payment.user_id, order.total)

        return ReconcileResult(order.id, new_payment_status, new_order_status, applied=True)

    def _after_paid(self, order_id: int, user_id: int, total) -> None:
        user = self.users.get_user(user_id)
        # fire-and-forget, failures are logged by the dispatcher and retried by the worker
        try:
            self.schedule_invoice(order_id)
        except Exception:
            logger.exception(f"Could not schedule invoice for order {order_id}")
        self.notifications.notify(
            PAYMENT_SUCCESS,
            {
                "order_id": order_id,
                "email": user.email if user else None,
                "total": str(total),
            },
        )
