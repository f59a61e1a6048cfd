# checkout/services/payment_service.py
from dataclasses import dataclass
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from checkout.data.models.payment import PaymentModel
from checkout.domain.errors import NotFoundError, SignatureInvalidError, TransactionFailure, ValidationError
from checkout.domain.status import OrderStatus, PaymentEvent, PaymentStatus
from checkout.repos.order_repo import OrderRepo
from checkout.repos.payment_repo import PaymentRepo
from checkout.services.audit_service import AuditAction, AuditService
from checkout.services.gateway_client import GatewayClient
from checkout.services.pricing import to_minor_units
from checkout.services.reconciliation import ReconcileResult, ReconciliationService
from checkout.services.signature import SignatureVerifier
from checkout.utils.settings import GATEWAY_NAME, PAYMENT_CURRENCY
from checkout.utils.logging import get_logger

logger = get_logger(__name__)

PAYABLE_ORDER_STATUSES = frozenset({OrderStatus.CREATED, OrderStatus.PAYMENT_PENDING})


@dataclass(frozen=True)
class PaymentIntent:
    order_id: int
    gateway_order_id: str
    amount: int  # minor units
    currency: str
    public_key: str


class PaymentService:
    """
    Customer-facing payment use cases: open an intent, confirm it from the
    client callback, read its status. Amounts always come from our own rows.
    """

    def __init__(
        self,
        db: Session,
        gateway: GatewayClient,
        verifier: SignatureVerifier,
        reconciliation: ReconciliationService,
        audit: AuditService | None = None,
    ):
        self.db = db
        self.orders = OrderRepo(db)
        self.payments = PaymentRepo(db)
        self.gateway = gateway
        self.verifier = verifier
        self.reconciliation = reconciliation
        self.audit = audit or AuditService()

    def initiate(self, order_id: int, user_id: int, ip: str | None = None) -> PaymentIntent:
        """
        Use case: open (or reopen) the gateway intent for an order.

        Orders already PAID or PAYMENT_FAILED are refused. A payment row that
        already exists is returned as is and the gateway is not called again. Otherwise the intent is created first and the
        payment row + order move to PAYMENT_PENDING are committed together.
        """
        order = self.orders.get_user_order(order_id, user_id)
        if not order:
            raise NotFoundError("Order not found")

        if order.status not in PAYABLE_ORDER_STATUSES:
            raise ValidationError(f"Cannot initiate payment for order with status: {OrderStatus(order.status).value}")

        existing = self.payments.get_by_order(order_id)
        if existing:
            logger.info(f"Payment already exists for order {order_id}, returning gateway order {existing.gateway_order_id}")
            return self._intent(existing)

        amount = to_minor_units(order.total)
        intent = self.gateway.create_intent(order.id, amount, PAYMENT_CURRENCY)
        if intent.amount != amount:
            logger.warning(f"Gateway order {intent.gateway_order_id} echoed amount {intent.amount}, expected {amount}")

        try:
            payment = self.payments.add(
                PaymentModel(
                    order_id=order.id,
                    user_id=user_id,
                    amount=order.total,
                    currency=PAYMENT_CURRENCY,
                    gateway=GATEWAY_NAME,
                    gateway_order_id=intent.gateway_order_id,
                    status=PaymentStatus.INITIATED,
                )
            )
            if self.orders.update_status_if(order.id, OrderStatus.CREATED, OrderStatus.PAYMENT_PENDING) == 0:
                self.db.rollback()
                return self._lost_initiate_race(order_id, intent.gateway_order_id)
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            return self._lost_initiate_race(order_id, intent.gateway_order_id)
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception(f"Failed to persist gateway order {intent.gateway_order_id} for order {order_id}")
            raise TransactionFailure()

        logger.info(f"Payment initiated for order {order_id}, gateway order {payment.gateway_order_id}")

        self.audit.record(
            AuditAction.PAYMENT_INITIATED,
            entity="Payment",
            entity_id=order_id,
            actor_id=user_id,
            ip=ip,
            metadata={"amount": str(order.total), "gateway_order_id": payment.gateway_order_id},
        )

        return self._intent(payment)

    def verify(
        self,
        user_id: int,
        gateway_order_id: str,
        gateway_payment_id: str,
        signature: str,
        ip: str | None = None,
    ) -> ReconcileResult:
        """
        Use case: client callback after the customer paid on the gateway page.
        Signature first, then ownership, then the shared reconciliation path.
        """
        if not self.verifier.verify_client_callback(gateway_order_id, gateway_payment_id, signature):
            logger.warning(f"Client payment signature verification failed for gateway order {gateway_order_id}")
            self.audit.record(
                AuditAction.PAYMENT_SIGNATURE_INVALID,
                entity="Payment",
                actor_id=user_id,
                ip=ip,
                metadata={"gateway_order_id": gateway_order_id, "gateway_payment_id": gateway_payment_id},
            )
            raise SignatureInvalidError("Payment verification failed. Invalid signature.")

        payment = self.payments.get_by_gateway_order_id(gateway_order_id)
        if not payment or payment.user_id != user_id:
            raise NotFoundError("Payment not found")

        return self.reconciliation.reconcile(
            gateway_order_id,
            PaymentEvent.CAPTURED,
            {"id": gateway_payment_id},
            source="client",
        )

    def get_payment(self, order_id: int, user_id: int) -> PaymentModel:
        order = self.orders.get_user_order(order_id, user_id)
        if not order:
            raise NotFoundError("Payment not found")

        payment = self.payments.get_by_order(order_id)
        if not payment:
            raise NotFoundError("Payment not found")
        return payment

    def _lost_initiate_race(self, order_id: int, orphaned_gateway_order_id: str) -> PaymentIntent:
        winner = self.payments.get_by_order(order_id)
        if not winner:
            raise TransactionFailure()
        # the orphaned intent stays on the gateway, its receipt still points to this order
        logger.warning(
            f"Concurrent initiate for order {order_id}: keeping {winner.gateway_order_id}, "
            f"orphaned {orphaned_gateway_order_id}"
        )
        return self._intent(winner)

    def _intent(self, payment: PaymentModel) -> PaymentIntent:
        return PaymentIntent(
            order_id=payment.order_id,
            gateway_order_id=payment.gateway_order_id,
            amount=to_minor_units(payment.amount),
            currency=payment.currency,
            public_key=self.gateway.public_key,
        )
