# checkout/services/order_service.py
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from checkout.data.models.order import OrderModel
from checkout.data.models.order_item import OrderItemModel
from checkout.data.models.order_address import OrderAddressModel
from checkout.domain.errors import NotFoundError, TransactionFailure, ValidationError
from checkout.domain.status import OrderStatus
from checkout.repos.cart_repo import CartRepo
from checkout.repos.order_repo import OrderRepo
from checkout.repos.user_repo import UserRepo
from checkout.services.audit_service import AuditAction, AuditService
from checkout.services.notification_service import NotificationService, ORDER_CREATED
from checkout.services.pricing import PriceSnapshotter
from checkout.utils.logging import get_logger

logger = get_logger(__name__)

MAX_IDEMPOTENCY_KEY_LENGTH = 255


class OrderService:
    """
    Order ledger: turns the user's cart into an immutable, price-frozen order.

    Orders are financial records. Once committed nothing here changes their
    lines or totals; status moves are owned by payment reconciliation.
    """

    def __init__(
        self,
        db: Session,
        audit: AuditService | None = None,
        notifications: NotificationService | None = None,
    ):
        self.db = db
        self.repo = OrderRepo(db)
        self.carts = CartRepo(db)
        self.users = UserRepo(db)
        self.snapshotter = PriceSnapshotter(db)
        self.audit = audit or AuditService()
        self.notifications = notifications or NotificationService()

    def checkout(
        self,
        user_id: int,
        idempotency_key: str,
        address_id: int,
        ip: str | None = None,
    ) -> tuple[OrderModel, bool]:
        """
        Use case: checkout. Returns (order, created).

        1. same (user, key) already ordered -> return that order untouched
        2. snapshot cart prices (empty / inactive items -> 400, cart untouched)
        3. insert order + items + address snapshot and clear the cart
        4. commit - all of 3 lands or none of it does

        The unique (user_id, idempotency_key) constraint decides concurrent
        duplicates; the loser returns the winner's order.
        """
        idempotency_key = (idempotency_key or "").strip()
        if not idempotency_key:
            raise ValidationError("Idempotency-Key is required")
        if len(idempotency_key) > MAX_IDEMPOTENCY_KEY_LENGTH:
            raise ValidationError("Idempotency-Key is too long")

        existing = self.repo.get_by_idempotency_key(user_id, idempotency_key)
        if existing:
            logger.info(f"Replaying order {existing.id} for user {user_id}, key {idempotency_key}")
            return existing, False

        snapshot = self.snapshotter.snapshot(user_id)

        address = self.users.get_user_address(address_id, user_id)
        if not address:
            raise NotFoundError("Address not found")
        user = self.users.get_user(user_id)

        order = OrderModel(
            user_id=user_id,
            idempotency_key=idempotency_key,
            status=OrderStatus.CREATED,
            subtotal=snapshot.subtotal,
            total=snapshot.total,
        )
        items = [
            OrderItemModel(
                product_id=line.product_id,
                product_name=line.product_name,
                base_price=line.base_price,
                material_id=line.material_id,
                material_name=line.material_name,
                material_price=line.material_price,
                quantity=line.quantity,
                item_price=line.item_price,
                line_total=line.line_total,
            )
            for line in snapshot.lines
        ]
        address_snapshot = OrderAddressModel(
            full_name=(user.name if user else None) or "N/A",
            phone=(user.phone if user else None) or "N/A",
            line1=address.line1,
            line2=address.line2,
            city=address.city,
            state=address.state,
            postal_code=address.postal_code,
            country=address.country,
        )

        try:
            self.repo.add_order(order, items, address_snapshot)

            cleared = self.carts.clear_cart(snapshot.cart_id)
            if cleared != len(snapshot.lines):
                # another checkout consumed (or someone edited) this cart meanwhile
                self.db.rollback()
                logger.warning(
                    f"Cart {snapshot.cart_id} changed during checkout "
                    f"(expected {len(snapshot.lines)} items, cleared {cleared})"
                )
                raise TransactionFailure("Cart changed during checkout, please retry")

            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            winner = self.repo.get_by_idempotency_key(user_id, idempotency_key)
            if winner:
                logger.info(f"Concurrent checkout for key {idempotency_key} lost to order {winner.id}")
                return winner, False
            logger.exception(f"Checkout for user {user_id} violated a constraint")
            raise TransactionFailure()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception(f"Checkout transaction failed for user {user_id}")
            raise TransactionFailure()

        logger.info(f"Order {order.id} created from cart {snapshot.cart_id}, total {order.total}")

        self.audit.record(
            AuditAction.ORDER_CREATED,
            entity="Order",
            entity_id=order.id,
            actor_id=user_id,
            ip=ip,
            metadata={"total": str(order.total), "items": len(items)},
        )
        self.notifications.notify(
            ORDER_CREATED,
            {
                "order_id": order.id,
                "email": user.email if user else None,
                "total": str(order.total),
            },
        )

        return order, True

    def get_order(self, order_id: int, user_id: int) -> OrderModel:
        order = self.repo.get_user_order(order_id, user_id)
        if not order:
            raise NotFoundError("Order not found")
        return order

    def list_orders(self, user_id: int) -> list[OrderModel]:
        return self.repo.list_user_orders(user_id)
