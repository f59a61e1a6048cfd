# checkout/services/invoice_service.py
from datetime import datetime, timezone
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError

from checkout.data.models.invoice import InvoiceModel
from checkout.domain.errors import NotFoundError
from checkout.repos.invoice_repo import InvoiceRepo
from checkout.repos.order_repo import OrderRepo
from checkout.services.background import fire_and_forget
from checkout.utils.logging import get_logger

logger = get_logger(__name__)


class InvoiceService:
    """
    Invoices for paid orders, built only from the order snapshot.
    generate() is safe to call any number of times for the same order.
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = InvoiceRepo(db)
        self.orders = OrderRepo(db)

    @staticmethod
    def schedule(order_id: int) -> bool:
        from checkout.tasks.invoices import generate_invoice_task

        return fire_and_forget(generate_invoice_task, order_id)

    def generate(self, order_id: int) -> InvoiceModel:
        existing = self.repo.get_by_order(order_id)
        if existing:
            logger.info(f"Invoice already exists for order {order_id}, skipping generation")
            return existing

        order = self.orders.get_order(order_id)
        if not order:
            raise NotFoundError(f"Order {order_id} not found")

        try:
            invoice = self.repo.add(
                InvoiceModel(
                    order_id=order_id,
                    invoice_number=self._next_invoice_number(),
                    total=order.total,
                )
            )
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            winner = self.repo.get_by_order(order_id)
            if winner:
                logger.info(f"Invoice for order {order_id} created concurrently, skipping")
                return winner
            # invoice number collision with another order, the task retries
            raise

        logger.info(f"Invoice generated: {invoice.invoice_number} for order {order_id}")
        return invoice

    def _next_invoice_number(self) -> str:
        """INV-YYYYMMDD-NNNNN, sequence restarts every UTC day."""
        now = datetime.now(timezone.utc)
        start_of_day = now.replace(hour=0, minute=0, second=0, microsecond=0)
        sequence = self.repo.count_issued_since(start_of_day) + 1
        return f"INV-{now:%Y%m%d}-{sequence:05d}"
