# checkout/tasks/invoices.py
from sqlalchemy.exc import SQLAlchemyError

from checkout.celery_worker import celery_app
from checkout.data.database import SessionLocal
from checkout.services.invoice_service import InvoiceService
from checkout.utils.logging import get_logger

logger = get_logger(__name__)


@celery_app.task(
    name="checkout.tasks.invoices.generate_invoice_task",
    autoretry_for=(SQLAlchemyError,),
    retry_backoff=True,
    max_retries=5,
)
def generate_invoice_task(order_id: int):
    logger.info(f"Generate invoice task started for order {order_id}")

    db = SessionLocal()
    try:
        invoice = InvoiceService(db).generate(order_id)
        return {"order_id": order_id, "invoice_number": invoice.invoice_number}
    finally:
        db.close()
