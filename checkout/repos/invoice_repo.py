from datetime import datetime

from sqlalchemy import select, func
from sqlalchemy.orm import Session

from checkout.data.models.invoice import InvoiceModel


class InvoiceRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_by_order(self, order_id: int) -> InvoiceModel | None:
        return self.db.execute(
            select(InvoiceModel).where(InvoiceModel.order_id == order_id)
        ).scalar_one_or_none()

    def count_issued_since(self, since: datetime) -> int:
        return self.db.execute(
            select(func.count(InvoiceModel.id)).where(InvoiceModel.issued_at >= since)
        ).scalar_one()

    def add(self, invoice: InvoiceModel) -> InvoiceModel:
        self.db.add(invoice)
        self.db.flush()
        return invoice
