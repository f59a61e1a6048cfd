from sqlalchemy import Column, Integer, ForeignKey, String, DateTime, Numeric
from datetime import datetime, timezone

from checkout.data.database import Base


class InvoiceModel(Base):
    __tablename__ = "invoices"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, unique=True)
    invoice_number = Column(String(32), nullable=False, unique=True)
    total = Column(Numeric(12, 2), nullable=False)
    issued_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
