# checkout/data/models/payment.py
from sqlalchemy import Column, Integer, ForeignKey, String, DateTime, Numeric, Enum
from datetime import datetime, timezone

from checkout.data.database import Base
from checkout.domain.status import PaymentStatus


def _now():
    return datetime.now(timezone.utc)


class PaymentModel(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, unique=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    amount = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(3), nullable=False)
    gateway = Column(String(32), nullable=False)
    gateway_order_id = Column(String(255), nullable=False, unique=True)
    gateway_payment_id = Column(String(255), nullable=True)

    status = Column(
        Enum(PaymentStatus, name="payment_status", native_enum=False, length=32),
        nullable=False,
        default=PaymentStatus.INITIATED,
    )
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now, onupdate=_now)
