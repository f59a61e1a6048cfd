# checkout/data/models/order.py
from sqlalchemy import Column, Integer, ForeignKey, String, DateTime, Numeric, Enum, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime, timezone

from checkout.data.database import Base
from checkout.domain.status import OrderStatus


class OrderModel(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    idempotency_key = Column(String(255), nullable=False)

    status = Column(
        Enum(OrderStatus, name="order_status", native_enum=False, length=32),
        nullable=False,
        default=OrderStatus.CREATED,
    )
    subtotal = Column(Numeric(12, 2), nullable=False)
    total = Column(Numeric(12, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    items = relationship("OrderItemModel", order_by="OrderItemModel.id", lazy="selectin")
    address = relationship("OrderAddressModel", uselist=False, lazy="selectin")

    # the real checkout deduplication, the pre-insert lookup is only a shortcut
    __table_args__ = (UniqueConstraint("user_id", "idempotency_key", name="u_order_user_idempotency_key"),)
