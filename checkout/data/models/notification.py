from sqlalchemy import Column, Integer, ForeignKey, String, DateTime, UniqueConstraint
from datetime import datetime, timezone

from checkout.data.database import Base


class NotificationModel(Base):
    """Delivery record - one row per (order, event), so redelivered triggers are dropped."""

    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False)
    event = Column(String(64), nullable=False)
    recipient = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (UniqueConstraint("order_id", "event", name="u_notification_order_event"),)
