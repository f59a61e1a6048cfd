from sqlalchemy import Column, Integer, String, DateTime, JSON
from datetime import datetime, timezone

from checkout.data.database import Base


class AuditLogModel(Base):
    """Append-only. Rows are inserted and never updated or deleted."""

    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True)
    actor_id = Column(Integer, nullable=True)
    action = Column(String(64), nullable=False, index=True)
    entity = Column(String(64), nullable=False)
    entity_id = Column(String(255), nullable=True)
    ip = Column(String(64), nullable=True)
    metadata_ = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
