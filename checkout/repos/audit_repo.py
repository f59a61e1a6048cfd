from sqlalchemy.orm import Session

from checkout.data.models.audit_log import AuditLogModel


class AuditRepo:
    """Insert-only on purpose: there is no update or delete here."""

    def __init__(self, db: Session):
        self.db = db

    def append(self, entry: AuditLogModel) -> AuditLogModel:
        self.db.add(entry)
        self.db.flush()
        return entry
