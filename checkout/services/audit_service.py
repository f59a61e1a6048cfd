# checkout/services/audit_service.py
from enum import Enum

from checkout.data.database import SessionLocal
from checkout.data.models.audit_log import AuditLogModel
from checkout.repos.audit_repo import AuditRepo
from checkout.utils.logging import get_logger

logger = get_logger(__name__)


class AuditAction(str, Enum):
    ORDER_CREATED = "ORDER_CREATED"
    PAYMENT_INITIATED = "PAYMENT_INITIATED"
    PAYMENT_AUTHORIZED = "PAYMENT_AUTHORIZED"
    PAYMENT_CAPTURED = "PAYMENT_CAPTURED"
    PAYMENT_FAILED = "PAYMENT_FAILED"
    PAYMENT_SIGNATURE_INVALID = "PAYMENT_SIGNATURE_INVALID"
    WEBHOOK_SUCCESS = "WEBHOOK_SUCCESS"
    WEBHOOK_FAILURE = "WEBHOOK_FAILURE"
    WEBHOOK_SIGNATURE_INVALID = "WEBHOOK_SIGNATURE_INVALID"


class AuditService:
    """
    Append-only recorder of security relevant events.

    Writes through its own session, so an entry survives a rollback of the
    caller's transaction. Best effort: a failure here is logged and never
    reaches the caller.
    """

    def __init__(self, session_factory=SessionLocal):
        self.session_factory = session_factory

    def record(
        self,
        action: AuditAction,
        entity: str,
        entity_id=None,
        actor_id: int | None = None,
        ip: str | None = None,
        metadata: dict | None = None,
    ) -> None:
        db = self.session_factory()
        try:
            AuditRepo(db).append(
                AuditLogModel(
                    actor_id=actor_id,
                    action=AuditAction(action).value,
                    entity=entity,
                    entity_id=str(entity_id) if entity_id is not None else None,
                    ip=ip,
                    metadata_=metadata,
                )
            )
            db.commit()
        except Exception as e:
            db.rollback()
            logger.error(f"Failed to write audit log {action} for {entity} {entity_id}: {e}")
        finally:
            db.close()
