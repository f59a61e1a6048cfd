# checkout/services/webhook_service.py
import json

from checkout.domain.errors import CheckoutError, SignatureInvalidError, UnknownPaymentError, ValidationError
from checkout.domain.status import parse_event
from checkout.services.audit_service import AuditAction, AuditService
from checkout.services.reconciliation import ReconciliationService
from checkout.services.signature import SignatureVerifier
from checkout.utils.logging import get_logger

logger = get_logger(__name__)


class WebhookService:
    """
    Server-to-server confirmation channel. There is no session here: the
    signature over the raw body is the whole trust boundary, so nothing is
    parsed or touched before it passes.

    Signature and envelope problems raise (the route answers 400). Anything
    that goes wrong after that is acknowledged with received=False so the
    gateway does not retry forever.
    """

    def __init__(
        self,
        verifier: SignatureVerifier,
        reconciliation: ReconciliationService,
        audit: AuditService | None = None,
    ):
        self.verifier = verifier
        self.reconciliation = reconciliation
        self.audit = audit or AuditService()

    def handle(self, raw_body: bytes, signature: str | None, ip: str | None = None) -> dict:
        if not signature:
            logger.error("Webhook signature missing")
            self._signature_failure(ip, reason="missing")
            raise SignatureInvalidError("Signature required")

        if not self.verifier.verify_webhook(raw_body, signature):
            logger.error("Webhook signature verification failed")
            self._signature_failure(ip, reason="mismatch")
            raise SignatureInvalidError("Invalid webhook signature")

        try:
            envelope = json.loads(raw_body)
        except ValueError:
            raise ValidationError("Invalid webhook payload")
        if not isinstance(envelope, dict) or not isinstance(envelope.get("event"), str) or not envelope["event"]:
            raise ValidationError("Invalid webhook payload")

        event_name = envelope["event"]
        event = parse_event(event_name)
        if event is None:
            logger.warning(f"Unhandled webhook event: {event_name}")
            return {"received": True}

        entity = _payment_entity(envelope)
        if entity is None:
            raise ValidationError("Invalid webhook payload")
        gateway_order_id = entity.get("order_id")
        if not gateway_order_id:
            logger.error(f"Missing gateway order id in {event_name} event")
            self._processed(event_name, None, ip, success=False)
            return {"received": False, "error": "Missing order id"}

        try:
            result = self.reconciliation.reconcile(gateway_order_id, event, entity, source="webhook")
        except UnknownPaymentError:
            self._processed(event_name, gateway_order_id, ip, success=False)
            return {"received": False, "error": "Unknown payment"}
        except CheckoutError as e:
            logger.error(f"Webhook {event_name} for {gateway_order_id} failed: {e.detail}")
            self._processed(event_name, gateway_order_id, ip, success=False)
            return {"received": False, "error": e.detail}
        except Exception:
            logger.exception(f"Webhook {event_name} for {gateway_order_id} failed")
            self._processed(event_name, gateway_order_id, ip, success=False)
            return {"received": False, "error": "Processing failed"}

        logger.info(f"Webhook processed: {event_name} for {gateway_order_id} (applied={result.applied})")
        self._processed(event_name, gateway_order_id, ip, success=True)
        return {"received": True}

    def _signature_failure(self, ip, reason: str):
        self.audit.record(
            AuditAction.WEBHOOK_SIGNATURE_INVALID,
            entity="Webhook",
            ip=ip,
            metadata={"reason": reason},
        )

    def _processed(self, event_name: str, gateway_order_id, ip, success: bool):
        self.audit.record(
            AuditAction.WEBHOOK_SUCCESS if success else AuditAction.WEBHOOK_FAILURE,
            entity="Webhook",
            entity_id=gateway_order_id,
            ip=ip,
            metadata={"event": event_name},
        )


def _payment_entity(envelope: dict) -> dict | None:
    """payload.payment.entity, {} when a level is absent, None when one is not an object."""
    node = envelope
    for key in ("payload", "payment", "entity"):
        node = node.get(key)
        if node is None:
            return {}
        if not isinstance(node, dict):
            return None
    return node
