# checkout/api/routers/webhooks.py
from fastapi import APIRouter, Depends, Header, HTTPException, Request
from starlette.concurrency import run_in_threadpool

from checkout.api.deps import client_ip, get_audit, get_reconciliation, get_signature_verifier
from checkout.domain.errors import CheckoutError
from checkout.domain.schemas import WebhookAck
from checkout.services.audit_service import AuditService
from checkout.services.reconciliation import ReconciliationService
from checkout.services.signature import SignatureVerifier
from checkout.services.webhook_service import WebhookService
from checkout.utils.settings import GATEWAY_NAME

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@router.post("/{gateway}", response_model=WebhookAck)
async def gateway_webhook(
    gateway: str,
    request: Request,
    x_signature: str | None = Header(default=None),
    verifier: SignatureVerifier = Depends(get_signature_verifier),
    reconciliation: ReconciliationService = Depends(get_reconciliation),
    audit: AuditService = Depends(get_audit),
):
    """
    No authentication: the X-Signature HMAC over the raw body is checked
    before anything else. 400 on signature/envelope errors, 200 otherwise.
    """
    if gateway != GATEWAY_NAME:
        raise HTTPException(status_code=404, detail="Unknown gateway")

    raw_body = await request.body()
    svc = WebhookService(verifier, reconciliation, audit=audit)
    try:
        return await run_in_threadpool(svc.handle, raw_body, x_signature, client_ip(request))
    except CheckoutError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)
