# checkout/api/routers/payments.py
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from checkout.api.deps import (
    client_ip,
    get_audit,
    get_current_user_id,
    get_gateway_client,
    get_reconciliation,
    get_signature_verifier,
    limit_initiate,
)
from checkout.data.database import get_db
from checkout.domain.errors import CheckoutError
from checkout.domain.schemas import InitiatePaymentOut, PaymentOut, VerifyPaymentIn, VerifyPaymentOut
from checkout.services.audit_service import AuditService
from checkout.services.gateway_client import GatewayClient
from checkout.services.payment_service import PaymentService
from checkout.services.reconciliation import ReconciliationService
from checkout.services.signature import SignatureVerifier

router = APIRouter(prefix="/payments", tags=["payments"])


def get_service(
    db: Session = Depends(get_db),
    gateway: GatewayClient = Depends(get_gateway_client),
    verifier: SignatureVerifier = Depends(get_signature_verifier),
    reconciliation: ReconciliationService = Depends(get_reconciliation),
    audit: AuditService = Depends(get_audit),
) -> PaymentService:
    return PaymentService(db, gateway, verifier, reconciliation, audit=audit)


@router.post(
    "/initiate/{order_id}",
    response_model=InitiatePaymentOut,
    dependencies=[Depends(limit_initiate)],
)
def initiate_payment(
    order_id: int,
    request: Request,
    user_id: int = Depends(get_current_user_id),
    svc: PaymentService = Depends(get_service),
):
    """Opens the gateway intent. Takes no body: the amount is always the stored order total."""
    try:
        return svc.initiate(order_id, user_id, ip=client_ip(request))
    except CheckoutError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)


@router.post("/verify", response_model=VerifyPaymentOut)
def verify_payment(
    payload: VerifyPaymentIn,
    request: Request,
    user_id: int = Depends(get_current_user_id),
    svc: PaymentService = Depends(get_service),
):
    try:
        return svc.verify(
            user_id,
            payload.gateway_order_id,
            payload.gateway_payment_id,
            payload.signature,
            ip=client_ip(request),
        )
    except CheckoutError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)


@router.get("/{order_id}", response_model=PaymentOut)
def get_payment(
    order_id: int,
    user_id: int = Depends(get_current_user_id),
    svc: PaymentService = Depends(get_service),
):
    try:
        return svc.get_payment(order_id, user_id)
    except CheckoutError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)
