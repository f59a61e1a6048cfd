# checkout/api/routers/orders.py
from typing import List
from fastapi import APIRouter, Depends, Header, HTTPException, Request, Response
from sqlalchemy.orm import Session

from checkout.api.deps import client_ip, get_audit, get_current_user_id
from checkout.data.database import get_db
from checkout.domain.errors import CheckoutError
from checkout.domain.schemas import CheckoutIn, OrderOut, OrderSummaryOut
from checkout.services.audit_service import AuditService
from checkout.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


def get_service(db: Session, audit: AuditService):
    return OrderService(db, audit=audit)


@router.post("/checkout", response_model=OrderOut, status_code=201)
def checkout(
    payload: CheckoutIn,
    request: Request,
    response: Response,
    idempotency_key: str | None = Header(default=None),
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    audit: AuditService = Depends(get_audit),
):
    """
    Turns the caller's cart into an order. 201 for a new order, 200 when the
    same idempotency key replays an existing one.
    """
    key = idempotency_key or payload.idempotency_key
    if not key:
        raise HTTPException(status_code=400, detail="Idempotency-Key header is required")

    svc = get_service(db, audit)
    try:
        order, created = svc.checkout(user_id, key, payload.address_id, ip=client_ip(request))
    except CheckoutError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)

    if not created:
        response.status_code = 200
    return order


@router.get("", response_model=List[OrderSummaryOut])
def list_orders(
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    audit: AuditService = Depends(get_audit),
):
    return get_service(db, audit).list_orders(user_id)


@router.get("/{order_id}", response_model=OrderOut)
def get_order(
    order_id: int,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    audit: AuditService = Depends(get_audit),
):
    svc = get_service(db, audit)
    try:
        return svc.get_order(order_id, user_id)
    except CheckoutError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)
