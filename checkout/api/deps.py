# checkout/api/deps.py
from fastapi import Depends, Header, HTTPException, Request
from sqlalchemy.orm import Session

from checkout.data.database import get_db
from checkout.domain.errors import RateLimitedError
from checkout.services.audit_service import AuditService
from checkout.services.gateway_client import GatewayClient
from checkout.services.rate_limiter import RateLimiter
from checkout.services.reconciliation import ReconciliationService
from checkout.services.signature import SignatureVerifier


def get_current_user_id(x_user_id: int | None = Header(default=None)) -> int:
    # session handling lives in front of this service; it forwards the user id
    if x_user_id is None or x_user_id <= 0:
        raise HTTPException(status_code=401, detail="Authentication required")
    return x_user_id


def client_ip(request: Request) -> str | None:
    return request.client.host if request.client else None


def get_gateway_client(request: Request) -> GatewayClient:
    return request.app.state.gateway


def get_signature_verifier(request: Request) -> SignatureVerifier:
    return request.app.state.verifier


def get_rate_limiter(request: Request) -> RateLimiter:
    return request.app.state.rate_limiter


def get_audit() -> AuditService:
    return AuditService()


def get_reconciliation(
    db: Session = Depends(get_db),
    audit: AuditService = Depends(get_audit),
) -> ReconciliationService:
    return ReconciliationService(db, audit=audit)


def limit_initiate(
    user_id: int = Depends(get_current_user_id),
    limiter: RateLimiter = Depends(get_rate_limiter),
) -> None:
    try:
        limiter.check("payments-initiate", user_id)
    except RateLimitedError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)
