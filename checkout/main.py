# checkout/main.py
from contextlib import asynccontextmanager
from fastapi import FastAPI
import uvicorn

from checkout.api.routers import health, orders, payments, webhooks
from checkout.data.database import init_db
from checkout.services.gateway_client import GatewayClient
from checkout.services.rate_limiter import RateLimiter
from checkout.services.signature import SignatureVerifier
from checkout.utils.settings import check_production_settings
from checkout.utils.logging import get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    app.state.gateway.close()


def create_app(
    gateway: GatewayClient | None = None,
    verifier: SignatureVerifier | None = None,
    rate_limiter: RateLimiter | None = None,
) -> FastAPI:
    check_production_settings()
    init_db()
    logger.info("Database tables ready")

    app = FastAPI(
        title="Checkout Service",
        version="1.0.0",
        lifespan=lifespan,
    )

    # process-wide collaborators, built once and handed to routes through deps
    app.state.gateway = gateway or GatewayClient()
    app.state.verifier = verifier or SignatureVerifier()
    app.state.rate_limiter = rate_limiter or RateLimiter()

    app.include_router(health.router)
    app.include_router(orders.router)
    app.include_router(payments.router)
    app.include_router(webhooks.router)

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
