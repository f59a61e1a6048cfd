# checkout/services/gateway_client.py
from dataclasses import dataclass
import requests
from requests import RequestException

from checkout.domain.errors import GatewayUnavailableError
from checkout.utils.retry import http_retry
from checkout.utils.settings import (
    GATEWAY_BASE_URL,
    GATEWAY_KEY_ID,
    GATEWAY_KEY_SECRET,
    GATEWAY_TIMEOUT_SECONDS,
)
from checkout.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class GatewayIntent:
    gateway_order_id: str
    amount: int  # minor units
    currency: str
    status: str


class GatewayClient:
    """
    REST adapter for the payment gateway's orders/payments API.

    One instance per process, built at app startup and passed in where it is
    needed. No local state beyond the HTTP session.
    """

    def __init__(
        self,
        base_url: str | None = None,
        key_id: str | None = None,
        key_secret: str | None = None,
        timeout: float | None = None,
        session: requests.Session | None = None,
    ):
        self.base_url = (base_url or GATEWAY_BASE_URL).rstrip("/")
        self.key_id = key_id if key_id is not None else GATEWAY_KEY_ID
        self._key_secret = key_secret if key_secret is not None else GATEWAY_KEY_SECRET
        self.timeout = timeout or GATEWAY_TIMEOUT_SECONDS
        self.session = session or requests.Session()

        if not self.is_configured():
            logger.warning("Gateway credentials not configured, payment operations will fail until configured")

    @property
    def public_key(self) -> str:
        return self.key_id

    def is_configured(self) -> bool:
        return bool(self.key_id and self._key_secret)

    def close(self):
        self.session.close()

    def create_intent(self, order_id: int, amount: int, currency: str) -> GatewayIntent:
        """
        Open a gateway order for `amount` minor units. The local order id is
        sent as the receipt so duplicates can be traced on the gateway side.
        """
        if not self.is_configured():
            raise GatewayUnavailableError("Payment gateway is not configured")

        payload = {
            "amount": amount,
            "currency": currency,
            "receipt": str(order_id),
            "payment_capture": 1,
            "notes": {"order_id": str(order_id)},
        }
        data = self._call("POST", "/v1/orders", json=payload)

        logger.info(f"Gateway order {data['id']} created for order {order_id}")
        return GatewayIntent(
            gateway_order_id=data["id"],
            amount=int(data.get("amount", amount)),
            currency=data.get("currency", currency),
            status=data.get("status", "created"),
        )

    def fetch_order(self, gateway_order_id: str) -> dict:
        return self._call("GET", f"/v1/orders/{gateway_order_id}")

    def fetch_payment(self, gateway_payment_id: str) -> dict:
        return self._call("GET", f"/v1/payments/{gateway_payment_id}")

    def _call(self, method: str, path: str, **kwargs) -> dict:
        try:
            return self._request(method, path, **kwargs)
        except RequestException as e:
            logger.error(f"Gateway {method} {path} failed: {e}")
            raise GatewayUnavailableError() from e
        except (ValueError, KeyError) as e:
            logger.error(f"Gateway {method} {path} returned an unexpected body: {e}")
            raise GatewayUnavailableError() from e

    @http_retry()
    def _request(self, method: str, path: str, **kwargs) -> dict:
        url = f"{self.base_url}{path}"
        logger.info(f"GatewayClient {method} {url}")

        resp = self.session.request(
            method,
            url,
            auth=(self.key_id, self._key_secret),
            timeout=self.timeout,
            **kwargs,
        )
        resp.raise_for_status()
        return resp.json()
