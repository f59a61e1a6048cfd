# checkout/services/signature.py
import hashlib
import hmac

from checkout.utils.settings import GATEWAY_KEY_SECRET, GATEWAY_WEBHOOK_SECRET


class SignatureVerifier:
    """
    HMAC-SHA256 checks for the two confirmation channels, each with its own secret:

    - client callback: hex HMAC(client_secret, "<gateway_order_id>|<gateway_payment_id>")
    - webhook:         hex HMAC(webhook_secret, <raw request body bytes>)

    The webhook must be checked against the exact bytes received, never a
    re-serialized body. Comparison is constant time.
    """

    def __init__(self, client_secret: str | None = None, webhook_secret: str | None = None):
        self._client_secret = client_secret if client_secret is not None else GATEWAY_KEY_SECRET
        self._webhook_secret = webhook_secret if webhook_secret is not None else GATEWAY_WEBHOOK_SECRET

    def verify_client_callback(self, gateway_order_id: str, gateway_payment_id: str, signature: str) -> bool:
        message = f"{gateway_order_id}|{gateway_payment_id}".encode("utf-8")
        return self._matches(self._client_secret, message, signature)

    def verify_webhook(self, raw_body: bytes, signature: str) -> bool:
        return self._matches(self._webhook_secret, raw_body, signature)

    @staticmethod
    def sign(secret: str, message: bytes) -> str:
        return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()

    def _matches(self, secret: str, message: bytes, signature: str | None) -> bool:
        if not secret or not signature:
            return False
        expected = self.sign(secret, message)
        return hmac.compare_digest(expected.encode("ascii"), signature.encode("utf-8"))
