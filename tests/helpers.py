import json
import os

from sqlalchemy import func, select

from checkout.services.signature import SignatureVerifier


def count(db, model, **filters):
    stmt = select(func.count()).select_from(model)
    for name, value in filters.items():
        stmt = stmt.where(getattr(model, name) == value)
    return db.execute(stmt).scalar_one()


def checkout(client, customer, key="key-1"):
    return client.post(
        "/orders/checkout",
        json={"address_id": customer.address_id},
        headers={**customer.headers, "Idempotency-Key": key},
    )


def initiate(client, customer, order_id):
    return client.post(f"/payments/initiate/{order_id}", headers=customer.headers)


def client_signature(gateway_order_id, gateway_payment_id):
    message = f"{gateway_order_id}|{gateway_payment_id}".encode("utf-8")
    return SignatureVerifier.sign(os.environ["GATEWAY_KEY_SECRET"], message)


def webhook_body(event, gateway_order_id, gateway_payment_id="pay_fake_1", **entity):
    envelope = {
        "event": event,
        "payload": {
            "payment": {
                "entity": {"id": gateway_payment_id, "order_id": gateway_order_id, **entity},
            }
        },
    }
    return json.dumps(envelope).encode("utf-8")


def post_webhook(client, body, signature=None):
    headers = {"Content-Type": "application/json"}
    if signature is None:
        signature = SignatureVerifier.sign(os.environ["GATEWAY_WEBHOOK_SECRET"], body)
    if signature:
        headers["X-Signature"] = signature
    return client.post("/webhooks/razorpay", content=body, headers=headers)


class FakeRedis:
    """Just enough of redis for the rate limiter's INCR/EXPIRE script."""

    def __init__(self):
        self.counts = {}
        self.ttls = {}

    def eval(self, script, numkeys, key, window):
        self.counts[key] = self.counts.get(key, 0) + 1
        if self.counts[key] == 1:
            self.ttls[key] = int(window)
        return self.counts[key]
