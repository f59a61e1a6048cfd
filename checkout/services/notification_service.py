# checkout/services/notification_service.py
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from checkout.celery_worker import celery_app
from checkout.data.database import SessionLocal
from checkout.data.models.notification import NotificationModel
from checkout.repos.notification_repo import NotificationRepo
from checkout.services.background import fire_and_forget
from checkout.utils.logging import get_logger

logger = get_logger(__name__)

ORDER_CREATED = "order.created"
PAYMENT_SUCCESS = "payment.success"


class NotificationService:
    """
    Customer notifications, processed asynchronously by celery.
    notify() never blocks and never raises.
    """

    def notify(self, event: str, payload: dict) -> bool:
        return fire_and_forget(send_notification_task, event, payload)


@celery_app.task(
    name="checkout.services.notification_service.send_notification_task",
    autoretry_for=(SQLAlchemyError,),
    retry_backoff=True,
    max_retries=5,
)
def send_notification_task(event: str, payload: dict):
    """
    Records the delivery and hands it to the transport. The (order, event)
    row makes a redelivered trigger a no-op.
    """
    order_id = payload["order_id"]
    recipient = payload.get("email") or ""

    db = SessionLocal()
    try:
        repo = NotificationRepo(db)
        if repo.exists(order_id, event):
            logger.info(f"[NOTIFICATION] {event} for order {order_id} already sent, skipping")
            return {"order_id": order_id, "event": event, "status": "duplicate"}

        repo.add(NotificationModel(order_id=order_id, event=event, recipient=recipient))
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.info(f"[NOTIFICATION] {event} for order {order_id} raced with another delivery, skipping")
        return {"order_id": order_id, "event": event, "status": "duplicate"}
    finally:
        db.close()

    # email transport lives outside this service
    logger.info(f"[NOTIFICATION] {event} -> {recipient}: order {order_id}, total {payload.get('total')}")

    return {"order_id": order_id, "event": event, "status": "sent"}
