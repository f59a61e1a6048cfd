from sqlalchemy import select
from sqlalchemy.orm import Session

from checkout.data.models.notification import NotificationModel


class NotificationRepo:
    def __init__(self, db: Session):
        self.db = db

    def exists(self, order_id: int, event: str) -> bool:
        return self.db.execute(
            select(NotificationModel.id).where(
                NotificationModel.order_id == order_id,
                NotificationModel.event == event,
            )
        ).first() is not None

    def add(self, notification: NotificationModel) -> NotificationModel:
        self.db.add(notification)
        self.db.flush()
        return notification
