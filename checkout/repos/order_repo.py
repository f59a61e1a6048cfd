# checkout/repos/order_repo.py
from sqlalchemy import select, update
from sqlalchemy.orm import Session

from checkout.data.models.order import OrderModel
from checkout.data.models.order_item import OrderItemModel
from checkout.data.models.order_address import OrderAddressModel
from checkout.domain.status import OrderStatus


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_order(self, order_id: int) -> OrderModel | None:
        return self.db.get(OrderModel, order_id)

    def get_user_order(self, order_id: int, user_id: int) -> OrderModel | None:
        return self.db.execute(
            select(OrderModel).where(
                OrderModel.id == order_id,
                OrderModel.user_id == user_id,
            )
        ).scalar_one_or_none()

    def get_by_idempotency_key(self, user_id: int, idempotency_key: str) -> OrderModel | None:
        return self.db.execute(
            select(OrderModel).where(
                OrderModel.user_id == user_id,
                OrderModel.idempotency_key == idempotency_key,
            )
        ).scalar_one_or_none()

    def list_user_orders(self, user_id: int) -> list[OrderModel]:
        return list(
            self.db.execute(
                select(OrderModel)
                .where(OrderModel.user_id == user_id)
                .order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
            ).scalars()
        )

    def add_order(
        self,
        order: OrderModel,
        items: list[OrderItemModel],
        address: OrderAddressModel,
    ) -> OrderModel:
        # flush only, the caller owns the transaction
        order.items = items
        order.address = address
        self.db.add(order)
        self.db.flush()
        return order

    def update_status_if(self, order_id: int, old_status: OrderStatus, new_status: OrderStatus) -> int:
        """Conditional status change, 0 rows means someone else moved the order first."""
        result = self.db.execute(
            update(OrderModel)
            .where(OrderModel.id == order_id, OrderModel.status == old_status)
            .values(status=new_status)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def get_order_for_update(self, order_id: int) -> OrderModel | None:
        return self.db.execute(
            select(OrderModel)
            .where(OrderModel.id == order_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
