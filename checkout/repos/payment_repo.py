# checkout/repos/payment_repo.py
from sqlalchemy import select, update
from sqlalchemy.orm import Session

from checkout.data.models.payment import PaymentModel
from checkout.domain.status import PaymentStatus


class PaymentRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_by_order(self, order_id: int) -> PaymentModel | None:
        return self.db.execute(
            select(PaymentModel).where(PaymentModel.order_id == order_id)
        ).scalar_one_or_none()

    def get_by_gateway_order_id(self, gateway_order_id: str, for_update: bool = False) -> PaymentModel | None:
        stmt = select(PaymentModel).where(PaymentModel.gateway_order_id == gateway_order_id)
        if for_update:
            # row lock on postgres, populate_existing so a cached instance is not reused
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        return self.db.execute(stmt).scalar_one_or_none()

    def add(self, payment: PaymentModel) -> PaymentModel:
        self.db.add(payment)
        self.db.flush()
        return payment

    def advance_status(
        self,
        payment_id: int,
        old_status: PaymentStatus,
        new_status: PaymentStatus,
        gateway_payment_id: str | None,
    ) -> int:
        """
        Compare-and-set on status. Returns rowcount; 0 means a concurrent
        reconciliation already moved this payment.
        """
        result = self.db.execute(
            update(PaymentModel)
            .where(PaymentModel.id == payment_id, PaymentModel.status == old_status)
            .values(status=new_status, gateway_payment_id=gateway_payment_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount
