# checkout/repos/cart_repo.py
from sqlalchemy import select, delete
from sqlalchemy.orm import Session

from checkout.data.models.cart import CartModel
from checkout.data.models.cart_item import CartItemModel
from checkout.data.models.product import ProductModel
from checkout.data.models.material import MaterialModel


class CartRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_cart_by_user(self, user_id: int) -> CartModel | None:
        return self.db.execute(
            select(CartModel).where(CartModel.user_id == user_id)
        ).scalar_one_or_none()

    def get_cart_lines(self, cart_id: int) -> list[tuple[CartItemModel, ProductModel, MaterialModel]]:
        """Cart items joined with the product and material rows they point at."""
        rows = self.db.execute(
            select(CartItemModel, ProductModel, MaterialModel)
            .join(ProductModel, ProductModel.id == CartItemModel.product_id)
            .join(MaterialModel, MaterialModel.id == CartItemModel.material_id)
            .where(CartItemModel.cart_id == cart_id)
            .order_by(CartItemModel.id)
        ).all()
        return [tuple(row) for row in rows]

    def clear_cart(self, cart_id: int) -> int:
        result = self.db.execute(
            delete(CartItemModel).where(CartItemModel.cart_id == cart_id)
        )
        return result.rowcount
