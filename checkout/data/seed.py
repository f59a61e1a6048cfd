# checkout/data/seed.py
from decimal import Decimal

from checkout.data.database import SessionLocal
from checkout.data.models import (
    AddressModel,
    CartItemModel,
    CartModel,
    MaterialModel,
    ProductModel,
    UserModel,
)


def seed(session_factory=SessionLocal):
    """Local development data: one user with an address and a cart holding one product."""
    db = session_factory()
    try:
        # not forcing: only seed if empty
        if db.query(UserModel).first():
            return
        user = UserModel(name="Demo Customer", email="demo@example.com", phone="+910000000000")
        product = ProductModel(name="Servo", base_price=Decimal("19.99"), is_active=True)
        material = MaterialModel(name="PLA", price=Decimal("0.00"), is_active=True)
        db.add_all([user, product, material])
        db.flush()

        db.add(
            AddressModel(
                user_id=user.id,
                line1="12 MG Road",
                city="Bengaluru",
                state="KA",
                postal_code="560001",
                country="IN",
            )
        )
        cart = CartModel(user_id=user.id)
        cart.items = [CartItemModel(product_id=product.id, material_id=material.id, quantity=3)]
        db.add(cart)
        db.commit()
    finally:
        db.close()


if __name__ == "__main__":
    from checkout.data.database import init_db

    init_db()
    seed()
