# checkout/services/pricing.py
"""
Price snapshot of a user's cart.

    item_price = base_price + material_price
    line_total = item_price * quantity
    subtotal   = sum(line_total)
    total      = subtotal            (no tax or shipping yet)

All arithmetic is Decimal, rounded half-up to cents.
"""
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from sqlalchemy.orm import Session

from checkout.domain.errors import EmptyCartError, InactiveItemError
from checkout.repos.cart_repo import CartRepo
from checkout.utils.logging import get_logger

logger = get_logger(__name__)

CENTS = Decimal("0.01")


def money(value) -> Decimal:
    return Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)


def to_minor_units(amount: Decimal) -> int:
    """59.97 -> 5997"""
    return int((money(amount) * 100).to_integral_value(rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class LineSnapshot:
    product_id: int
    product_name: str
    base_price: Decimal
    material_id: int
    material_name: str
    material_price: Decimal
    quantity: int
    item_price: Decimal
    line_total: Decimal


@dataclass(frozen=True)
class PriceSnapshot:
    cart_id: int
    lines: tuple[LineSnapshot, ...]
    subtotal: Decimal
    total: Decimal


class PriceSnapshotter:
    def __init__(self, db: Session):
        self.carts = CartRepo(db)

    def snapshot(self, user_id: int) -> PriceSnapshot:
        cart = self.carts.get_cart_by_user(user_id)
        if not cart:
            raise EmptyCartError()

        rows = self.carts.get_cart_lines(cart.id)
        if not rows:
            raise EmptyCartError()

        inactive = [item.id for item, product, material in rows if not product.is_active or not material.is_active]
        if inactive:
            logger.info(f"Cart {cart.id} of user {user_id} has inactive items {inactive}")
            raise InactiveItemError(inactive)

        lines = []
        subtotal = Decimal("0.00")
        for item, product, material in rows:
            base_price = money(product.base_price)
            material_price = money(material.price)
            item_price = money(base_price + material_price)
            line_total = money(item_price * item.quantity)
            subtotal += line_total

            lines.append(
                LineSnapshot(
                    product_id=product.id,
                    product_name=product.name,
                    base_price=base_price,
                    material_id=material.id,
                    material_name=material.name,
                    material_price=material_price,
                    quantity=item.quantity,
                    item_price=item_price,
                    line_total=line_total,
                )
            )

        subtotal = money(subtotal)
        return PriceSnapshot(cart_id=cart.id, lines=tuple(lines), subtotal=subtotal, total=subtotal)
