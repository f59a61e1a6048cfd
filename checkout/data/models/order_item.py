from sqlalchemy import Column, Integer, ForeignKey, String, Numeric

from checkout.data.database import Base


class OrderItemModel(Base):
    """Price snapshot of one cart line. Not linked to products/materials on purpose."""

    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)

    product_id = Column(Integer, nullable=False)
    product_name = Column(String, nullable=False)
    base_price = Column(Numeric(10, 2), nullable=False)

    material_id = Column(Integer, nullable=False)
    material_name = Column(String, nullable=False)
    material_price = Column(Numeric(10, 2), nullable=False)

    quantity = Column(Integer, nullable=False)
    item_price = Column(Numeric(10, 2), nullable=False)
    line_total = Column(Numeric(12, 2), nullable=False)
