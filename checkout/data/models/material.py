from sqlalchemy import Column, Integer, String, Boolean, Numeric

from checkout.data.database import Base


class MaterialModel(Base):
    __tablename__ = "materials"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    price = Column(Numeric(10, 2), nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
