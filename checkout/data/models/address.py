from sqlalchemy import Column, Integer, String, ForeignKey

from checkout.data.database import Base


class AddressModel(Base):
    """Live, user-editable address book entry. Orders never point here."""

    __tablename__ = "addresses"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    line1 = Column(String, nullable=False)
    line2 = Column(String, nullable=True)
    city = Column(String, nullable=False)
    state = Column(String, nullable=False)
    postal_code = Column(String, nullable=False)
    country = Column(String, nullable=False)
