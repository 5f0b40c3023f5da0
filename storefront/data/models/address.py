from sqlalchemy import Column, ForeignKey, Integer, String

from storefront.data.database import Base


class AddressModel(Base):
    __tablename__ = "addresses"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    type = Column(String(20), nullable=False)  # billing, shipping

    first_name = Column(String(255), nullable=False, default="")
    last_name = Column(String(255), nullable=False, default="")
    company = Column(String(255), nullable=True)
    address_line_1 = Column(String(255), nullable=False, default="")
    address_line_2 = Column(String(255), nullable=True)
    city = Column(String(255), nullable=False, default="")
    state = Column(String(255), nullable=False, default="")
    postal_code = Column(String(50), nullable=False, default="")
    country = Column(String(100), nullable=False, default="US")
    phone = Column(String(50), nullable=True)
