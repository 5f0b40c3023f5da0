# storefront/data/models/product.py
from sqlalchemy import Column, Integer, Numeric, String

from storefront.data.database import Base


class ProductModel(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False)
    price = Column(Numeric(10, 2), nullable=False)


class SizeModel(Base):
    __tablename__ = "sizes"

    id = Column(Integer, primary_key=True)
    name = Column(String(50), nullable=False)
    shipping_cost = Column(Numeric(10, 2), nullable=False, default=0)
