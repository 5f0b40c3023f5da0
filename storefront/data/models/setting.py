from sqlalchemy import Column, Integer, String, Text

from storefront.data.database import Base


class SettingModel(Base):
    __tablename__ = "settings"

    id = Column(Integer, primary_key=True)
    key = Column(String(255), nullable=False, unique=True)
    value = Column(Text, nullable=True)
    type = Column(String(50), nullable=False, default="string")
