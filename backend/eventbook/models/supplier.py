from sqlalchemy import JSON, Column, Integer, String

from .base import BaseModel


class Supplier(BaseModel):
    __tablename__ = "suppliers"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, index=True)
    phone = Column(String, nullable=True)
    emails = Column(JSON, nullable=False, default=list)
