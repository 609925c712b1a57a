from sqlalchemy import JSON, Boolean, Column, Float, Integer, Numeric, String, Text

from .base import BaseModel

TRANSPORT_CATEGORY = "transport"


class Service(BaseModel):
    """Catalog service that event lines are booked from."""

    __tablename__ = "services"

    id = Column(Integer, primary_key=True, index=True)
    service_name = Column(String, index=True, nullable=False)
    service_description = Column(Text, nullable=True)
    base_price = Column(Numeric(10, 2), nullable=False, default=0)
    default_includes_vat = Column(Boolean, nullable=False, default=False)
    default_min_suppliers = Column(Integer, nullable=False, default=0)
    default_order_index = Column(Float, nullable=False, default=0)
    category = Column(String, nullable=True)
    is_default = Column(Boolean, nullable=False, default=False)


class Package(BaseModel):
    """Catalog bundle of services sold at a single package price."""

    __tablename__ = "packages"

    id = Column(Integer, primary_key=True, index=True)
    package_name = Column(String, nullable=False)
    package_description = Column(Text, nullable=True)
    package_price = Column(Numeric(10, 2), nullable=False, default=0)
    package_includes_vat = Column(Boolean, nullable=False, default=False)
    # Ordered member service ids
    service_ids = Column(JSON, nullable=False, default=list)
