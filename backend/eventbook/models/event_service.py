from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Float,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from .base import BaseModel


class EventService(BaseModel):
    """A service line booked for one event.

    One row per line, whatever its variant: standalone, package main item,
    package child (``parent_package_event_service_id``) or legacy package
    member (shared ``package_id`` string with duplicated package fields).
    """

    __tablename__ = "event_services"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(
        Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True
    )
    service_id = Column(
        Integer, ForeignKey("services.id", ondelete="SET NULL"), nullable=True, index=True
    )
    service_name = Column(String, nullable=True)
    service_description = Column(Text, nullable=True)
    custom_price = Column(Numeric(10, 2), nullable=False, default=0)
    quantity = Column(Integer, nullable=False, default=1)
    includes_vat = Column(Boolean, nullable=False, default=False)
    order_index = Column(Float, nullable=False, default=0)
    status = Column(String, nullable=False, default="pending")

    is_package_main_item = Column(Boolean, nullable=False, default=False)
    # Not a foreign key: a child may outlive a parent that failed to save.
    parent_package_event_service_id = Column(Integer, nullable=True, index=True)
    package_id = Column(String, nullable=True, index=True)
    package_name = Column(String, nullable=True)
    package_description = Column(Text, nullable=True)
    package_price = Column(Numeric(10, 2), nullable=True)
    package_includes_vat = Column(Boolean, nullable=True)

    supplier_ids = Column(JSON, nullable=False, default=list)
    supplier_statuses = Column(JSON, nullable=False, default=dict)
    supplier_notes = Column(JSON, nullable=False, default=dict)
    min_suppliers = Column(Integer, nullable=False, default=0)
    admin_notes = Column(Text, nullable=True)
    client_notes = Column(Text, nullable=True)
    # Transport category only: [{"pickup_points": [{time, location, contact}]}]
    transport_units = Column(JSON, nullable=True)

    event = relationship("Event", back_populates="service_lines")
    service = relationship("Service")
