import enum

from sqlalchemy import Boolean, Column, Date, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from .base import BaseModel
from .types import CaseInsensitiveEnum


class EventStatus(str, enum.Enum):
    QUOTE = "quote"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Event(BaseModel):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True)
    event_name = Column(String, nullable=False)
    family_name = Column(String, nullable=False)
    event_type = Column(String, nullable=True)
    event_date = Column(Date, nullable=False, index=True)
    event_time = Column(String, nullable=True)
    location = Column(String, nullable=True)
    city = Column(String, nullable=True)
    concept = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    guest_count = Column(Integer, nullable=False, default=0)

    # Pricing modes: all-inclusive beats a manual override, which beats the
    # itemized sum of service lines.
    all_inclusive = Column(Boolean, nullable=False, default=False)
    all_inclusive_price = Column(Numeric(10, 2), nullable=False, default=0)
    all_inclusive_includes_vat = Column(Boolean, nullable=False, default=False)
    total_override = Column(Numeric(10, 2), nullable=True)
    total_override_includes_vat = Column(Boolean, nullable=False, default=True)
    discount_amount = Column(Numeric(10, 2), nullable=False, default=0)
    discount_reason = Column(String, nullable=True)
    discount_before_vat = Column(Boolean, nullable=False, default=False)

    status = Column(
        CaseInsensitiveEnum(EventStatus, name="eventstatus", native_enum=False),
        nullable=False,
        default=EventStatus.QUOTE,
    )

    service_lines = relationship(
        "EventService",
        back_populates="event",
        cascade="all, delete-orphan",
        order_by="EventService.order_index",
    )
    payments = relationship(
        "Payment", back_populates="event", cascade="all, delete-orphan"
    )
