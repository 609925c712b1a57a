from sqlalchemy import Column, Date, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from .base import BaseModel


class Payment(BaseModel):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(
        Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True
    )
    amount = Column(Numeric(10, 2), nullable=False)
    payment_date = Column(Date, nullable=True)
    method = Column(String, nullable=True)
    notes = Column(Text, nullable=True)

    event = relationship("Event", back_populates="payments")
