from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, field_validator

from ..utils.fields import is_blank, to_decimal


class PaymentIn(BaseModel):
    id: Optional[int] = None
    amount: Decimal = Decimal("0")
    payment_date: Optional[date] = None
    method: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def _drop_placeholder(cls, v: Any) -> Any:
        # Client-side rows carry text ids until saved
        if isinstance(v, str) and not v.strip().isdigit():
            return None
        return v

    @field_validator("amount", mode="before")
    @classmethod
    def _amount(cls, v: Any) -> Decimal:
        return to_decimal(v)

    @field_validator("payment_date", mode="before")
    @classmethod
    def _blank_date(cls, v: Any) -> Any:
        return None if is_blank(v) else v


class PaymentRead(BaseModel):
    id: int
    event_id: int
    amount: Decimal
    payment_date: Optional[date] = None
    method: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
