from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator

from ..models.event import EventStatus
from ..utils.fields import is_blank, is_explicit_false, to_decimal, to_flag
from .payment import PaymentIn, PaymentRead
from .service_line import ServiceLine


class FinancialsRead(BaseModel):
    total_cost_without_vat: float = 0.0
    vat_amount: float = 0.0
    total_cost_with_vat: float = 0.0
    discount_amount: float = 0.0
    final_total: float = 0.0
    total_paid: float = 0.0
    balance: float = 0.0


# Shared properties
class EventBase(BaseModel):
    # Required on save; kept optional here so a missing value is reported
    # through the field_errors envelope instead of a raw validation list.
    event_name: Optional[str] = None
    family_name: Optional[str] = None
    event_date: Optional[date] = None
    event_type: Optional[str] = None
    event_time: Optional[str] = None
    location: Optional[str] = None
    city: Optional[str] = None
    concept: Optional[str] = None
    notes: Optional[str] = None
    guest_count: int = 0

    all_inclusive: bool = False
    all_inclusive_price: Decimal = Decimal("0")
    all_inclusive_includes_vat: bool = False
    total_override: Optional[Decimal] = None
    total_override_includes_vat: bool = True
    discount_amount: Decimal = Decimal("0")
    discount_reason: Optional[str] = None
    discount_before_vat: bool = False

    status: EventStatus = EventStatus.QUOTE

    @field_validator("event_date", mode="before")
    @classmethod
    def _blank_date(cls, v: Any) -> Any:
        return None if is_blank(v) else v

    @field_validator("event_name", "family_name", mode="before")
    @classmethod
    def _strip(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @field_validator("guest_count", mode="before")
    @classmethod
    def _count(cls, v: Any) -> int:
        return max(0, int(to_decimal(v)))

    @field_validator("all_inclusive_price", "discount_amount", mode="before")
    @classmethod
    def _money(cls, v: Any) -> Decimal:
        return to_decimal(v)

    @field_validator("total_override", mode="before")
    @classmethod
    def _override(cls, v: Any) -> Optional[Decimal]:
        if is_blank(v):
            return None
        return to_decimal(v)

    @field_validator("all_inclusive", "all_inclusive_includes_vat", "discount_before_vat", mode="before")
    @classmethod
    def _flag(cls, v: Any) -> bool:
        return to_flag(v)

    @field_validator("total_override_includes_vat", mode="before")
    @classmethod
    def _override_vat(cls, v: Any) -> bool:
        return not is_explicit_false(v)

    @field_validator("status", mode="before")
    @classmethod
    def _status(cls, v: Any) -> Any:
        if is_blank(v):
            return EventStatus.QUOTE
        return v.lower() if isinstance(v, str) else v


class EventIn(EventBase):
    pass


class EventSaveRequest(BaseModel):
    event: EventIn
    services: List[ServiceLine] = Field(default_factory=list)
    payments: List[PaymentIn] = Field(default_factory=list)


class EventRead(EventBase):
    id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    services: List[ServiceLine] = Field(
        default_factory=list,
        validation_alias=AliasChoices("services", "service_lines"),
    )
    payments: List[PaymentRead] = Field(default_factory=list)
    financials: Optional[FinancialsRead] = None

    model_config = {"from_attributes": True}


class EventSaveResponse(BaseModel):
    event: EventRead
    financials: FinancialsRead
    created: int
    updated: int
    deleted: int
    # Placeholder id -> persisted id for package items created on this save
    temp_ids: Dict[str, int] = Field(default_factory=dict)
    failures: List[str] = Field(default_factory=list)
