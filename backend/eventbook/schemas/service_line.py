from __future__ import annotations

import enum
import json
import uuid
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, List, Optional, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_serializer,
    field_validator,
    model_validator,
)

from ..utils.fields import is_blank, read_field, to_decimal, to_flag

TEMP_ID_PREFIX = "temp_"


@dataclass(frozen=True)
class TempId:
    """Client-side placeholder for a line that has not been persisted yet."""

    key: str

    def __str__(self) -> str:
        return self.key

    @classmethod
    def new(cls) -> "TempId":
        return cls(f"{TEMP_ID_PREFIX}{uuid.uuid4().hex[:12]}")


LineId = Union[int, TempId]


def parse_line_id(value: Any) -> Optional[LineId]:
    """Integers (or digit strings) are persisted ids; any other text is a placeholder."""
    if value is None or isinstance(value, TempId):
        return value
    if isinstance(value, bool):
        raise ValueError("line id must be an integer or a placeholder string")
    if isinstance(value, int):
        return value
    text = str(value).strip()
    if not text:
        return None
    if text.isdigit():
        return int(text)
    return TempId(text)


def is_placeholder(value: Any) -> bool:
    return isinstance(value, TempId)


class LineKind(str, enum.Enum):
    STANDALONE = "standalone"
    PACKAGE_MAIN = "package_main"
    PACKAGE_CHILD = "package_child"
    LEGACY_MEMBER = "legacy_member"


def line_kind(line: Any) -> LineKind:
    """Resolve the variant of a line stored in any shape.

    Precedence is main item, then child, then legacy member, so a record
    carrying stale fields from an earlier variant still maps to one kind.
    """
    if to_flag(read_field(line, "is_package_main_item")):
        return LineKind.PACKAGE_MAIN
    if not is_blank(read_field(line, "parent_package_event_service_id")):
        return LineKind.PACKAGE_CHILD
    if not is_blank(read_field(line, "package_id")):
        return LineKind.LEGACY_MEMBER
    return LineKind.STANDALONE


class SupplierStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    REJECTED = "rejected"


class OnSiteContact(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None


class PickupPoint(BaseModel):
    time: Optional[str] = None
    location: Optional[str] = None
    contact: OnSiteContact = Field(default_factory=OnSiteContact)

    @field_validator("contact", mode="before")
    @classmethod
    def _contact_or_empty(cls, v: Any) -> Any:
        return v or {}


class TransportUnit(BaseModel):
    """One vehicle and its ordered route."""

    pickup_points: List[PickupPoint] = Field(
        default_factory=list,
        validation_alias=AliasChoices("pickup_points", "pickupPoints"),
    )


def _decode_json(value: Any, fallback: Any) -> Any:
    if isinstance(value, str):
        if not value.strip():
            return fallback
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            return fallback
    return fallback if value is None else value


class ServiceLine(BaseModel):
    """A service line as edited on the client and reconciled on save."""

    model_config = ConfigDict(from_attributes=True)

    id: Optional[LineId] = None
    event_id: Optional[int] = None
    service_id: Optional[int] = None
    service_name: Optional[str] = None
    service_description: Optional[str] = None
    custom_price: Optional[Decimal] = None
    quantity: int = 1
    includes_vat: Optional[bool] = None
    order_index: Optional[float] = None
    status: Optional[str] = None

    is_package_main_item: bool = False
    parent_package_event_service_id: Optional[LineId] = None
    package_id: Optional[str] = None
    package_name: Optional[str] = None
    package_description: Optional[str] = None
    package_price: Optional[Decimal] = None
    package_includes_vat: Optional[bool] = None

    supplier_ids: List[int] = Field(default_factory=list)
    supplier_statuses: dict[int, SupplierStatus] = Field(default_factory=dict)
    supplier_notes: dict[int, str] = Field(default_factory=dict)
    min_suppliers: Optional[int] = None
    admin_notes: Optional[str] = None
    client_notes: Optional[str] = None
    transport_units: List[TransportUnit] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _legacy_transport_fields(cls, data: Any) -> Any:
        # Older rows kept the route in ``pickup_point`` (JSON text or a plain
        # location) next to ``standing_time`` and ``on_site_contact_details``.
        if not isinstance(data, dict) or data.get("transport_units"):
            return data
        raw = data.get("pickup_point")
        if is_blank(raw) and is_blank(data.get("standing_time")):
            return data
        data = dict(data)
        parsed = _decode_json(raw, None)
        if isinstance(parsed, list):
            data["transport_units"] = parsed
        else:
            data["transport_units"] = [
                {
                    "pickup_points": [
                        {
                            "time": data.get("standing_time") or None,
                            "location": raw if isinstance(raw, str) else None,
                            "contact": data.get("on_site_contact_details") or {},
                        }
                    ]
                }
            ]
        return data

    @field_validator("id", "parent_package_event_service_id", mode="before")
    @classmethod
    def _parse_id(cls, v: Any) -> Any:
        return parse_line_id(v)

    @field_validator("package_id", mode="before")
    @classmethod
    def _package_key(cls, v: Any) -> Any:
        if is_blank(v):
            return None
        return str(v)

    @field_validator("custom_price", "package_price", mode="before")
    @classmethod
    def _money(cls, v: Any) -> Any:
        if v is None:
            return None
        return to_decimal(v)

    @field_validator("quantity", mode="before")
    @classmethod
    def _quantity(cls, v: Any) -> int:
        qty = int(to_decimal(v))
        return qty if qty >= 1 else 1

    @field_validator("includes_vat", "package_includes_vat", mode="before")
    @classmethod
    def _flag(cls, v: Any) -> Any:
        if v is None:
            return None
        return to_flag(v)

    @field_validator("is_package_main_item", mode="before")
    @classmethod
    def _main_flag(cls, v: Any) -> bool:
        return to_flag(v)

    @field_validator("supplier_ids", mode="before")
    @classmethod
    def _supplier_ids(cls, v: Any) -> Any:
        ids = _decode_json(v, [])
        if not isinstance(ids, list):
            return []
        return list(dict.fromkeys(ids))

    @field_validator("supplier_statuses", "supplier_notes", mode="before")
    @classmethod
    def _supplier_maps(cls, v: Any) -> Any:
        decoded = _decode_json(v, {})
        return decoded if isinstance(decoded, dict) else {}

    @field_validator("transport_units", mode="before")
    @classmethod
    def _units(cls, v: Any) -> Any:
        decoded = _decode_json(v, [])
        return decoded if isinstance(decoded, list) else []

    @field_serializer("id", "parent_package_event_service_id")
    def _serialize_id(self, v: Optional[LineId]) -> Optional[Union[int, str]]:
        if isinstance(v, TempId):
            return v.key
        return v

    @computed_field  # type: ignore[prop-decorator]
    @property
    def kind(self) -> LineKind:
        return line_kind(self)

    @property
    def is_new(self) -> bool:
        return self.id is None or is_placeholder(self.id)

    def sort_key(self) -> float:
        return self.order_index or 0.0
