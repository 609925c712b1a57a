from decimal import Decimal
from typing import Any, List, Optional, Union

from pydantic import BaseModel, Field, field_validator

from .event import EventIn
from .payment import PaymentIn
from .service_line import ServiceLine, TempId


class WorkingSetRequest(BaseModel):
    """An unsaved working list of lines, optionally with the event it prices."""

    event: Optional[EventIn] = None
    services: List[ServiceLine] = Field(default_factory=list)
    payments: List[PaymentIn] = Field(default_factory=list)


class MoveRequest(BaseModel):
    services: List[ServiceLine]
    line_id: Union[int, str]
    # "standalone" or a package key (main line id or legacy package_id)
    destination: Union[int, str] = "standalone"
    target_position: int = Field(0, ge=0)


class ExpandPackageRequest(BaseModel):
    services: List[ServiceLine] = Field(default_factory=list)


class PackageGroupRead(BaseModel):
    # None for a package main item that has no id yet
    key: Optional[Union[int, str]] = None
    package_name: str
    package_price: Decimal
    package_includes_vat: bool
    package_description: str
    is_legacy: bool
    main_line: Optional[ServiceLine] = None
    services: List[ServiceLine] = Field(default_factory=list)

    model_config = {"from_attributes": True}

    @field_validator("key", mode="before")
    @classmethod
    def _key(cls, v: Any) -> Any:
        return v.key if isinstance(v, TempId) else v


class CompositionRead(BaseModel):
    packages: List[PackageGroupRead] = Field(default_factory=list)
    standalone: List[ServiceLine] = Field(default_factory=list)
    orphans: List[ServiceLine] = Field(default_factory=list)

    model_config = {"from_attributes": True}


class MoveResponse(BaseModel):
    services: List[ServiceLine]
    composition: CompositionRead
