from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class ServiceCreate(BaseModel):
    service_name: str
    service_description: Optional[str] = None
    base_price: Decimal = Decimal("0")
    default_includes_vat: bool = False
    default_min_suppliers: int = Field(0, ge=0)
    default_order_index: float = 0
    category: Optional[str] = None
    is_default: bool = False


class ServiceRead(ServiceCreate):
    id: int

    model_config = {"from_attributes": True}


class PackageCreate(BaseModel):
    package_name: str
    package_description: Optional[str] = None
    package_price: Decimal = Decimal("0")
    package_includes_vat: bool = False
    service_ids: List[int] = Field(default_factory=list)

    @field_validator("service_ids")
    @classmethod
    def _unique(cls, v: List[int]) -> List[int]:
        return list(dict.fromkeys(v))


class PackageRead(PackageCreate):
    id: int

    model_config = {"from_attributes": True}


class SupplierCreate(BaseModel):
    name: str
    phone: Optional[str] = None
    emails: List[str] = Field(default_factory=list)


class SupplierRead(SupplierCreate):
    id: int

    model_config = {"from_attributes": True}
