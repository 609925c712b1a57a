# eventbook/api/api_catalog.py

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..crud import crud_catalog
from ..database import get_db
from ..schemas.catalog import (
    PackageCreate,
    PackageRead,
    ServiceCreate,
    ServiceRead,
    SupplierCreate,
    SupplierRead,
)
from ..utils import error_response

router = APIRouter(tags=["catalog"])


@router.get("/services", response_model=List[ServiceRead])
def list_services(db: Session = Depends(get_db)):
    return crud_catalog.get_services(db)


@router.post("/services", response_model=ServiceRead, status_code=status.HTTP_201_CREATED)
def create_service(service_in: ServiceCreate, db: Session = Depends(get_db)):
    return crud_catalog.create_service(db, service_in)


@router.get("/packages", response_model=List[PackageRead])
def list_packages(db: Session = Depends(get_db)):
    return crud_catalog.get_packages(db)


@router.post("/packages", response_model=PackageRead, status_code=status.HTTP_201_CREATED)
def create_package(package_in: PackageCreate, db: Session = Depends(get_db)):
    try:
        return crud_catalog.create_package(db, package_in)
    except ValueError as exc:
        raise error_response(str(exc), {"service_ids": "invalid"})


@router.get("/suppliers", response_model=List[SupplierRead])
def list_suppliers(db: Session = Depends(get_db)):
    return crud_catalog.get_suppliers(db)


@router.post("/suppliers", response_model=SupplierRead, status_code=status.HTTP_201_CREATED)
def create_supplier(supplier_in: SupplierCreate, db: Session = Depends(get_db)):
    return crud_catalog.create_supplier(db, supplier_in)
