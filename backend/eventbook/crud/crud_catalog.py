from sqlalchemy.orm import Session
from typing import Dict, List

from .. import models, schemas


def get_services(db: Session, skip: int = 0, limit: int = 500) -> List[models.Service]:
    return (
        db.query(models.Service)
        .order_by(models.Service.default_order_index, models.Service.id)
        .offset(skip)
        .limit(limit)
        .all()
    )


def get_service_map(db: Session) -> Dict[int, models.Service]:
    return {svc.id: svc for svc in db.query(models.Service).all()}


def create_service(db: Session, service_in: schemas.ServiceCreate) -> models.Service:
    db_service = models.Service(**service_in.model_dump())
    db.add(db_service)
    db.commit()
    db.refresh(db_service)
    return db_service


def get_packages(db: Session) -> List[models.Package]:
    return db.query(models.Package).order_by(models.Package.id).all()


def get_package(db: Session, package_id: int) -> models.Package | None:
    return db.query(models.Package).filter(models.Package.id == package_id).first()


def create_package(db: Session, package_in: schemas.PackageCreate) -> models.Package:
    # Member services must exist in the catalog
    known = {
        sid
        for (sid,) in db.query(models.Service.id)
        .filter(models.Service.id.in_(package_in.service_ids))
        .all()
    }
    missing = [sid for sid in package_in.service_ids if sid not in known]
    if missing:
        raise ValueError(f"Unknown service ids: {missing}")
    db_package = models.Package(**package_in.model_dump())
    db.add(db_package)
    db.commit()
    db.refresh(db_package)
    return db_package


def get_suppliers(db: Session) -> List[models.Supplier]:
    return db.query(models.Supplier).order_by(models.Supplier.name).all()


def create_supplier(db: Session, supplier_in: schemas.SupplierCreate) -> models.Supplier:
    db_supplier = models.Supplier(**supplier_in.model_dump())
    db.add(db_supplier)
    db.commit()
    db.refresh(db_supplier)
    return db_supplier
