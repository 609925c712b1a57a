# eventbook/api/api_composition.py
#
# Stateless endpoints over an unsaved working list. Nothing here writes to the
# database; the client posts the whole list and gets the updated list back.

from decimal import Decimal

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..crud import crud_catalog
from ..database import get_db
from ..schemas.composition import (
    CompositionRead,
    ExpandPackageRequest,
    MoveRequest,
    MoveResponse,
    WorkingSetRequest,
)
from ..schemas.event import FinancialsRead
from ..services.event_financials import compute
from ..services.service_composition import expand_package, group, move_line
from ..utils import error_response
from .dependencies import get_vat_rate

router = APIRouter(prefix="/composition", tags=["composition"])


@router.post("/financials", response_model=FinancialsRead)
def working_set_financials(
    payload: WorkingSetRequest,
    vat_rate: Decimal = Depends(get_vat_rate),
):
    """Price a working list; without an event the lines are summed itemized."""
    event = payload.event if payload.event is not None else {}
    summary = compute(event, payload.services, payload.payments, vat_rate)
    return FinancialsRead(**summary.as_payload())


@router.post("/group", response_model=CompositionRead)
def group_working_set(payload: WorkingSetRequest):
    return CompositionRead.model_validate(group(payload.services))


@router.post("/move", response_model=MoveResponse)
def move_working_line(payload: MoveRequest, db: Session = Depends(get_db)):
    catalog = crud_catalog.get_service_map(db)
    try:
        lines = move_line(
            payload.services,
            payload.line_id,
            payload.destination,
            payload.target_position,
            catalog,
        )
    except KeyError as exc:
        raise error_response(
            "Nothing to move",
            {"line_id": str(exc.args[0]) if exc.args else "not_found"},
            status.HTTP_404_NOT_FOUND,
        )
    except ValueError as exc:
        raise error_response("Line cannot be moved", {"line_id": str(exc)})
    return MoveResponse(
        services=lines,
        composition=CompositionRead.model_validate(group(lines)),
    )


@router.post("/packages/{package_id}/expand", response_model=MoveResponse)
def expand_catalog_package(
    package_id: int,
    payload: ExpandPackageRequest,
    db: Session = Depends(get_db),
):
    """Append a catalog package as a placeholder main item plus children."""
    package = crud_catalog.get_package(db, package_id)
    if not package:
        raise error_response(
            "Package not found",
            {"package_id": "not_found"},
            status.HTTP_404_NOT_FOUND,
        )
    catalog = crud_catalog.get_service_map(db)
    lines = [*payload.services, *expand_package(package, catalog, payload.services)]
    return MoveResponse(
        services=lines,
        composition=CompositionRead.model_validate(group(lines)),
    )
