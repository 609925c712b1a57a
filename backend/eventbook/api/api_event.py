# eventbook/api/api_event.py

import logging
from decimal import Decimal
from typing import List

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session, sessionmaker

from ..crud import crud_event
from ..crud.entity_store import EventStores
from ..database import get_db, get_db_session, get_session_factory
from ..models.event import Event
from ..schemas.composition import CompositionRead
from ..schemas.event import (
    EventRead,
    EventSaveRequest,
    EventSaveResponse,
    FinancialsRead,
)
from ..schemas.service_line import ServiceLine
from ..services.event_financials import compute
from ..services.event_save import (
    EventSaveError,
    EventValidationError,
    SaveResult,
    save_event,
)
from ..services.service_composition import group
from ..utils import error_response, not_found
from .dependencies import get_event_stores, get_vat_rate

logger = logging.getLogger(__name__)

router = APIRouter(tags=["events"])


def _financials(event: Event, vat_rate: Decimal) -> FinancialsRead:
    summary = compute(event, event.service_lines, event.payments, vat_rate)
    return FinancialsRead(**summary.as_payload())


def _event_read(event: Event, vat_rate: Decimal) -> EventRead:
    read = EventRead.model_validate(event)
    read.financials = _financials(event, vat_rate)
    return read


def _save_response(
    result: SaveResult, session_factory: sessionmaker, vat_rate: Decimal
) -> EventSaveResponse:
    plan = result.plan
    with get_db_session(session_factory) as db:
        event = crud_event.get_event(db, result.event["id"])
        read = _event_read(event, vat_rate)
    return EventSaveResponse(
        event=read,
        financials=FinancialsRead(**result.financials.as_payload()),
        created=plan.created_count,
        updated=len(plan.to_update),
        deleted=len(plan.to_delete),
        temp_ids={temp.key: real for temp, real in plan.temp_id_map.items()},
        failures=[f"{op} {ref}: {msg}" for op, ref, msg in plan.failures],
    )


async def _save(
    payload: EventSaveRequest,
    stores: EventStores,
    event_id: int | None,
    vat_rate: Decimal,
) -> SaveResult:
    try:
        return await save_event(
            stores,
            payload.event,
            payload.services,
            payload.payments,
            event_id=event_id,
            vat_rate=vat_rate,
        )
    except EventValidationError as exc:
        raise error_response("Please fill in the required fields", exc.field_errors)
    except EventSaveError:
        raise error_response(
            "Failed to save event",
            {},
            status.HTTP_500_INTERNAL_SERVER_ERROR,
        )


@router.post(
    "/events",
    response_model=EventSaveResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_event(
    payload: EventSaveRequest,
    stores: EventStores = Depends(get_event_stores),
    session_factory: sessionmaker = Depends(get_session_factory),
    vat_rate: Decimal = Depends(get_vat_rate),
):
    """Create an event with its service lines and payments."""
    result = await _save(payload, stores, None, vat_rate)
    return _save_response(result, session_factory, vat_rate)


@router.put("/events/{event_id}", response_model=EventSaveResponse)
async def update_event(
    event_id: int,
    payload: EventSaveRequest,
    stores: EventStores = Depends(get_event_stores),
    session_factory: sessionmaker = Depends(get_session_factory),
    vat_rate: Decimal = Depends(get_vat_rate),
):
    """Save the full edit form: event fields, working service list, payments.

    Lines missing from ``services`` are deleted; placeholder ids are
    resolved and returned in ``temp_ids``.
    """
    if not await stores.events.filter(id=event_id):
        raise not_found("Event", event_id)
    result = await _save(payload, stores, event_id, vat_rate)
    return _save_response(result, session_factory, vat_rate)


@router.get("/events", response_model=List[EventRead])
def list_events(
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    vat_rate: Decimal = Depends(get_vat_rate),
):
    events = crud_event.get_events(db, skip=skip, limit=limit)
    return [_event_read(ev, vat_rate) for ev in events]


@router.get("/events/{event_id}", response_model=EventRead)
def read_event(
    event_id: int,
    db: Session = Depends(get_db),
    vat_rate: Decimal = Depends(get_vat_rate),
):
    event = crud_event.get_event(db, event_id)
    if not event:
        raise not_found("Event", event_id)
    return _event_read(event, vat_rate)


@router.delete("/events/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_event(event_id: int, db: Session = Depends(get_db)):
    if not crud_event.delete_event(db, event_id):
        raise not_found("Event", event_id)
    logger.info("Deleted event %s", event_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/events/{event_id}/financials", response_model=FinancialsRead)
def read_event_financials(
    event_id: int,
    db: Session = Depends(get_db),
    vat_rate: Decimal = Depends(get_vat_rate),
):
    event = crud_event.get_event(db, event_id)
    if not event:
        raise not_found("Event", event_id)
    return _financials(event, vat_rate)


@router.get("/events/{event_id}/composition", response_model=CompositionRead)
def read_event_composition(event_id: int, db: Session = Depends(get_db)):
    event = crud_event.get_event(db, event_id)
    if not event:
        raise not_found("Event", event_id)
    lines = [ServiceLine.model_validate(row) for row in event.service_lines]
    return CompositionRead.model_validate(group(lines))
