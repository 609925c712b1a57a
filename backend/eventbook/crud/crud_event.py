from sqlalchemy.orm import Session, selectinload
from typing import List, Optional

from .. import models


def get_event(db: Session, event_id: int) -> Optional[models.Event]:
    return (
        db.query(models.Event)
        .options(
            selectinload(models.Event.service_lines),
            selectinload(models.Event.payments),
        )
        .filter(models.Event.id == event_id)
        .first()
    )


def get_events(db: Session, skip: int = 0, limit: int = 100) -> List[models.Event]:
    return (
        db.query(models.Event)
        .options(
            selectinload(models.Event.service_lines),
            selectinload(models.Event.payments),
        )
        .order_by(models.Event.event_date.desc(), models.Event.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )


def delete_event(db: Session, event_id: int) -> Optional[models.Event]:
    db_event = db.query(models.Event).filter(models.Event.id == event_id).first()
    if db_event:
        db.delete(db_event)
        db.commit()
    return db_event
