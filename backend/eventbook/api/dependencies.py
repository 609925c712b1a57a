from decimal import Decimal

from fastapi import Depends
from sqlalchemy.orm import sessionmaker

from ..core.config import settings
from ..crud.entity_store import EventStores
from ..database import get_session_factory


def get_event_stores(
    session_factory: sessionmaker = Depends(get_session_factory),
) -> EventStores:
    return EventStores.from_session_factory(session_factory)


def get_vat_rate() -> Decimal:
    return Decimal(str(settings.VAT_RATE))
