from .event import Event, EventStatus
from .event_service import EventService
from .service import Service, Package, TRANSPORT_CATEGORY
from .supplier import Supplier
from .payment import Payment

__all__ = [
    "Event",
    "EventStatus",
    "EventService",
    "Service",
    "Package",
    "TRANSPORT_CATEGORY",
    "Supplier",
    "Payment",
]
