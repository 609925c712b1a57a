from . import crud_catalog
from . import crud_event
from .entity_store import (
    EntityNotFound,
    EntityStore,
    EventStores,
    SqlEntityStore,
    row_to_dict,
)
