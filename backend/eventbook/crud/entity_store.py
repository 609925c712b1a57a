"""Async entity stores used by the save pipeline.

The reconciliation engine only needs list/filter/create/update/delete and a
bulk create per entity type. :class:`EntityStore` is that contract;
:class:`SqlEntityStore` fulfils it against the SQLAlchemy models, returning
plain dicts so callers never hold a row bound to a closed session.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol

from sqlalchemy import inspect
from sqlalchemy.orm import sessionmaker

from .. import models
from ..database import get_db_session

logger = logging.getLogger(__name__)

Record = Dict[str, Any]


class EntityStore(Protocol):
    async def list(self) -> List[Record]: ...

    async def filter(self, **fields: Any) -> List[Record]: ...

    async def create(self, fields: Mapping[str, Any]) -> Record: ...

    async def update(self, entity_id: int, fields: Mapping[str, Any]) -> Record: ...

    async def delete(self, entity_id: int) -> None: ...

    async def bulk_create(self, items: Iterable[Mapping[str, Any]]) -> List[Record]: ...


class EntityNotFound(LookupError):
    def __init__(self, model_name: str, entity_id: Any) -> None:
        super().__init__(f"{model_name} {entity_id} not found")
        self.model_name = model_name
        self.entity_id = entity_id


def row_to_dict(row: Any) -> Record:
    return {attr.key: getattr(row, attr.key) for attr in inspect(row).mapper.column_attrs}


class SqlEntityStore:
    """One short session per call; the work itself is synchronous."""

    def __init__(self, model: Any, session_factory: Optional[sessionmaker] = None) -> None:
        self.model = model
        self.session_factory = session_factory
        self._columns = {attr.key for attr in inspect(model).column_attrs}

    def _clean(self, fields: Mapping[str, Any]) -> Record:
        # Unknown keys (computed fields, client-only state) never reach the row
        return {k: v for k, v in fields.items() if k in self._columns and k != "id"}

    async def list(self) -> List[Record]:
        with get_db_session(self.session_factory) as db:
            rows = db.query(self.model).order_by(self.model.id).all()
            return [row_to_dict(r) for r in rows]

    async def filter(self, **fields: Any) -> List[Record]:
        with get_db_session(self.session_factory) as db:
            rows = db.query(self.model).filter_by(**fields).order_by(self.model.id).all()
            return [row_to_dict(r) for r in rows]

    async def get(self, entity_id: int) -> Optional[Record]:
        with get_db_session(self.session_factory) as db:
            row = db.get(self.model, entity_id)
            return row_to_dict(row) if row is not None else None

    async def create(self, fields: Mapping[str, Any]) -> Record:
        with get_db_session(self.session_factory) as db:
            row = self.model(**self._clean(fields))
            db.add(row)
            db.commit()
            db.refresh(row)
            return row_to_dict(row)

    async def update(self, entity_id: int, fields: Mapping[str, Any]) -> Record:
        with get_db_session(self.session_factory) as db:
            row = db.get(self.model, entity_id)
            if row is None:
                raise EntityNotFound(self.model.__name__, entity_id)
            for key, value in self._clean(fields).items():
                setattr(row, key, value)
            db.commit()
            db.refresh(row)
            return row_to_dict(row)

    async def delete(self, entity_id: int) -> None:
        with get_db_session(self.session_factory) as db:
            row = db.get(self.model, entity_id)
            if row is None:
                raise EntityNotFound(self.model.__name__, entity_id)
            db.delete(row)
            db.commit()

    async def bulk_create(self, items: Iterable[Mapping[str, Any]]) -> List[Record]:
        with get_db_session(self.session_factory) as db:
            rows = [self.model(**self._clean(item)) for item in items]
            if not rows:
                return []
            db.add_all(rows)
            db.commit()
            for row in rows:
                db.refresh(row)
            logger.debug("Bulk created %d %s rows", len(rows), self.model.__name__)
            return [row_to_dict(r) for r in rows]


@dataclass
class EventStores:
    events: EntityStore
    service_lines: EntityStore
    services: EntityStore
    payments: EntityStore

    @classmethod
    def from_session_factory(cls, session_factory: Optional[sessionmaker] = None) -> "EventStores":
        return cls(
            events=SqlEntityStore(models.Event, session_factory),
            service_lines=SqlEntityStore(models.EventService, session_factory),
            services=SqlEntityStore(models.Service, session_factory),
            payments=SqlEntityStore(models.Payment, session_factory),
        )
