from __future__ import annotations

from typing import Any, Callable, Iterable, Mapping, Optional

from eventbook.crud.entity_store import EntityNotFound, EventStores


class FakeStore:
    """In-memory entity store recording every call, with optional faults."""

    def __init__(
        self,
        rows: Iterable[Mapping[str, Any]] = (),
        *,
        fail_create: Optional[Callable[[Mapping[str, Any]], bool]] = None,
        fail_update: Iterable[int] = (),
        fail_delete: Iterable[int] = (),
    ) -> None:
        self.rows = {row["id"]: dict(row) for row in rows}
        self.next_id = max(self.rows, default=0) + 1
        self.calls: list[tuple] = []
        self.fail_create = fail_create
        self.fail_update = set(fail_update)
        self.fail_delete = set(fail_delete)

    def _insert(self, fields: Mapping[str, Any]) -> dict:
        if self.fail_create and self.fail_create(fields):
            raise RuntimeError("create refused")
        row = {**fields, "id": self.next_id}
        self.next_id += 1
        self.rows[row["id"]] = row
        return dict(row)

    async def list(self) -> list[dict]:
        return [dict(r) for r in self.rows.values()]

    async def filter(self, **fields: Any) -> list[dict]:
        return [
            dict(r)
            for r in self.rows.values()
            if all(r.get(k) == v for k, v in fields.items())
        ]

    async def create(self, fields: Mapping[str, Any]) -> dict:
        self.calls.append(("create", dict(fields)))
        return self._insert(fields)

    async def update(self, entity_id: int, fields: Mapping[str, Any]) -> dict:
        self.calls.append(("update", entity_id))
        if entity_id in self.fail_update:
            raise RuntimeError("update refused")
        if entity_id not in self.rows:
            raise EntityNotFound("Fake", entity_id)
        self.rows[entity_id].update(fields)
        return dict(self.rows[entity_id])

    async def delete(self, entity_id: int) -> None:
        self.calls.append(("delete", entity_id))
        if entity_id in self.fail_delete:
            raise RuntimeError("delete refused")
        if self.rows.pop(entity_id, None) is None:
            raise EntityNotFound("Fake", entity_id)

    async def bulk_create(self, items: Iterable[Mapping[str, Any]]) -> list[dict]:
        items = list(items)
        self.calls.append(("bulk_create", len(items)))
        return [self._insert(item) for item in items]

    def operations(self) -> list[str]:
        return [call[0] for call in self.calls]


def fake_stores(**rows: Iterable[Mapping[str, Any]]) -> EventStores:
    return EventStores(
        events=FakeStore(rows.get("events", ())),
        service_lines=FakeStore(rows.get("service_lines", ())),
        services=FakeStore(rows.get("services", ())),
        payments=FakeStore(rows.get("payments", ())),
    )
