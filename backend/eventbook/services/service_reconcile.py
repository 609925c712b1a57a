"""Save-time reconciliation of an event's service lines.

The client edits a working list that mixes persisted lines with placeholder
lines (``TempId``). Saving diffs that list against what the store holds:

1. placeholder package main items are created first so their real ids are
   known;
2. every other line has its placeholder parent resolved, is normalized, and
   is matched against a persisted line by id, then by ``service_id``;
3. persisted lines nobody claimed are deleted.

``apply_plan`` then runs deletes, updates and one bulk create, in that order.
Individual store failures are logged and recorded on the plan; they never
abort the rest of the save.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, NamedTuple, Optional, Tuple

from ..crud.entity_store import EntityStore, Record
from ..models.service import TRANSPORT_CATEGORY
from ..schemas.service_line import (
    LineKind,
    ServiceLine,
    TempId,
    is_placeholder,
)
from ..utils.fields import read_field, to_decimal

logger = logging.getLogger(__name__)

_SUPPLIER_FIELDS = {"supplier_ids", "supplier_statuses", "supplier_notes"}


class PendingUpdate(NamedTuple):
    id: int
    fields: Record


@dataclass
class ReconcilePlan:
    to_create: List[Record] = field(default_factory=list)
    to_update: List[PendingUpdate] = field(default_factory=list)
    to_delete: List[int] = field(default_factory=list)
    temp_id_map: Dict[TempId, int] = field(default_factory=dict)
    # Package main items created during the first pass
    materialized: List[Record] = field(default_factory=list)
    failures: List[Tuple[str, Any, str]] = field(default_factory=list)

    @property
    def created_count(self) -> int:
        return len(self.materialized) + len(self.to_create)

    def record_failure(self, operation: str, ref: Any, exc: BaseException) -> None:
        logger.error("Service line %s failed for %s: %s", operation, ref, exc)
        self.failures.append((operation, ref, str(exc)))


def _first(*values: Any) -> Any:
    for value in values:
        if value is not None:
            return value
    return None


def _as_line(value: Any) -> ServiceLine:
    if isinstance(value, ServiceLine):
        return value
    return ServiceLine.model_validate(value)


def normalize_line(
    line: ServiceLine,
    catalog: Mapping[int, Any],
    parent_id: Optional[int] = None,
) -> Record:
    """Return the store fields for ``line``, filling gaps from the catalog.

    ``parent_id`` is the already-resolved parent reference; the line's own
    ``parent_package_event_service_id`` is ignored here so a placeholder can
    never leak into the store.
    """
    kind = line.kind
    catalog_service = catalog.get(line.service_id) if line.service_id is not None else None

    fields: Record = {
        "service_id": line.service_id,
        "quantity": line.quantity or 1,
        "status": line.status or "pending",
        "order_index": float(
            _first(line.order_index, read_field(catalog_service, "default_order_index"), 0)
        ),
        "min_suppliers": int(
            _first(line.min_suppliers, read_field(catalog_service, "default_min_suppliers"), 0)
        ),
        "admin_notes": line.admin_notes,
        "client_notes": line.client_notes,
        "is_package_main_item": kind is LineKind.PACKAGE_MAIN,
        "parent_package_event_service_id": None,
        "package_id": None,
        "package_name": None,
        "package_description": None,
        "package_price": None,
        "package_includes_vat": None,
    }
    fields.update(line.model_dump(mode="json", include=_SUPPLIER_FIELDS))
    units = line.model_dump(mode="json", include={"transport_units"})["transport_units"]
    fields["transport_units"] = units or None
    if catalog_service is not None and read_field(catalog_service, "category") != TRANSPORT_CATEGORY:
        # Pickup details only apply to transport services
        fields["transport_units"] = None

    if kind is LineKind.PACKAGE_MAIN:
        name = _first(line.package_name, line.service_name) or ""
        description = _first(line.service_description, line.package_description) or ""
        fields.update(
            service_name=name,
            service_description=description,
            custom_price=_first(line.custom_price, line.package_price, to_decimal(None)),
            includes_vat=bool(_first(line.includes_vat, line.package_includes_vat, False)),
            package_name=name,
            package_description=description,
        )
        return fields

    fields.update(
        service_name=_first(line.service_name, read_field(catalog_service, "service_name")) or "",
        service_description=_first(
            line.service_description, read_field(catalog_service, "service_description")
        )
        or "",
        custom_price=_first(line.custom_price, to_decimal(None)),
        includes_vat=bool(_first(line.includes_vat, False)),
    )
    if kind is LineKind.PACKAGE_CHILD:
        fields["parent_package_event_service_id"] = parent_id
    elif kind is LineKind.LEGACY_MEMBER:
        fields.update(
            package_id=line.package_id,
            package_name=line.package_name,
            package_description=line.package_description,
            package_price=line.package_price,
            package_includes_vat=line.package_includes_vat,
        )
    return fields


def _resolve_parent(line: ServiceLine, plan: ReconcilePlan) -> Optional[int]:
    parent = line.parent_package_event_service_id
    if not is_placeholder(parent):
        return parent
    resolved = plan.temp_id_map.get(parent)
    if resolved is None:
        logger.warning(
            "Parent %s of service line %s was not created; saving without parent",
            parent,
            line.id,
        )
    return resolved


def _claim(pool: List[Any], line: ServiceLine) -> Optional[Any]:
    match = None
    if line.id is not None and not is_placeholder(line.id):
        match = next((p for p in pool if read_field(p, "id") == line.id), None)
    # Falls back to the first unclaimed line booked from the same catalog
    # service; with duplicate services this can pair the wrong rows.
    if match is None and line.service_id is not None:
        match = next((p for p in pool if read_field(p, "service_id") == line.service_id), None)
    if match is not None:
        pool.remove(match)
    return match


async def reconcile(
    store: EntityStore,
    event_id: int,
    desired: Iterable[Any],
    persisted: Iterable[Any],
    catalog: Mapping[int, Any],
) -> ReconcilePlan:
    """Build the write plan for ``desired``; placeholder mains are created here."""
    plan = ReconcilePlan()
    lines = [_as_line(item) for item in desired]

    for line in lines:
        if line.kind is not LineKind.PACKAGE_MAIN or not is_placeholder(line.id):
            continue
        fields = normalize_line(line, catalog)
        fields["event_id"] = event_id
        try:
            created = await store.create(fields)
        except Exception as exc:
            plan.record_failure("create", line.id, exc)
            continue
        plan.temp_id_map[line.id] = created["id"]
        plan.materialized.append(created)

    pool = list(persisted)
    for line in lines:
        if line.kind is LineKind.PACKAGE_MAIN and is_placeholder(line.id):
            continue
        fields = normalize_line(line, catalog, parent_id=_resolve_parent(line, plan))
        fields["event_id"] = event_id
        match = _claim(pool, line)
        if match is not None:
            plan.to_update.append(PendingUpdate(read_field(match, "id"), fields))
        else:
            plan.to_create.append(fields)

    plan.to_delete = [read_field(p, "id") for p in pool]
    logger.info(
        "Reconciled event %s: %d create, %d update, %d delete, %d packages materialized",
        event_id,
        len(plan.to_create),
        len(plan.to_update),
        len(plan.to_delete),
        len(plan.materialized),
    )
    return plan


async def _gather_logged(plan: ReconcilePlan, operation: str, refs: List[Any], calls: List[Any]) -> None:
    results = await asyncio.gather(*calls, return_exceptions=True)
    for ref, result in zip(refs, results):
        if isinstance(result, BaseException):
            plan.record_failure(operation, ref, result)


async def apply_plan(store: EntityStore, plan: ReconcilePlan) -> List[Record]:
    """Run deletes, then updates, then the bulk create. Returns created rows."""
    await _gather_logged(
        plan, "delete", list(plan.to_delete), [store.delete(i) for i in plan.to_delete]
    )
    await _gather_logged(
        plan,
        "update",
        [u.id for u in plan.to_update],
        [store.update(u.id, u.fields) for u in plan.to_update],
    )
    if not plan.to_create:
        return []
    try:
        return await store.bulk_create(plan.to_create)
    except Exception as exc:
        plan.record_failure("bulk_create", f"{len(plan.to_create)} lines", exc)
        return []
