from __future__ import annotations

import json
from typing import Any, Iterable, Mapping

from ..models.event import EventStatus
from ..schemas.service_line import SupplierStatus
from ..utils.fields import read_field

STAFFING_STATUSES = {EventStatus.CONFIRMED, EventStatus.IN_PROGRESS}


def _decoded(value: Any, fallback: Any) -> Any:
    if isinstance(value, str):
        try:
            value = json.loads(value or "null")
        except json.JSONDecodeError:
            return fallback
    return fallback if value is None else value


def coerce_status(value: Any) -> EventStatus:
    raw = getattr(value, "value", value)
    if raw is None or not str(raw).strip():
        return EventStatus.QUOTE
    return EventStatus(str(raw).strip().lower())


def required_suppliers(line: Any, catalog: Mapping[int, Any]) -> int:
    required = read_field(line, "min_suppliers")
    if required is None:
        required = read_field(catalog.get(read_field(line, "service_id")), "default_min_suppliers")
    return int(required or 0)


def is_staffed(line: Any, catalog: Mapping[int, Any]) -> bool:
    """Enough suppliers assigned and every assigned supplier confirmed."""
    required = required_suppliers(line, catalog)
    if required == 0:
        return True
    supplier_ids = _decoded(read_field(line, "supplier_ids"), [])
    if len(supplier_ids) < required:
        return False
    statuses = {str(k): v for k, v in _decoded(read_field(line, "supplier_statuses"), {}).items()}
    confirmed = SupplierStatus.CONFIRMED.value
    return all(
        getattr(statuses.get(str(sid)), "value", statuses.get(str(sid))) == confirmed
        for sid in supplier_ids
    )


def derive_staffing_status(
    status: Any, lines: Iterable[Any], catalog: Mapping[int, Any]
) -> EventStatus:
    """Move confirmed events to in_progress once fully staffed, and back."""
    current = coerce_status(status)
    if current not in STAFFING_STATUSES:
        return current
    if all(is_staffed(line, catalog) for line in lines):
        return EventStatus.IN_PROGRESS
    return EventStatus.CONFIRMED
