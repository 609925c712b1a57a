"""Save an event together with its service lines and payments.

Order of work: validate, write the event row, reconcile service lines,
replace payments, then re-derive the staffing status. Only a failure to
write the event row aborts the save; line and payment failures are logged
and reported on the result.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional

from pydantic import BaseModel

from ..core.config import settings
from ..crud.entity_store import EventStores, Record
from ..models.event import EventStatus
from ..utils.fields import is_blank, read_field, to_decimal
from .event_financials import FinancialSummary, compute
from .event_status import coerce_status, derive_staffing_status
from .service_reconcile import ReconcilePlan, apply_plan, reconcile

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = {
    "event_name": "Event name is required",
    "family_name": "Family name is required",
    "event_date": "Event date is required",
}

_PAYMENT_FIELDS = ("amount", "payment_date", "method", "notes")


class EventValidationError(ValueError):
    def __init__(self, field_errors: Dict[str, str]) -> None:
        super().__init__("Missing required event fields")
        self.field_errors = field_errors


class EventSaveError(RuntimeError):
    """The event row itself could not be written."""


@dataclass
class SaveResult:
    event: Record
    plan: ReconcilePlan
    financials: FinancialSummary
    service_lines: List[Record] = field(default_factory=list)
    payments: List[Record] = field(default_factory=list)
    payment_failures: int = 0


def _as_dict(value: Any) -> Dict[str, Any]:
    if isinstance(value, BaseModel):
        return value.model_dump()
    return dict(value)


def validate_event(event: Mapping[str, Any]) -> Dict[str, str]:
    return {name: msg for name, msg in REQUIRED_FIELDS.items() if is_blank(event.get(name))}


def auto_confirm(status: Any, payments: Iterable[Any]) -> EventStatus:
    """A quote that has received money is a confirmed booking."""
    current = coerce_status(status)
    if current is EventStatus.QUOTE and any(
        to_decimal(read_field(p, "amount")) > 0 for p in payments
    ):
        return EventStatus.CONFIRMED
    return current


async def _replace_payments(
    stores: EventStores, event_id: int, payments: List[Dict[str, Any]]
) -> tuple[List[Record], int]:
    failures = 0
    for existing in await stores.payments.filter(event_id=event_id):
        try:
            await stores.payments.delete(existing["id"])
        except Exception as exc:
            failures += 1
            logger.error("Payment delete failed for %s: %s", existing["id"], exc)

    created: List[Record] = []
    for payment in payments:
        if to_decimal(payment.get("amount")) <= 0:
            continue
        fields = {k: payment.get(k) for k in _PAYMENT_FIELDS}
        fields["amount"] = to_decimal(payment.get("amount"))
        fields["event_id"] = event_id
        try:
            created.append(await stores.payments.create(fields))
        except Exception as exc:
            failures += 1
            logger.error("Payment create failed for event %s: %s", event_id, exc)
    return created, failures


async def save_event(
    stores: EventStores,
    event_in: Any,
    lines: Iterable[Any],
    payments: Iterable[Any] = (),
    event_id: Optional[int] = None,
    vat_rate: Any = None,
) -> SaveResult:
    event_fields = _as_dict(event_in)
    event_fields.pop("id", None)
    field_errors = validate_event(event_fields)
    if field_errors:
        raise EventValidationError(field_errors)

    payment_rows = [_as_dict(p) for p in payments]
    event_fields["status"] = auto_confirm(event_fields.get("status"), payment_rows)

    try:
        if event_id is None:
            saved = await stores.events.create(event_fields)
        else:
            saved = await stores.events.update(event_id, event_fields)
    except Exception as exc:
        logger.exception("Saving event %s failed", event_id if event_id is not None else "(new)")
        raise EventSaveError("The event could not be saved") from exc
    event_id = saved["id"]

    catalog = {svc["id"]: svc for svc in await stores.services.list()}
    persisted = await stores.service_lines.filter(event_id=event_id)
    plan = await reconcile(stores.service_lines, event_id, lines, persisted, catalog)
    await apply_plan(stores.service_lines, plan)

    saved_payments, payment_failures = await _replace_payments(stores, event_id, payment_rows)

    current_lines = await stores.service_lines.filter(event_id=event_id)
    new_status = derive_staffing_status(saved["status"], current_lines, catalog)
    if new_status is not coerce_status(saved["status"]):
        try:
            saved = await stores.events.update(event_id, {"status": new_status})
        except Exception as exc:
            logger.error("Staffing status update failed for event %s: %s", event_id, exc)

    rate = settings.VAT_RATE if vat_rate is None else vat_rate
    financials = compute(saved, current_lines, saved_payments, Decimal(str(rate)))
    if plan.failures or payment_failures:
        logger.warning(
            "Event %s saved with %d service line and %d payment failures",
            event_id,
            len(plan.failures),
            payment_failures,
        )
    return SaveResult(
        event=saved,
        plan=plan,
        financials=financials,
        service_lines=current_lines,
        payments=saved_payments,
        payment_failures=payment_failures,
    )
