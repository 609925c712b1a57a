from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Iterable

from ..schemas.service_line import LineKind, line_kind
from ..utils.fields import (
    is_blank,
    is_explicit_false,
    read_field,
    to_decimal,
    to_flag,
)

_ZERO = Decimal("0")
_ONE = Decimal("1")


@dataclass
class FinancialSummary:
    total_cost_without_vat: Decimal
    vat_amount: Decimal
    total_cost_with_vat: Decimal
    discount_amount: Decimal
    final_total: Decimal
    total_paid: Decimal
    balance: Decimal

    @classmethod
    def empty(cls) -> "FinancialSummary":
        return cls(_ZERO, _ZERO, _ZERO, _ZERO, _ZERO, _ZERO, _ZERO)

    def as_payload(self) -> dict[str, float]:
        return {
            "total_cost_without_vat": float(self.total_cost_without_vat),
            "vat_amount": float(self.vat_amount),
            "total_cost_with_vat": float(self.total_cost_with_vat),
            "discount_amount": float(self.discount_amount),
            "final_total": float(self.final_total),
            "total_paid": float(self.total_paid),
            "balance": float(self.balance),
        }


def _quantity(line: Any) -> Decimal:
    qty = to_decimal(read_field(line, "quantity"))
    return qty if qty != _ZERO else _ONE


def _net(amount: Decimal, includes_vat: Any, factor: Decimal) -> Decimal:
    if not to_flag(includes_vat) or factor == _ZERO:
        return amount
    return amount / factor


def itemized_base(service_lines: Iterable[Any], factor: Decimal) -> Decimal:
    """Sum service lines net of VAT; legacy packages count once per package_id."""
    total = _ZERO
    seen_legacy: set[str] = set()
    for line in service_lines:
        kind = line_kind(line)
        if kind is LineKind.PACKAGE_CHILD:
            continue
        if kind is LineKind.LEGACY_MEMBER:
            key = str(read_field(line, "package_id"))
            if key in seen_legacy:
                continue
            seen_legacy.add(key)
            total += _net(
                to_decimal(read_field(line, "package_price")),
                read_field(line, "package_includes_vat"),
                factor,
            )
            continue
        # Package main items and standalone lines are priced the same way.
        amount = to_decimal(read_field(line, "custom_price")) * _quantity(line)
        total += _net(amount, read_field(line, "includes_vat"), factor)
    return total


def base_cost(event: Any, service_lines: Iterable[Any], vat_rate: Any) -> Decimal:
    factor = _ONE + to_decimal(vat_rate)

    all_inclusive_price = to_decimal(read_field(event, "all_inclusive_price"))
    if to_flag(read_field(event, "all_inclusive")) and all_inclusive_price > _ZERO:
        return _net(all_inclusive_price, read_field(event, "all_inclusive_includes_vat"), factor)

    raw_override = read_field(event, "total_override")
    override = to_decimal(raw_override)
    if not is_blank(raw_override) and override != _ZERO:
        includes_vat = not is_explicit_false(read_field(event, "total_override_includes_vat"))
        return _net(override, includes_vat, factor)

    return itemized_base(service_lines, factor)


def compute(
    event: Any,
    service_lines: Iterable[Any] = (),
    payments: Iterable[Any] = (),
    vat_rate: Any = Decimal("0.18"),
) -> FinancialSummary:
    """Return the authoritative totals for an event.

    Never raises: missing or malformed numbers read as zero. Values are not
    rounded; callers round for display only.
    """
    if event is None:
        return FinancialSummary.empty()

    rate = to_decimal(vat_rate)
    base = base_cost(event, service_lines or (), rate)
    discount = to_decimal(read_field(event, "discount_amount"))

    if to_flag(read_field(event, "discount_before_vat")):
        adjusted = max(_ZERO, base - discount)
        vat_amount = adjusted * rate
        total_with_vat = adjusted + vat_amount
        final_total = total_with_vat
    else:
        vat_amount = base * rate
        total_with_vat = base + vat_amount
        final_total = max(_ZERO, total_with_vat - discount)

    total_paid = sum(
        (to_decimal(read_field(p, "amount")) for p in (payments or ())), _ZERO
    )

    return FinancialSummary(
        total_cost_without_vat=base,
        vat_amount=vat_amount,
        total_cost_with_vat=total_with_vat,
        discount_amount=discount,
        final_total=final_total,
        total_paid=total_paid,
        balance=final_total - total_paid,
    )
