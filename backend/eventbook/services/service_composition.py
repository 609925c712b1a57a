"""Group flat service lines into packages and standalone items.

Two package shapes coexist in stored data:

* current: one package main item (priced, named) plus child lines that point
  at it through ``parent_package_event_service_id``;
* legacy: every member carries the same ``package_id`` string and a copy of
  the package name, price and VAT flag.

Both are exposed as :class:`PackageGroup` so callers never branch on shape.
Editing helpers below return new line lists and leave their input untouched.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Union

from ..schemas.service_line import (
    LineId,
    LineKind,
    ServiceLine,
    TempId,
    parse_line_id,
)
from ..utils.fields import read_field, to_decimal, to_flag
from .order_index import allocate, next_package_base

STANDALONE = "standalone"

GroupKey = Union[LineId, str]


@dataclass
class PackageGroup:
    key: GroupKey
    package_name: str
    package_price: Decimal
    package_includes_vat: bool
    package_description: str
    services: List[ServiceLine] = field(default_factory=list)
    main_line: Optional[ServiceLine] = None

    @property
    def is_legacy(self) -> bool:
        return self.main_line is None

    def matches(self, key: Any) -> bool:
        if self.key is None:
            return False
        if self.is_legacy:
            return str(key) == self.key
        return parse_line_id(key) == self.key


@dataclass
class ServiceComposition:
    packages: List[PackageGroup]
    standalone: List[ServiceLine]
    # Children whose package main item is not in the list
    orphans: List[ServiceLine] = field(default_factory=list)

    def find(self, key: Any) -> Optional[PackageGroup]:
        """Look up a group by key; an exact match wins over a string-equal one.

        A legacy ``package_id`` of "5" and a main line with id 5 can coexist:
        ``find(5)`` returns the main line's group, ``find("5")`` the legacy one.
        """
        for pkg in self.packages:
            if pkg.key is not None and type(pkg.key) is type(key) and pkg.key == key:
                return pkg
        for pkg in self.packages:
            if pkg.matches(key):
                return pkg
        return None


def _main_group(line: ServiceLine) -> PackageGroup:
    return PackageGroup(
        key=line.id,
        package_name=line.package_name or line.service_name or "",
        package_price=line.custom_price or Decimal("0"),
        package_includes_vat=bool(line.includes_vat),
        package_description=line.package_description or line.service_description or "",
        main_line=line,
    )


def _legacy_group(line: ServiceLine) -> PackageGroup:
    return PackageGroup(
        key=line.package_id,
        package_name=line.package_name or "Package",
        package_price=line.package_price or Decimal("0"),
        package_includes_vat=bool(line.package_includes_vat),
        package_description=line.package_description or "",
    )


def group(lines: Iterable[ServiceLine]) -> ServiceComposition:
    groups: dict[tuple, PackageGroup] = {}
    children: list[ServiceLine] = []
    standalone: list[ServiceLine] = []

    for line in lines:
        kind = line.kind
        if kind is LineKind.PACKAGE_MAIN:
            slot_id = line.id if line.id is not None else id(line)
            groups[("main", slot_id)] = _main_group(line)
        elif kind is LineKind.PACKAGE_CHILD:
            children.append(line)
        elif kind is LineKind.LEGACY_MEMBER:
            slot = groups.get(("legacy", line.package_id))
            if slot is None:
                slot = groups[("legacy", line.package_id)] = _legacy_group(line)
            slot.services.append(line)
        else:
            standalone.append(line)

    orphans: list[ServiceLine] = []
    for child in children:
        slot = groups.get(("main", child.parent_package_event_service_id))
        if slot is None:
            orphans.append(child)
        else:
            slot.services.append(child)

    packages = list(groups.values())
    for pkg in packages:
        pkg.services.sort(key=ServiceLine.sort_key)
    return ServiceComposition(packages=packages, standalone=standalone, orphans=orphans)


def _find_line(lines: Sequence[ServiceLine], line_id: Any) -> int:
    wanted = parse_line_id(line_id)
    for idx, line in enumerate(lines):
        if line.id is not None and line.id == wanted:
            return idx
    raise KeyError(f"service line {line_id!r} not found")


def _catalog_vat(catalog: Optional[Mapping[int, Any]], service_id: Optional[int]) -> bool:
    if not catalog or service_id is None:
        return False
    return to_flag(read_field(catalog.get(service_id), "default_includes_vat"))


_PACKAGE_FIELDS_CLEARED = {
    "package_name": None,
    "package_description": None,
    "package_price": None,
    "package_includes_vat": None,
}


def move_line(
    lines: Sequence[ServiceLine],
    line_id: Any,
    destination: Any,
    target_position: int,
    catalog: Optional[Mapping[int, Any]] = None,
) -> list[ServiceLine]:
    """Move a line to ``target_position`` of ``destination``.

    ``destination`` is :data:`STANDALONE` or a package group key. Crossing
    between standalone and package context rewrites the line's variant fields
    together with its order index.
    """
    lines = list(lines)
    idx = _find_line(lines, line_id)
    moved = lines[idx]
    if moved.kind is LineKind.PACKAGE_MAIN:
        raise ValueError("package main items move with their package")

    composition = group(lines)
    if destination == STANDALONE:
        siblings = sorted(composition.standalone, key=ServiceLine.sort_key)
        if moved.kind is LineKind.STANDALONE:
            updates: dict[str, Any] = {}
        else:
            updates = {
                "parent_package_event_service_id": None,
                "package_id": None,
                "is_package_main_item": False,
                "includes_vat": _catalog_vat(catalog, moved.service_id),
                **_PACKAGE_FIELDS_CLEARED,
            }
    else:
        target = composition.find(destination)
        if target is None:
            raise KeyError(f"package {destination!r} not found")
        siblings = target.services
        if any(s is moved for s in siblings):
            updates = {}
        elif target.is_legacy:
            updates = {
                "package_id": target.key,
                "parent_package_event_service_id": None,
                "is_package_main_item": False,
                "custom_price": Decimal("0"),
                "package_name": target.package_name,
                "package_description": target.package_description,
                "package_price": target.package_price,
                "package_includes_vat": target.package_includes_vat,
            }
        else:
            updates = {
                "parent_package_event_service_id": target.key,
                "package_id": None,
                "is_package_main_item": False,
                "custom_price": Decimal("0"),
                "includes_vat": target.package_includes_vat,
                **_PACKAGE_FIELDS_CLEARED,
            }

    siblings = [s for s in siblings if s is not moved]
    updates["order_index"] = allocate(siblings, target_position)
    lines[idx] = moved.model_copy(update=updates)
    return lines


def expand_package(
    package: Any,
    catalog: Mapping[int, Any],
    existing_lines: Sequence[Any] = (),
) -> list[ServiceLine]:
    """Turn a catalog package into a placeholder main item plus its children.

    The new block is ordered after every existing line; children carry no
    price of their own and inherit the package VAT flag.
    """
    base = next_package_base(existing_lines)
    name = read_field(package, "package_name") or ""
    description = read_field(package, "package_description") or ""
    includes_vat = to_flag(read_field(package, "package_includes_vat"))

    main_id = TempId.new()
    main = ServiceLine(
        id=main_id,
        service_name=name,
        service_description=description,
        package_name=name,
        package_description=description,
        custom_price=to_decimal(read_field(package, "package_price")),
        includes_vat=includes_vat,
        is_package_main_item=True,
        quantity=1,
        order_index=base,
        status="pending",
    )

    members = [catalog[sid] for sid in (read_field(package, "service_ids") or []) if sid in catalog]
    members.sort(key=lambda svc: float(to_decimal(read_field(svc, "default_order_index"))))

    children = [
        ServiceLine(
            id=TempId.new(),
            service_id=read_field(svc, "id"),
            service_name=read_field(svc, "service_name"),
            service_description=read_field(svc, "service_description") or "",
            custom_price=Decimal("0"),
            quantity=1,
            includes_vat=includes_vat,
            parent_package_event_service_id=main_id,
            order_index=base + pos + 1,
            min_suppliers=read_field(svc, "default_min_suppliers") or 0,
            status="pending",
        )
        for pos, svc in enumerate(members)
    ]
    return [main, *children]


def update_package(
    lines: Sequence[ServiceLine],
    key: Any,
    *,
    name: str,
    description: Optional[str] = None,
    price: Any = None,
    includes_vat: bool = False,
) -> list[ServiceLine]:
    target = group(lines).find(key)
    if target is None:
        raise KeyError(f"package {key!r} not found")
    amount = to_decimal(price)
    members = {id(s) for s in target.services}

    updated: list[ServiceLine] = []
    for line in lines:
        if target.main_line is not None and line is target.main_line:
            line = line.model_copy(update={
                "package_name": name,
                "service_name": name,
                "package_description": description,
                "service_description": description,
                "custom_price": amount,
                "includes_vat": includes_vat,
            })
        elif id(line) in members:
            if target.is_legacy:
                line = line.model_copy(update={
                    "package_name": name,
                    "package_description": description,
                    "package_price": amount,
                    "package_includes_vat": includes_vat,
                })
            else:
                line = line.model_copy(update={"includes_vat": includes_vat})
        updated.append(line)
    return updated


def remove_package(lines: Sequence[ServiceLine], key: Any) -> list[ServiceLine]:
    """Drop a package together with every line inside it."""
    target = group(lines).find(key)
    if target is None:
        raise KeyError(f"package {key!r} not found")
    doomed = {id(s) for s in target.services}
    if target.main_line is not None:
        doomed.add(id(target.main_line))
    return [line for line in lines if id(line) not in doomed]
