from decimal import Decimal

import pytest

from eventbook.schemas.service_line import LineKind, ServiceLine, TempId
from eventbook.services.service_composition import (
    STANDALONE,
    expand_package,
    group,
    move_line,
    remove_package,
    update_package,
)


def _line(**fields):
    return ServiceLine.model_validate(fields)


@pytest.fixture
def mixed_lines():
    return [
        _line(id=10, service_id=1, service_name="DJ", custom_price=800, order_index=300),
        _line(
            id=1,
            is_package_main_item=True,
            package_name="Gold",
            custom_price=5000,
            includes_vat=True,
            order_index=1000,
        ),
        _line(id=3, service_id=2, parent_package_event_service_id=1, order_index=1002),
        _line(id=2, service_id=3, parent_package_event_service_id=1, order_index=1001),
        _line(
            id=20,
            service_id=4,
            package_id="legacy-1",
            package_name="Silver",
            package_price=3000,
            package_includes_vat=False,
            order_index=50,
        ),
    ]


def test_group_unifies_current_and_legacy_packages(mixed_lines):
    composition = group(mixed_lines)

    assert [pkg.key for pkg in composition.packages] == [1, "legacy-1"]
    gold, silver = composition.packages
    assert not gold.is_legacy
    assert gold.package_name == "Gold"
    assert gold.package_price == Decimal("5000")
    assert gold.package_includes_vat is True
    assert [s.id for s in gold.services] == [2, 3]

    assert silver.is_legacy
    assert silver.package_name == "Silver"
    assert silver.package_price == Decimal("3000")
    assert [s.id for s in silver.services] == [20]

    assert [s.id for s in composition.standalone] == [10]
    assert composition.orphans == []


def test_group_reports_children_without_parent():
    lines = [_line(id=5, parent_package_event_service_id=999)]
    composition = group(lines)
    assert composition.packages == []
    assert composition.standalone == []
    assert [s.id for s in composition.orphans] == [5]


def test_group_matches_placeholder_parent():
    parent = TempId("temp_abc")
    lines = [
        _line(id="temp_abc", is_package_main_item=True, package_name="New"),
        _line(id="temp_child", parent_package_event_service_id="temp_abc"),
    ]
    composition = group(lines)
    assert composition.packages[0].key == parent
    assert [s.id for s in composition.packages[0].services] == [TempId("temp_child")]


def test_legacy_group_fields_come_from_first_member():
    lines = [
        _line(id=1, package_id="7", package_name="First", package_price=100),
        _line(id=2, package_id=7, package_name="Second", package_price=900),
    ]
    (pkg,) = group(lines).packages
    assert pkg.package_name == "First"
    assert pkg.package_price == Decimal("100")
    assert len(pkg.services) == 2


def test_find_accepts_string_and_int_keys(mixed_lines):
    composition = group(mixed_lines)
    assert composition.find("1").key == 1
    assert composition.find(1).key == 1
    assert composition.find("legacy-1").is_legacy
    assert composition.find("missing") is None


def test_move_within_package_only_changes_order(mixed_lines):
    moved = move_line(mixed_lines, 3, 1, 0)
    line = next(l for l in moved if l.id == 3)
    assert line.order_index == pytest.approx(901.0)
    assert line.parent_package_event_service_id == 1
    assert line.custom_price is None


def test_move_standalone_into_current_package(mixed_lines):
    moved = move_line(mixed_lines, 10, 1, 1)
    line = next(l for l in moved if l.id == 10)
    assert line.kind is LineKind.PACKAGE_CHILD
    assert line.parent_package_event_service_id == 1
    assert line.package_id is None
    assert line.custom_price == Decimal("0")
    assert line.includes_vat is True
    assert line.order_index == pytest.approx(1001.5)
    # Input list is left untouched
    assert mixed_lines[0].kind is LineKind.STANDALONE


def test_move_into_legacy_package_copies_package_fields(mixed_lines):
    moved = move_line(mixed_lines, 10, "legacy-1", 1)
    line = next(l for l in moved if l.id == 10)
    assert line.kind is LineKind.LEGACY_MEMBER
    assert line.package_id == "legacy-1"
    assert line.package_name == "Silver"
    assert line.package_price == Decimal("3000")
    assert line.custom_price == Decimal("0")
    assert line.order_index == pytest.approx(150.0)


def test_move_child_to_standalone_restores_catalog_vat(mixed_lines):
    catalog = {2: {"id": 2, "default_includes_vat": True}}
    moved = move_line(mixed_lines, 3, STANDALONE, 0, catalog)
    line = next(l for l in moved if l.id == 3)
    assert line.kind is LineKind.STANDALONE
    assert line.parent_package_event_service_id is None
    assert line.package_name is None
    assert line.includes_vat is True
    assert line.order_index == pytest.approx(200.0)


def test_move_to_standalone_without_catalog_entry_clears_vat(mixed_lines):
    moved = move_line(mixed_lines, 20, STANDALONE, 5)
    line = next(l for l in moved if l.id == 20)
    assert line.kind is LineKind.STANDALONE
    assert line.includes_vat is False
    assert line.package_price is None
    assert line.order_index == pytest.approx(400.0)


def test_move_into_empty_package_uses_default_index():
    lines = [
        _line(id=1, is_package_main_item=True, package_name="Empty"),
        _line(id=2, service_name="Photo", order_index=5),
    ]
    moved = move_line(lines, 2, 1, 0)
    assert moved[1].order_index == 1000.0


def test_package_main_cannot_be_moved(mixed_lines):
    with pytest.raises(ValueError):
        move_line(mixed_lines, 1, STANDALONE, 0)


def test_unknown_line_or_destination_raises(mixed_lines):
    with pytest.raises(KeyError):
        move_line(mixed_lines, 404, STANDALONE, 0)
    with pytest.raises(KeyError):
        move_line(mixed_lines, 10, "nope", 0)


def test_expand_package_builds_placeholder_block():
    catalog = {
        1: {"id": 1, "service_name": "Band", "default_order_index": 20, "default_min_suppliers": 4},
        2: {"id": 2, "service_name": "Flowers", "default_order_index": 10},
    }
    package = {
        "package_name": "Gold",
        "package_price": "5000",
        "package_includes_vat": True,
        "service_ids": [1, 2, 99],
    }
    existing = [_line(id=1, order_index=1500)]

    main, *children = expand_package(package, catalog, existing)

    assert isinstance(main.id, TempId)
    assert main.kind is LineKind.PACKAGE_MAIN
    assert main.custom_price == Decimal("5000")
    assert main.order_index == 3000.0
    assert [c.service_name for c in children] == ["Flowers", "Band"]
    assert [c.order_index for c in children] == [3001.0, 3002.0]
    assert all(c.parent_package_event_service_id == main.id for c in children)
    assert all(c.custom_price == Decimal("0") and c.includes_vat for c in children)
    assert children[1].min_suppliers == 4

    composition = group([main, *children])
    assert len(composition.packages[0].services) == 2


def test_update_current_package_propagates_vat(mixed_lines):
    updated = update_package(mixed_lines, 1, name="Platinum", price="7000", includes_vat=False)
    main = next(l for l in updated if l.id == 1)
    assert main.package_name == "Platinum"
    assert main.service_name == "Platinum"
    assert main.custom_price == Decimal("7000")
    assert main.includes_vat is False
    assert all(l.includes_vat is False for l in updated if l.id in (2, 3))
    # Standalone lines are not touched
    assert next(l for l in updated if l.id == 10) is mixed_lines[0]


def test_update_legacy_package_rewrites_every_member():
    lines = [
        _line(id=1, package_id="x", package_name="Old", package_price=10),
        _line(id=2, package_id="x", package_name="Old", package_price=10),
    ]
    updated = update_package(lines, "x", name="New", description="d", price=20, includes_vat=True)
    assert {l.package_name for l in updated} == {"New"}
    assert {l.package_price for l in updated} == {Decimal("20")}
    assert all(l.package_includes_vat for l in updated)


def test_remove_package_drops_main_and_children(mixed_lines):
    remaining = remove_package(mixed_lines, 1)
    assert sorted(l.id for l in remaining) == [10, 20]

    with pytest.raises(KeyError):
        remove_package(mixed_lines, 12345)


def test_group_keeps_main_item_without_id():
    lines = [_line(is_package_main_item=True, package_name="Gold", custom_price=100)]
    composition = group(lines)
    (pkg,) = composition.packages
    assert pkg.key is None
    assert pkg.package_name == "Gold"
    assert composition.find(None) is None


def test_find_prefers_exact_key_type():
    lines = [
        _line(id=5, is_package_main_item=True, package_name="Current"),
        _line(id=6, package_id="5", package_name="Legacy"),
    ]
    composition = group(lines)
    assert composition.find(5).package_name == "Current"
    assert composition.find("5").package_name == "Legacy"
