import json
from decimal import Decimal

import pytest

from eventbook.schemas.service_line import (
    LineKind,
    ServiceLine,
    SupplierStatus,
    TempId,
    line_kind,
    parse_line_id,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        (None, None),
        ("", None),
        (12, 12),
        ("12", 12),
        (" 7 ", 7),
        ("temp_ab12", TempId("temp_ab12")),
        ("def_3", TempId("def_3")),
    ],
)
def test_parse_line_id(raw, expected):
    assert parse_line_id(raw) == expected


def test_parse_line_id_rejects_booleans():
    with pytest.raises(ValueError):
        parse_line_id(True)


def test_new_placeholder_ids_are_unique_and_prefixed():
    a, b = TempId.new(), TempId.new()
    assert a != b
    assert str(a).startswith("temp_")


def test_kind_precedence_prefers_main_then_child_then_legacy():
    stale = {
        "is_package_main_item": "true",
        "parent_package_event_service_id": 4,
        "package_id": "p",
    }
    assert line_kind(stale) is LineKind.PACKAGE_MAIN
    stale["is_package_main_item"] = False
    assert line_kind(stale) is LineKind.PACKAGE_CHILD
    stale["parent_package_event_service_id"] = ""
    assert line_kind(stale) is LineKind.LEGACY_MEMBER
    stale["package_id"] = None
    assert line_kind(stale) is LineKind.STANDALONE


def test_json_encoded_supplier_fields_are_parsed():
    line = ServiceLine.model_validate(
        {
            "id": 3,
            "supplier_ids": json.dumps([5, 6, 5]),
            "supplier_statuses": json.dumps({"5": "confirmed", "6": "pending"}),
            "supplier_notes": "not json",
        }
    )
    assert line.supplier_ids == [5, 6]
    assert line.supplier_statuses == {5: SupplierStatus.CONFIRMED, 6: SupplierStatus.PENDING}
    assert line.supplier_notes == {}


def test_lenient_numbers_and_flags():
    line = ServiceLine.model_validate(
        {"custom_price": "12.5", "quantity": "0", "includes_vat": "true"}
    )
    assert line.custom_price == Decimal("12.5")
    assert line.quantity == 1
    assert line.includes_vat is True
    assert ServiceLine().custom_price is None


def test_legacy_pickup_fields_become_transport_unit():
    line = ServiceLine.model_validate(
        {
            "pickup_point": "Main square",
            "standing_time": "18:30",
            "on_site_contact_details": {"name": "Dana", "phone": "050"},
        }
    )
    (unit,) = line.transport_units
    (point,) = unit.pickup_points
    assert point.location == "Main square"
    assert point.time == "18:30"
    assert point.contact.name == "Dana"


def test_transport_units_accept_camel_case_points():
    line = ServiceLine.model_validate(
        {"transport_units": json.dumps([{"pickupPoints": [{"time": "10:00", "contact": None}]}])}
    )
    assert line.transport_units[0].pickup_points[0].time == "10:00"


def test_placeholder_ids_serialize_as_strings():
    line = ServiceLine(id=TempId("temp_x"), parent_package_event_service_id="temp_p")
    payload = line.model_dump(mode="json")
    assert payload["id"] == "temp_x"
    assert payload["parent_package_event_service_id"] == "temp_p"
    assert payload["kind"] == "package_child"
    assert line.is_new
    assert not ServiceLine(id=4).is_new


@pytest.mark.parametrize("raw", ["1e99999999", "9E+400", "-1e50"])
def test_out_of_range_quantity_falls_back_to_one(raw):
    assert ServiceLine.model_validate({"quantity": raw}).quantity == 1


def test_out_of_range_price_reads_as_zero():
    line = ServiceLine.model_validate({"custom_price": "1e999999"})
    assert line.custom_price == Decimal("0")
