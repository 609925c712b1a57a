import json

import pytest

from eventbook.models.event import EventStatus
from eventbook.services.event_status import coerce_status, derive_staffing_status, is_staffed

CATALOG = {1: {"id": 1, "default_min_suppliers": 2}}


def _line(ids, statuses, **extra):
    return {
        "service_id": 1,
        "supplier_ids": json.dumps(ids),
        "supplier_statuses": json.dumps(statuses),
        **extra,
    }


def test_confirmed_event_moves_to_in_progress_when_fully_staffed():
    lines = [_line([3, 4], {"3": "confirmed", "4": "confirmed"})]
    assert derive_staffing_status("confirmed", lines, CATALOG) is EventStatus.IN_PROGRESS


def test_in_progress_event_falls_back_when_a_supplier_is_pending():
    lines = [_line([3, 4], {"3": "confirmed", "4": "pending"})]
    assert derive_staffing_status(EventStatus.IN_PROGRESS, lines, CATALOG) is EventStatus.CONFIRMED


def test_not_enough_suppliers_blocks_progress():
    lines = [_line([3], {"3": "confirmed"})]
    assert derive_staffing_status("confirmed", lines, CATALOG) is EventStatus.CONFIRMED


def test_line_minimum_overrides_catalog_default():
    line = _line([], {}, min_suppliers=0)
    assert is_staffed(line, CATALOG)
    assert not is_staffed(_line([], {}), CATALOG)


def test_unknown_service_requires_nobody():
    assert is_staffed({"service_id": 99, "supplier_ids": []}, CATALOG)


@pytest.mark.parametrize("status", ["quote", "completed", "cancelled"])
def test_other_statuses_are_left_alone(status):
    assert derive_staffing_status(status, [], CATALOG) is EventStatus(status)


def test_no_lines_counts_as_fully_staffed():
    assert derive_staffing_status("confirmed", [], CATALOG) is EventStatus.IN_PROGRESS


def test_coerce_status_folds_case_and_blanks():
    assert coerce_status("Confirmed") is EventStatus.CONFIRMED
    assert coerce_status(None) is EventStatus.QUOTE
    assert coerce_status(EventStatus.COMPLETED) is EventStatus.COMPLETED
