import pytest


LINES = [
    {"id": 10, "service_id": 1, "service_name": "DJ", "custom_price": 800, "order_index": 300},
    {"id": 1, "is_package_main_item": True, "package_name": "Gold", "custom_price": 5000, "order_index": 1000},
    {"id": 2, "parent_package_event_service_id": 1, "service_name": "Band", "order_index": 1001},
]


def test_working_set_financials_without_event(client):
    res = client.post("/api/v1/composition/financials", json={"services": LINES})
    assert res.status_code == 200
    body = res.json()
    assert body["total_cost_without_vat"] == pytest.approx(5800.0)
    assert body["final_total"] == pytest.approx(6844.0)


def test_working_set_financials_with_event_discount(client):
    res = client.post(
        "/api/v1/composition/financials",
        json={
            "event": {"discount_amount": "800", "discount_before_vat": "true"},
            "services": LINES,
            "payments": [{"id": "tmp-1", "amount": "1000"}],
        },
    )
    body = res.json()
    assert body["total_cost_with_vat"] == pytest.approx(5900.0)
    assert body["balance"] == pytest.approx(4900.0)


def test_group_endpoint(client):
    res = client.post("/api/v1/composition/group", json={"services": LINES})
    body = res.json()
    assert [p["key"] for p in body["packages"]] == [1]
    assert [s["id"] for s in body["packages"][0]["services"]] == [2]
    assert [s["id"] for s in body["standalone"]] == [10]


def test_move_endpoint_rewrites_line(client):
    client.post("/api/v1/services", json={"service_name": "DJ", "default_includes_vat": True})
    res = client.post(
        "/api/v1/composition/move",
        json={"services": LINES, "line_id": 2, "destination": "standalone", "target_position": 1},
    )
    assert res.status_code == 200, res.text
    body = res.json()
    moved = next(s for s in body["services"] if s["id"] == 2)
    assert moved["kind"] == "standalone"
    assert moved["order_index"] == pytest.approx(400.0)
    assert sorted(s["id"] for s in body["composition"]["standalone"]) == [2, 10]


def test_move_endpoint_errors(client):
    missing = client.post(
        "/api/v1/composition/move",
        json={"services": LINES, "line_id": 99, "destination": "standalone"},
    )
    assert missing.status_code == 404

    main = client.post(
        "/api/v1/composition/move",
        json={"services": LINES, "line_id": 1, "destination": "standalone"},
    )
    assert main.status_code == 422
    assert main.json()["detail"]["message"] == "Line cannot be moved"


def test_expand_catalog_package(client):
    flowers = client.post("/api/v1/services", json={"service_name": "Flowers"}).json()
    band = client.post("/api/v1/services", json={"service_name": "Band"}).json()
    package = client.post(
        "/api/v1/packages",
        json={
            "package_name": "Gold",
            "package_price": 5000,
            "package_includes_vat": True,
            "service_ids": [band["id"], flowers["id"]],
        },
    ).json()

    res = client.post(
        f"/api/v1/composition/packages/{package['id']}/expand",
        json={"services": [LINES[0]]},
    )

    assert res.status_code == 200, res.text
    body = res.json()
    assert len(body["services"]) == 4
    main = body["services"][1]
    assert main["id"].startswith("temp_")
    assert main["kind"] == "package_main"
    assert main["order_index"] == 2000.0
    (pkg,) = body["composition"]["packages"]
    assert pkg["key"] == main["id"]
    assert sorted(s["service_name"] for s in pkg["services"]) == ["Band", "Flowers"]


def test_expand_unknown_package_returns_404(client):
    res = client.post("/api/v1/composition/packages/42/expand", json={"services": []})
    assert res.status_code == 404


def test_package_with_unknown_services_is_rejected(client):
    res = client.post("/api/v1/packages", json={"package_name": "Bad", "service_ids": [77]})
    assert res.status_code == 422
    assert res.json()["detail"]["field_errors"] == {"service_ids": "invalid"}


def test_catalog_lists(client):
    client.post("/api/v1/suppliers", json={"name": "Sound Co", "emails": ["a@b.c"]})
    assert [s["name"] for s in client.get("/api/v1/suppliers").json()] == ["Sound Co"]
    assert client.get("/api/v1/packages").json() == []
    assert client.get("/api/v1/services").json() == []


def test_healthz(client):
    res = client.get("/healthz")
    assert res.status_code == 200
    assert res.json()["status"] == "ok"


def test_group_endpoint_accepts_main_item_without_id(client):
    res = client.post(
        "/api/v1/composition/group",
        json={"services": [{"is_package_main_item": True, "package_name": "Gold", "custom_price": 100}]},
    )
    assert res.status_code == 200, res.text
    (pkg,) = res.json()["packages"]
    assert pkg["key"] is None
    assert pkg["package_name"] == "Gold"
