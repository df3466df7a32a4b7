import pytest

from conftest import make_office, make_shipment


@pytest.fixture
def offices(client):
    return [make_office(client, z) for z in ("A", "B", "C")]


def test_create_shipment(client, offices):
    s = make_shipment(client, "S-1", "A", "B")
    assert s["status"] == "ORIGIN_PROCESSED"
    assert s["originId"] == "A"
    assert s["destinationId"] == "B"
    assert s["createdAt"] and s["updatedAt"]


def test_create_without_destination(client, offices):
    s = make_shipment(client, "S-1", "A")
    assert s["destinationId"] is None


def test_create_with_unknown_origin(client, offices):
    res = client.post(
        "/api/shipments",
        json={"shipmentNumber": "S-1", "type": "LETTER", "status": "ORIGIN_PROCESSED",
              "weight": "MORE_THAN_5KG", "originId": "nope", "destinationId": "B"},
    )
    assert res.status_code == 404
    body = res.json()
    assert body["error"] == "ReferenceNotFound"
    assert body["field"] == "originId"
    assert client.get("/api/shipments").json()["total"] == 0


def test_create_with_unknown_destination(client, offices):
    res = client.post(
        "/api/shipments",
        json={"shipmentNumber": "S-1", "type": "LETTER", "status": "ORIGIN_PROCESSED",
              "weight": "MORE_THAN_5KG", "originId": "A", "destinationId": "nope"},
    )
    assert res.status_code == 404
    assert res.json()["field"] == "destinationId"
    assert client.get("/api/shipments").json()["total"] == 0


def test_create_duplicate_number(client, offices):
    make_shipment(client, "S-1", "A")
    res = client.post(
        "/api/shipments",
        json={"shipmentNumber": "S-1", "type": "LETTER", "status": "ORIGIN_PROCESSED",
              "weight": "LESS_THAN_1KG", "originId": "B"},
    )
    assert res.status_code == 409
    assert res.json()["error"] == "DuplicateKey"


def test_create_rejects_unknown_enum(client, offices):
    res = client.post(
        "/api/shipments",
        json={"shipmentNumber": "S-1", "type": "PARCEL", "status": "ORIGIN_PROCESSED",
              "weight": "LESS_THAN_1KG", "originId": "A"},
    )
    assert res.status_code == 422
    assert res.json()["error"] == "InvalidPayload"


def test_origin_phase_accepts_status_only(client, offices):
    s = make_shipment(client, "S-1", "A", "B")
    res = client.patch(f"/api/shipments/{s['id']}", json={"status": "DESTINATION_PROCESSED"})
    assert res.status_code == 200
    assert res.json()["status"] == "DESTINATION_PROCESSED"


def test_origin_phase_rejects_status_with_other_fields(client, offices):
    s = make_shipment(client, "S-1", "A", "B")
    res = client.patch(
        f"/api/shipments/{s['id']}",
        json={"status": "DESTINATION_PROCESSED", "weight": "MORE_THAN_5KG"},
    )
    assert res.status_code == 400
    assert res.json()["error"] == "IllegalMutation"
    after = client.get(f"/api/shipments/{s['id']}").json()
    assert after["status"] == "ORIGIN_PROCESSED"
    assert after["weight"] == "LESS_THAN_1KG"


def test_origin_phase_rejects_update_without_status(client, offices):
    s = make_shipment(client, "S-1", "A", "B")
    res = client.patch(f"/api/shipments/{s['id']}", json={"weight": "MORE_THAN_5KG"})
    assert res.status_code == 400
    assert res.json()["error"] == "IllegalMutation"


def test_origin_phase_ignores_null_fields(client, offices):
    s = make_shipment(client, "S-1", "A", "B")
    res = client.patch(f"/api/shipments/{s['id']}", json={"status": "DELIVERED", "weight": None})
    assert res.status_code == 200
    body = res.json()
    assert body["status"] == "DELIVERED"
    assert body["weight"] == "LESS_THAN_1KG"


def test_origin_phase_rejects_only_null_fields(client, offices):
    s = make_shipment(client, "S-1", "A", "B")
    res = client.patch(f"/api/shipments/{s['id']}", json={"weight": None})
    assert res.status_code == 400
    assert res.json()["error"] == "IllegalMutation"


def test_later_phase_accepts_partial_update(client, offices):
    s = make_shipment(client, "S-1", "A", "B", status="DESTINATION_PROCESSED")
    res = client.patch(f"/api/shipments/{s['id']}", json={"weight": "MORE_THAN_5KG"})
    assert res.status_code == 200
    body = res.json()
    assert body["weight"] == "MORE_THAN_5KG"
    assert body["status"] == "DESTINATION_PROCESSED"
    assert body["type"] == "PACKAGE"


def test_later_phase_updates_references(client, offices):
    s = make_shipment(client, "S-1", "A", "B", status="DELIVERED")
    res = client.patch(
        f"/api/shipments/{s['id']}",
        json={"originId": "C", "destinationId": "A", "shipmentNumber": "S-9"},
    )
    assert res.status_code == 200
    body = res.json()
    assert (body["originId"], body["destinationId"], body["shipmentNumber"]) == ("C", "A", "S-9")


def test_later_phase_rejects_unknown_reference(client, offices):
    s = make_shipment(client, "S-1", "A", "B", status="DESTINATION_PROCESSED")
    res = client.patch(
        f"/api/shipments/{s['id']}", json={"weight": "MORE_THAN_5KG", "destinationId": "X"}
    )
    assert res.status_code == 404
    assert res.json()["field"] == "destinationId"
    assert client.get(f"/api/shipments/{s['id']}").json()["weight"] == "LESS_THAN_1KG"


def test_later_phase_rejects_taken_number(client, offices):
    make_shipment(client, "S-1", "A")
    s = make_shipment(client, "S-2", "A", status="DELIVERED")
    res = client.patch(f"/api/shipments/{s['id']}", json={"shipmentNumber": "S-1"})
    assert res.status_code == 409


def test_status_can_not_return_to_origin(client, offices):
    s = make_shipment(client, "S-1", "A", "B", status="DESTINATION_PROCESSED")
    res = client.patch(f"/api/shipments/{s['id']}", json={"status": "ORIGIN_PROCESSED"})
    assert res.status_code == 400
    assert res.json()["error"] == "IllegalMutation"


def test_update_missing_shipment(client):
    res = client.patch("/api/shipments/99", json={"status": "DELIVERED"})
    assert res.status_code == 404
    assert res.json()["error"] == "NotFound"


def test_get_and_delete_shipment(client, offices):
    s = make_shipment(client, "S-1", "A")
    assert client.get(f"/api/shipments/{s['id']}").status_code == 200

    res = client.delete(f"/api/shipments/{s['id']}")
    assert res.status_code == 200
    assert res.json()["message"] == "Shipment deleted successfully"
    assert client.get(f"/api/shipments/{s['id']}").status_code == 404
    assert client.delete(f"/api/shipments/{s['id']}").status_code == 404
