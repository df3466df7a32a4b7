from conftest import make_office, make_shipment


def test_create_and_get_post_office(client):
    office = make_office(client, "10001")
    assert office["zipCode"] == "10001"

    res = client.get(f"/api/postoffices/{office['id']}")
    assert res.status_code == 200
    assert res.json()["zipCode"] == "10001"


def test_duplicate_zip_code_rejected(client):
    make_office(client, "10001")
    res = client.post("/api/postoffices", json={"zipCode": "10001"})
    assert res.status_code == 409
    assert res.json()["error"] == "DuplicateKey"
    assert len(client.get("/api/postoffices").json()) == 1


def test_create_rejects_bad_payload(client):
    res = client.post("/api/postoffices", json={"zipCode": ""})
    assert res.status_code == 422
    assert res.json()["error"] == "InvalidPayload"

    res = client.post("/api/postoffices", json={"zipCode": "1", "city": "x"})
    assert res.status_code == 422


def test_list_post_offices(client):
    for z in ("1", "2", "3"):
        make_office(client, z)
    res = client.get("/api/postoffices")
    assert res.status_code == 200
    assert [o["zipCode"] for o in res.json()] == ["1", "2", "3"]


def test_list_post_offices_rejects_query(client):
    res = client.get("/api/postoffices?zipCode=1")
    assert res.status_code == 422
    assert res.json()["error"] == "InvalidFilter"


def test_get_missing_post_office(client):
    res = client.get("/api/postoffices/999")
    assert res.status_code == 404
    assert res.json()["error"] == "NotFound"


def test_rename_without_shipments(client):
    office = make_office(client, "10001")
    res = client.patch(f"/api/postoffices/{office['id']}", json={"zipCode": "20002"})
    assert res.status_code == 200
    assert res.json()["zipCode"] == "20002"
    assert res.json()["id"] == office["id"]
    assert client.get("/api/shipments").json()["total"] == 0


def test_rename_cascades_to_shipments(client):
    office = make_office(client, "A")
    make_office(client, "B")
    s1 = make_shipment(client, "S-1", "A", "B")
    s2 = make_shipment(client, "S-2", "B", "A", status="DESTINATION_PROCESSED")
    s3 = make_shipment(client, "S-3", "B", "B")

    res = client.patch(f"/api/postoffices/{office['id']}", json={"zipCode": "Z"})
    assert res.status_code == 200

    after1 = client.get(f"/api/shipments/{s1['id']}").json()
    assert after1["originId"] == "Z"
    assert after1["destinationId"] == "B"
    for field in ("shipmentNumber", "type", "status", "weight"):
        assert after1[field] == s1[field]

    after2 = client.get(f"/api/shipments/{s2['id']}").json()
    assert (after2["originId"], after2["destinationId"]) == ("B", "Z")

    after3 = client.get(f"/api/shipments/{s3['id']}").json()
    assert (after3["originId"], after3["destinationId"]) == ("B", "B")

    # old zip code no longer resolves
    res = client.post(
        "/api/shipments",
        json={"shipmentNumber": "S-4", "type": "LETTER", "status": "ORIGIN_PROCESSED",
              "weight": "LESS_THAN_1KG", "originId": "A"},
    )
    assert res.status_code == 404


def test_rename_same_office_origin_and_destination(client):
    office = make_office(client, "A")
    s = make_shipment(client, "S-1", "A", "A")
    client.patch(f"/api/postoffices/{office['id']}", json={"zipCode": "Q"})
    after = client.get(f"/api/shipments/{s['id']}").json()
    assert (after["originId"], after["destinationId"]) == ("Q", "Q")


def test_rename_to_taken_zip_code(client):
    office = make_office(client, "A")
    make_office(client, "B")
    s = make_shipment(client, "S-1", "A")
    res = client.patch(f"/api/postoffices/{office['id']}", json={"zipCode": "B"})
    assert res.status_code == 409
    assert client.get(f"/api/postoffices/{office['id']}").json()["zipCode"] == "A"
    assert client.get(f"/api/shipments/{s['id']}").json()["originId"] == "A"


def test_rename_to_same_zip_code_is_noop(client):
    office = make_office(client, "A")
    res = client.patch(f"/api/postoffices/{office['id']}", json={"zipCode": "A"})
    assert res.status_code == 200
    assert res.json()["zipCode"] == "A"


def test_rename_missing_office(client):
    res = client.patch("/api/postoffices/42", json={"zipCode": "A"})
    assert res.status_code == 404


def test_delete_blocked_by_shipment_at_origin(client):
    office = make_office(client, "A")
    make_office(client, "B")
    s = make_shipment(client, "S-1", "A", "B")

    res = client.delete(f"/api/postoffices/{office['id']}")
    assert res.status_code == 409
    assert res.json()["error"] == "HasActiveDependents"

    res = client.patch(f"/api/shipments/{s['id']}", json={"status": "DELIVERED"})
    assert res.status_code == 200

    res = client.delete(f"/api/postoffices/{office['id']}")
    assert res.status_code == 200
    assert res.json()["message"] == "Post Office deleted successfully"
    assert client.get(f"/api/postoffices/{office['id']}").status_code == 404


def test_delete_blocked_only_in_matching_phase(client):
    a = make_office(client, "A")
    b = make_office(client, "B")
    make_shipment(client, "S-1", "A", "B", status="DESTINATION_PROCESSED")

    # origin of a shipment that already reached its destination: not blocking
    assert client.delete(f"/api/postoffices/{a['id']}").status_code == 200
    res = client.delete(f"/api/postoffices/{b['id']}")
    assert res.status_code == 409


def test_delete_missing_office(client):
    assert client.delete("/api/postoffices/7").status_code == 404
