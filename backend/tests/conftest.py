import pytest
from fastapi.testclient import TestClient

from postal.config import Settings
from postal.db import Database
from postal.main import create_app


@pytest.fixture
def settings(tmp_path):
    return Settings(
        DATABASE_URL=f"sqlite:///{tmp_path / 'postal-test.db'}",
        RECONCILE_INTERVAL_SECONDS=0,
        LOG_LEVEL="WARNING",
    )


@pytest.fixture
def client(settings):
    with TestClient(create_app(settings)) as c:
        yield c


@pytest.fixture
def database(settings):
    db = Database(settings.DATABASE_URL)
    db.connect()
    db.create_schema()
    yield db
    db.dispose()


@pytest.fixture
def session(database):
    s = database.session()
    try:
        yield s
    finally:
        s.close()


def make_office(client, zip_code):
    res = client.post("/api/postoffices", json={"zipCode": zip_code})
    assert res.status_code == 201, res.text
    return res.json()


def make_shipment(client, number, origin, destination=None, **overrides):
    payload = {
        "shipmentNumber": number,
        "type": "PACKAGE",
        "status": "ORIGIN_PROCESSED",
        "weight": "LESS_THAN_1KG",
        "originId": origin,
    }
    if destination is not None:
        payload["destinationId"] = destination
    payload.update(overrides)
    res = client.post("/api/shipments", json=payload)
    assert res.status_code == 201, res.text
    return res.json()
