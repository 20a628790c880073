"""Business and delivery route read models served through the ASGI app."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from neighbors_admin.api.dependencies import get_public_database
from neighbors_admin.api.main import app
from neighbors_admin.db import PersistenceError

PEOPLE = [
    {"id": "p1", "full_name": "Alex Ames", "email": "a@x.com", "address": "1 Elm St"},
]

BUSINESSES = [
    {
        "id": "b1",
        "name": "Corner Bakery",
        "contact_name": "Dana Lee",
        "email": "hello@bakery.test",
        "status": "activeMember",
        "sponsorship_tags": ["Gold", "In-Kind"],
        "linked_events": "Spring Fair, Block Party",
    },
    {"id": "b2", "name": "Hardware Co", "status": None},
]

ROUTES = [
    {
        "id": "r1",
        "route_name": "Elm Loop",
        "leaflet_count": 80,
        "dropoff_location": "1 Elm St porch",
        "status": "Scheduled",
        "route_type": "Single family residences",
        "primary_deliverer_id": "p1",
        "primary_deliverer_email": "a@x.com",
    },
    {"id": "r2", "route_name": "Market St", "route_type": "Businesses"},
]


@pytest.fixture
def db(fake_db_factory):
    return fake_db_factory(people=PEOPLE, businesses=BUSINESSES, routes=ROUTES)


@pytest.fixture
def client(db):
    app.dependency_overrides[get_public_database] = lambda: db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def test_businesses_are_listed_in_camel_case(client) -> None:
    response = client.get("/api/businesses")

    assert response.status_code == 200
    bakery, hardware = response.json()
    assert bakery == {
        "id": "b1",
        "companyName": "Corner Bakery",
        "contactName": "Dana Lee",
        "email": "hello@bakery.test",
        "phone": "",
        "sponsorshipTags": ["Gold", "In-Kind"],
        "linkedEvents": ["Spring Fair", "Block Party"],
        "address": "",
        "notes": "",
        "status": "activeMember",
    }
    assert hardware["status"] == "yetToSupport"
    assert hardware["sponsorshipTags"] == []


def test_routes_embed_their_deliverer(client) -> None:
    response = client.get("/api/routes")

    assert response.status_code == 200
    elm, market = response.json()
    assert elm == {
        "id": "r1",
        "name": "Elm Loop",
        "leaflets": 80,
        "dropoffLocation": "1 Elm St porch",
        "distributor": None,
        "status": "Scheduled",
        "routeType": "Single family residence",
        "primaryDelivererId": "p1",
        "primaryDelivererEmail": "a@x.com",
        "deliverer": {"id": "p1", "name": "Alex Ames", "email": "a@x.com", "address": "1 Elm St"},
    }
    assert market["status"] == "Open"
    assert market["routeType"] == "Commercial"
    assert market["deliverer"] is None


@pytest.mark.parametrize(("path", "method"), [("/api/businesses", "list_businesses"), ("/api/routes", "list_routes")])
def test_directory_failure_is_a_bad_gateway(client, db, monkeypatch: pytest.MonkeyPatch, path, method) -> None:
    def boom():
        raise PersistenceError(f"Failed to {method.replace('_', ' ')}: timeout")

    monkeypatch.setattr(db, method, boom)

    response = client.get(path)

    assert response.status_code == 502
