"""Read models and the linking endpoint served through the ASGI app."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from neighbors_admin.api.dependencies import get_public_database, get_service_database
from neighbors_admin.api.main import app
from neighbors_admin.db import PersistenceError

MEMBERSHIPS = [
    {"id": "1", "customer_email": "a@x.com", "tier": "Individual", "status": "Expired", "last_renewal": "2023-01-01"},
    {"id": "2", "customer_email": "A@X.COM ", "tier": "Household", "status": "Active", "last_renewal": "2024-01-01"},
    {"id": "3", "customer_email": "b@x.com", "tier": "Senior", "status": "Active", "last_renewal": "2024-05-01"},
]

PEOPLE = [
    {"id": "p1", "full_name": "Alex Ames", "email": "a@x.com", "address": "1 Elm St", "household_id": "h1",
     "membership_id": "1"},
    {"id": "p2", "full_name": "Bo Berg", "email": "b@x.com", "address": "2 Oak St", "household_id": "h2"},
]


@pytest.fixture
def db(fake_db_factory):
    return fake_db_factory(memberships=MEMBERSHIPS, people=PEOPLE)


@pytest.fixture
def client(db):
    app.dependency_overrides[get_public_database] = lambda: db
    app.dependency_overrides[get_service_database] = lambda: db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def test_health(client) -> None:
    assert client.get("/health").json() == {"status": "ok"}


def test_people_project_linked_membership_in_camel_case(client) -> None:
    response = client.get("/api/people")

    assert response.status_code == 200
    alex, bo = response.json()
    assert alex == {
        "id": "p1",
        "name": "Alex Ames",
        "email": "a@x.com",
        "address": "1 Elm St",
        "householdId": "h1",
        "membershipId": "1",
        "membershipTier": "Individual",
        "membershipStatus": "Expired",
        "lastRenewal": "2023-01-01",
    }
    assert bo["membershipId"] is None
    assert bo["membershipTier"] is None


def test_duplicates_report(client) -> None:
    response = client.get("/api/memberships/duplicates")

    assert response.status_code == 200
    [duplicate] = response.json()
    assert duplicate["email"] == "a@x.com"
    assert duplicate["personName"] == "Alex Ames"
    assert duplicate["membershipCount"] == 2
    assert [tier["membershipId"] for tier in duplicate["tiers"]] == ["2", "1"]
    assert duplicate["tiers"][0]["lastRenewal"] == "2024-01-01"


def test_duplicate_summary(client) -> None:
    body = client.get("/api/memberships/duplicates/summary").json()

    assert body["totalMemberships"] == 3
    assert body["duplicateEmails"] == 1
    assert body["groupSizes"] == {"2": 1, "3": 0, "4+": 0}
    assert body["emailsWithMultipleActive"] == []


def test_link_dry_run_then_apply(client, db) -> None:
    preview = client.post("/api/memberships/link", params={"dry_run": "true"}).json()

    assert preview["dryRun"] is True
    assert (preview["linked"], preview["updated"]) == (1, 1)
    assert db.person_updates == []

    applied = client.post("/api/memberships/link").json()

    assert applied["errors"] == []
    assert db.person("p1")["membership_id"] == "2"
    assert db.person("p2")["membership_id"] == "3"

    status = client.get("/api/memberships/linking-status").json()
    assert status["linked"] == 2
    assert status["unlinked"] == 1
    assert status["activeUnlinked"] == []


def test_database_failure_is_a_bad_gateway(client, db, monkeypatch: pytest.MonkeyPatch) -> None:
    def boom(**kwargs):
        raise PersistenceError("Failed to list memberships: timeout")

    monkeypatch.setattr(db, "list_memberships", boom)

    response = client.get("/api/memberships/duplicates")

    assert response.status_code == 502
