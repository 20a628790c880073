"""Repository-wide pytest fixtures."""

from __future__ import annotations

import hashlib
import hmac
import time
from collections.abc import Generator
from typing import Any, Callable, Dict, Iterable, List, Optional

import pytest

from neighbors_admin.billing import BillingCustomer, BillingPrice, reset_billing_providers
from neighbors_admin.billing.providers import StripeBillingProvider
from neighbors_admin.config import reload_config
from neighbors_admin.db import BusinessRecord, MembershipRecord, PersistenceError, PersonRecord, RouteRecord

WEBHOOK_SECRET = "whsec_test_secret"

_MANAGED_ENV = (
    "SUPABASE_URL",
    "NEXT_PUBLIC_SUPABASE_URL",
    "SUPABASE_ANON_KEY",
    "NEXT_PUBLIC_SUPABASE_ANON_KEY",
    "SUPABASE_SERVICE_ROLE_KEY",
    "STRIPE_SECRET_KEY",
    "STRIPE_WEBHOOK_SECRET",
    "MEMBERSHIP_TIER_KEYWORDS",
    "MEMBERSHIP_EXCLUDED_TIER_KEYWORDS",
    "BILLING_PROVIDER_DEFAULT",
    "API_CORS_ORIGINS",
)


@pytest.fixture(autouse=True)
def _set_default_env(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Give every test the same Stripe/Supabase settings and a fresh provider cache."""

    for name in _MANAGED_ENV:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("ENV", "test")
    monkeypatch.setenv("SUPABASE_URL", "https://example.supabase.co")
    monkeypatch.setenv("SUPABASE_ANON_KEY", "anon-key")
    monkeypatch.setenv("SUPABASE_SERVICE_ROLE_KEY", "service-role-key")
    monkeypatch.setenv("STRIPE_SECRET_KEY", "sk_test_123")
    monkeypatch.setenv("STRIPE_WEBHOOK_SECRET", WEBHOOK_SECRET)
    reload_config()
    reset_billing_providers()
    yield
    reset_billing_providers()


class FakeDatabase:
    """In-memory stand-in for ``SupabaseDatabaseClient`` with the same query surface."""

    def __init__(
        self,
        memberships: Iterable[Dict[str, Any]] = (),
        people: Iterable[Dict[str, Any]] = (),
        businesses: Iterable[Dict[str, Any]] = (),
        routes: Iterable[Dict[str, Any]] = (),
    ) -> None:
        self.memberships: List[Dict[str, Any]] = [dict(row) for row in memberships]
        self.people: List[Dict[str, Any]] = [dict(row) for row in people]
        self.businesses: List[Dict[str, Any]] = [dict(row) for row in businesses]
        self.routes: List[Dict[str, Any]] = [dict(row) for row in routes]
        self.membership_updates: List[tuple] = []
        self.person_updates: List[tuple] = []
        self.inserts: List[Dict[str, Any]] = []
        self.failing_person_ids: set = set()
        self._sequence = len(self.memberships)

    # memberships ---------------------------------------------------------
    def find_membership_by_subscription_id(self, subscription_id: str) -> Optional[MembershipRecord]:
        for row in self.memberships:
            if row.get("stripe_subscription_id") == subscription_id:
                return MembershipRecord.model_validate(row)
        return None

    def find_latest_membership_for_customer(self, customer_id: str) -> Optional[MembershipRecord]:
        rows = [row for row in self.memberships if row.get("stripe_customer_id") == customer_id]
        if not rows:
            return None
        rows.sort(key=lambda row: row.get("created_at") or "", reverse=True)
        return MembershipRecord.model_validate(rows[0])

    def list_memberships(self, *, with_email_only: bool = False) -> List[MembershipRecord]:
        rows = [row for row in self.memberships if not with_email_only or row.get("customer_email")]
        return [MembershipRecord.model_validate(row) for row in rows]

    def update_membership(self, membership_id: str, updates: Dict[str, Any]) -> None:
        self.membership_updates.append((membership_id, dict(updates)))
        for row in self.memberships:
            if row["id"] == membership_id:
                row.update(updates)

    def insert_membership(self, payload: Dict[str, Any]) -> MembershipRecord:
        self.inserts.append(dict(payload))
        for row in self.memberships:
            if row.get("stripe_subscription_id") == payload.get("stripe_subscription_id"):
                row.update(payload)
                return MembershipRecord.model_validate(row)
        self._sequence += 1
        row = {
            "id": f"m-new-{self._sequence}",
            "created_at": f"2030-01-01T00:00:{self._sequence:02d}+00:00",
            **payload,
        }
        self.memberships.append(row)
        return MembershipRecord.model_validate(row)

    # people --------------------------------------------------------------
    def list_people(self, *, with_email_only: bool = False) -> List[PersonRecord]:
        rows = [row for row in self.people if not with_email_only or row.get("email")]
        return [PersonRecord.model_validate(row) for row in rows]

    def list_people_with_memberships(self) -> List[PersonRecord]:
        by_id = {row["id"]: row for row in self.memberships}
        joined = []
        for row in self.people:
            membership = by_id.get(row.get("membership_id"))
            joined.append({**row, "memberships": dict(membership) if membership else None})
        return [PersonRecord.model_validate(row) for row in joined]

    def update_person_membership(self, person_id: str, membership_id: str) -> None:
        if person_id in self.failing_person_ids:
            raise PersistenceError(f"Failed to link person {person_id}: connection reset")
        self.person_updates.append((person_id, membership_id))
        for row in self.people:
            if row["id"] == person_id:
                row["membership_id"] = membership_id

    # businesses & routes -------------------------------------------------
    def list_businesses(self) -> List[BusinessRecord]:
        return [BusinessRecord.model_validate(row) for row in self.businesses]

    def list_routes(self) -> List[RouteRecord]:
        people_by_id = {row["id"]: row for row in self.people}
        joined = []
        for row in self.routes:
            deliverer = people_by_id.get(row.get("primary_deliverer_id"))
            joined.append({**row, "deliverer": dict(deliverer) if deliverer else None})
        return [RouteRecord.model_validate(row) for row in joined]

    # helpers -------------------------------------------------------------
    def membership(self, membership_id: str) -> Dict[str, Any]:
        return next(row for row in self.memberships if row["id"] == membership_id)

    def person(self, person_id: str) -> Dict[str, Any]:
        return next(row for row in self.people if row["id"] == person_id)


class StubStripeProvider(StripeBillingProvider):
    """Real webhook verification, canned customer and price lookups."""

    def __init__(
        self,
        customers: Optional[Dict[str, BillingCustomer]] = None,
        prices: Optional[Dict[str, BillingPrice]] = None,
    ) -> None:
        super().__init__()
        self.customers = customers or {}
        self.prices = prices or {}
        self.customer_lookups: List[str] = []
        self.price_lookups: List[str] = []

    def retrieve_customer(self, customer_id: str) -> BillingCustomer:
        self.customer_lookups.append(customer_id)
        if customer_id not in self.customers:
            raise LookupError(f"No such customer: {customer_id}")
        return self.customers[customer_id]

    def retrieve_price(self, price_id: str) -> BillingPrice:
        self.price_lookups.append(price_id)
        if price_id not in self.prices:
            raise LookupError(f"No such price: {price_id}")
        return self.prices[price_id]


@pytest.fixture
def fake_db_factory() -> Callable[..., FakeDatabase]:
    return FakeDatabase


@pytest.fixture
def stub_provider_factory() -> Callable[..., StubStripeProvider]:
    return StubStripeProvider


@pytest.fixture
def subscription_payload() -> Callable[..., Dict[str, Any]]:
    """Build a ``customer.subscription.*`` object shaped like Stripe's."""

    def _build(
        subscription_id: str = "sub_1",
        customer_id: str = "cus_1",
        period_start: Optional[int] = 1740787200,  # 2025-03-01T00:00:00Z
        price_id: str = "price_household",
        product_id: str = "prod_household",
        nickname: Optional[str] = "Household Membership",
        metadata: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "id": subscription_id,
            "object": "subscription",
            "customer": customer_id,
            "status": "active",
            "items": {
                "object": "list",
                "data": [
                    {
                        "id": f"si_{subscription_id}",
                        "price": {
                            "id": price_id,
                            "object": "price",
                            "nickname": nickname,
                            "product": product_id,
                            "metadata": metadata or {},
                        },
                    }
                ],
            },
        }
        if period_start is not None:
            payload["current_period_start"] = period_start
        return payload

    return _build


def _sign(payload: str, secret: str = WEBHOOK_SECRET, timestamp: Optional[int] = None) -> str:
    timestamp = int(time.time()) if timestamp is None else timestamp
    signed = f"{timestamp}.{payload}".encode("utf-8")
    digest = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={digest}"


@pytest.fixture
def sign_stripe_payload() -> Callable[..., str]:
    """Compute a ``Stripe-Signature`` header the way Stripe does."""

    return _sign
