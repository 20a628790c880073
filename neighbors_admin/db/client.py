"""
Supabase database client for the people, memberships, businesses and routes tables.

Two handles exist: a privileged one built from the service role key (webhook
handler and batch linker) and a public one built from the anon key (read
models). Each is constructed explicitly and handed to its caller.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

from supabase import Client, ClientOptions, create_client

from ..config import CONFIG
from .errors import DatabaseNotConfiguredError, PersistenceError
from .models import BusinessRecord, MembershipRecord, PersonRecord, RouteRecord

logger = logging.getLogger(__name__)

MEMBERSHIPS_TABLE = "memberships"
PEOPLE_TABLE = "people"
BUSINESSES_TABLE = "businesses"
ROUTES_TABLE = "routes"

MEMBERSHIP_COLUMNS = (
    "id, stripe_customer_id, stripe_subscription_id, stripe_tier_id, "
    "customer_email, status, tier, last_renewal, created_at"
)
PEOPLE_COLUMNS = "id, full_name, email, address, household_id, membership_id"
PEOPLE_WITH_MEMBERSHIP_COLUMNS = f"{PEOPLE_COLUMNS}, memberships(id, tier, status, last_renewal)"
BUSINESS_COLUMNS = (
    "id, name, contact_name, email, phone, address, notes, status, sponsorship_tags, linked_events"
)
ROUTE_COLUMNS = (
    "id, route_name, leaflet_count, dropoff_location, distributor, status, route_type, "
    "primary_deliverer_id, primary_deliverer_email, "
    "deliverer:people!primary_deliverer_id(id, full_name, email, address)"
)


class SupabaseDatabaseClient:
    """Typed query helpers over a Supabase ``Client``."""

    def __init__(self, client: Client, *, privileged: bool, page_size: Optional[int] = None):
        self.client = client
        self.privileged = privileged
        self.page_size = max(int(page_size or getattr(CONFIG, "supabase_page_size", 1000)), 1)

    # ------------------------------------------------------------------
    # Query plumbing
    # ------------------------------------------------------------------
    def _execute(self, action: str, query: Any) -> Any:
        try:
            return query.execute()
        except Exception as exc:
            raise PersistenceError(f"Failed to {action}: {exc}") from exc

    def _select_all(self, action: str, build_query: Callable[[], Any]) -> List[Dict[str, Any]]:
        """Page through a select; PostgREST caps the rows returned per request."""

        rows: List[Dict[str, Any]] = []
        start = 0
        while True:
            query = build_query().range(start, start + self.page_size - 1)
            batch = self._execute(action, query).data or []
            rows.extend(batch)
            if len(batch) < self.page_size:
                return rows
            start += self.page_size

    @staticmethod
    def _first_row(result: Any) -> Optional[Dict[str, Any]]:
        data = getattr(result, "data", None)
        if isinstance(data, list):
            return data[0] if data else None
        if isinstance(data, dict):
            return data
        return None

    # ------------------------------------------------------------------
    # Memberships
    # ------------------------------------------------------------------
    def find_membership_by_subscription_id(self, subscription_id: str) -> Optional[MembershipRecord]:
        result = self._execute(
            f"find membership for subscription {subscription_id}",
            self.client.table(MEMBERSHIPS_TABLE)
            .select(MEMBERSHIP_COLUMNS)
            .eq("stripe_subscription_id", subscription_id)
            .limit(1),
        )
        row = self._first_row(result)
        return MembershipRecord.model_validate(row) if row else None

    def find_latest_membership_for_customer(self, customer_id: str) -> Optional[MembershipRecord]:
        result = self._execute(
            f"find membership for customer {customer_id}",
            self.client.table(MEMBERSHIPS_TABLE)
            .select(MEMBERSHIP_COLUMNS)
            .eq("stripe_customer_id", customer_id)
            .order("created_at", desc=True)
            .limit(1),
        )
        row = self._first_row(result)
        return MembershipRecord.model_validate(row) if row else None

    def list_memberships(self, *, with_email_only: bool = False) -> List[MembershipRecord]:
        def build_query() -> Any:
            query = self.client.table(MEMBERSHIPS_TABLE).select(MEMBERSHIP_COLUMNS)
            if with_email_only:
                query = query.not_.is_("customer_email", "null")
            return query.order("id")

        rows = self._select_all("list memberships", build_query)
        return [MembershipRecord.model_validate(row) for row in rows]

    def update_membership(self, membership_id: str, updates: Dict[str, Any]) -> None:
        self._execute(
            f"update membership {membership_id}",
            self.client.table(MEMBERSHIPS_TABLE).update(updates).eq("id", membership_id),
        )

    def insert_membership(self, payload: Dict[str, Any]) -> MembershipRecord:
        """Write a new membership keyed on its subscription id.

        The write is an upsert on ``stripe_subscription_id`` so two deliveries
        of the same event that race past the lookup still leave one row.
        """

        result = self._execute(
            f"insert membership for subscription {payload.get('stripe_subscription_id')}",
            self.client.table(MEMBERSHIPS_TABLE).upsert(payload, on_conflict="stripe_subscription_id"),
        )
        row = self._first_row(result)
        if not row:
            raise PersistenceError(
                f"Membership insert for subscription {payload.get('stripe_subscription_id')} returned no row"
            )
        return MembershipRecord.model_validate(row)

    # ------------------------------------------------------------------
    # People
    # ------------------------------------------------------------------
    def list_people(self, *, with_email_only: bool = False) -> List[PersonRecord]:
        def build_query() -> Any:
            query = self.client.table(PEOPLE_TABLE).select(PEOPLE_COLUMNS)
            if with_email_only:
                query = query.not_.is_("email", "null")
            return query.order("id")

        rows = self._select_all("list people", build_query)
        return [PersonRecord.model_validate(row) for row in rows]

    def list_people_with_memberships(self) -> List[PersonRecord]:
        """People joined with their linked membership for the dashboard read model."""

        rows = self._select_all(
            "list people with memberships",
            lambda: self.client.table(PEOPLE_TABLE).select(PEOPLE_WITH_MEMBERSHIP_COLUMNS).order("id"),
        )
        return [PersonRecord.model_validate(row) for row in rows]

    def update_person_membership(self, person_id: str, membership_id: str) -> None:
        self._execute(
            f"link person {person_id} to membership {membership_id}",
            self.client.table(PEOPLE_TABLE).update({"membership_id": membership_id}).eq("id", person_id),
        )

    # ------------------------------------------------------------------
    # Businesses & routes
    # ------------------------------------------------------------------
    def list_businesses(self) -> List[BusinessRecord]:
        rows = self._select_all(
            "list businesses",
            lambda: self.client.table(BUSINESSES_TABLE).select(BUSINESS_COLUMNS).order("id"),
        )
        return [BusinessRecord.model_validate(row) for row in rows]

    def list_routes(self) -> List[RouteRecord]:
        """Delivery routes with the primary deliverer embedded from ``people``."""

        rows = self._select_all(
            "list routes",
            lambda: self.client.table(ROUTES_TABLE).select(ROUTE_COLUMNS).order("id"),
        )
        return [RouteRecord.model_validate(row) for row in rows]


def create_database_client(
    url: Optional[str],
    key: Optional[str],
    *,
    privileged: bool,
    page_size: Optional[int] = None,
) -> SupabaseDatabaseClient:
    """Build a client handle; sessions are never persisted or refreshed server-side."""

    if not url or not key:
        role = "service role" if privileged else "anon"
        raise DatabaseNotConfiguredError(f"SUPABASE_URL and the Supabase {role} key are required")

    options = ClientOptions(auto_refresh_token=False, persist_session=False)
    client = create_client(url, key, options=options)
    return SupabaseDatabaseClient(client, privileged=privileged, page_size=page_size)


def create_service_database_client() -> SupabaseDatabaseClient:
    """Privileged handle (bypasses row level security). Server-side tooling only."""

    client = create_database_client(
        CONFIG.supabase_url,
        CONFIG.supabase_service_role_key,
        privileged=True,
        page_size=CONFIG.supabase_page_size,
    )
    logger.debug("Created privileged Supabase client")
    return client


def create_public_database_client() -> SupabaseDatabaseClient:
    """Restricted handle built from the anon key, subject to row level security."""

    return create_database_client(
        CONFIG.supabase_url,
        CONFIG.supabase_anon_key,
        privileged=False,
        page_size=CONFIG.supabase_page_size,
    )


# Simple alias for readability
DatabaseClient = SupabaseDatabaseClient
