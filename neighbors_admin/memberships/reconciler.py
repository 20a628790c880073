"""Apply Stripe subscription lifecycle events to the memberships table.

Every handler here must be safe to run more than once for the same event:
Stripe delivers at least once, possibly out of order, and a failed handler
is retried by redelivery rather than by an in-process loop.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from neighbors_admin.billing import (
    BillingPrice,
    BillingProvider,
    ProviderNotConfiguredError,
    TierResolver,
)
from neighbors_admin.db import DatabaseClient, MembershipStatus, MembershipTier

from .errors import MalformedEventError, UpstreamLookupError

logger = logging.getLogger(__name__)


class ReconcileOutcome(str, Enum):
    """What a handler did with the membership table."""

    CREATED = "created"
    REUSED = "reused"
    CANCELLED = "cancelled"
    NOT_FOUND = "not_found"


def _epoch_to_date(value: Any) -> Optional[date]:
    if value is None or value == "":
        return None
    try:
        seconds = int(value)
    except (TypeError, ValueError):
        return None
    return datetime.fromtimestamp(seconds, tz=timezone.utc).date()


def _object_id(value: Any) -> Optional[str]:
    """Stripe fields may hold an id string or the expanded object."""

    if isinstance(value, str):
        return value or None
    if isinstance(value, dict):
        identifier = value.get("id")
        return str(identifier) if identifier else None
    return None


def _first_item(subscription: Dict[str, Any]) -> Dict[str, Any]:
    items = subscription.get("items")
    if not isinstance(items, dict):
        return {}
    data = items.get("data") or []
    if data and isinstance(data[0], dict):
        return data[0]
    return {}


@dataclass
class SubscriptionSnapshot:
    """Fields of a Stripe subscription object the handlers read."""

    subscription_id: str
    customer_id: Optional[str]
    period_start: Optional[date]
    price: Optional[Dict[str, Any]]
    price_id: Optional[str]
    product_id: Optional[str]

    @classmethod
    def from_payload(cls, subscription: Dict[str, Any]) -> "SubscriptionSnapshot":
        subscription_id = _object_id(subscription.get("id"))
        if not subscription_id:
            raise MalformedEventError("Subscription payload has no id")

        item = _first_item(subscription)
        raw_price = item.get("price") or item.get("plan")
        price = raw_price if isinstance(raw_price, dict) else None

        # Newer API versions moved the billing period onto the subscription item.
        period_start = _epoch_to_date(subscription.get("current_period_start"))
        if period_start is None:
            period_start = _epoch_to_date(item.get("current_period_start"))
        if period_start is None:
            period_start = _epoch_to_date(subscription.get("start_date"))

        return cls(
            subscription_id=subscription_id,
            customer_id=_object_id(subscription.get("customer")),
            period_start=period_start,
            price=price,
            price_id=_object_id(raw_price),
            product_id=_object_id(price.get("product")) if price else None,
        )


class MembershipReconciler:
    """Create, reuse and cancel memberships in response to subscription events."""

    def __init__(
        self,
        db: DatabaseClient,
        provider: BillingProvider,
        *,
        tier_resolver: Optional[TierResolver] = None,
    ):
        self.db = db
        self.provider = provider
        self.tier_resolver = tier_resolver or TierResolver()

    # ------------------------------------------------------------------
    # customer.subscription.created
    # ------------------------------------------------------------------
    def handle_subscription_created(self, subscription: Dict[str, Any]) -> ReconcileOutcome:
        snapshot = SubscriptionSnapshot.from_payload(subscription)
        if not snapshot.customer_id:
            raise MalformedEventError(f"Subscription {snapshot.subscription_id} has no customer")
        if snapshot.period_start is None:
            raise MalformedEventError(f"Subscription {snapshot.subscription_id} has no billing period start")

        logger.info(
            "Processing subscription creation: %s for customer: %s",
            snapshot.subscription_id,
            snapshot.customer_id,
        )
        last_renewal = snapshot.period_start.isoformat()

        # A row already keyed on this subscription is refreshed in place; moving the
        # id onto another row would leave two rows holding it.
        current = self.db.find_membership_by_subscription_id(snapshot.subscription_id)
        if current is not None:
            self.db.update_membership(
                current.id,
                {"status": MembershipStatus.ACTIVE.value, "last_renewal": last_renewal},
            )
            logger.info(
                "Refreshed membership %s already holding subscription %s",
                current.id,
                snapshot.subscription_id,
            )
            return ReconcileOutcome.REUSED

        existing = self.db.find_latest_membership_for_customer(snapshot.customer_id)
        if existing is not None:
            # A returning customer re-activates their membership instead of forking a second row.
            self.db.update_membership(
                existing.id,
                {
                    "stripe_subscription_id": snapshot.subscription_id,
                    "status": MembershipStatus.ACTIVE.value,
                    "last_renewal": last_renewal,
                },
            )
            logger.info(
                "Reused membership %s for customer %s with subscription %s",
                existing.id,
                snapshot.customer_id,
                snapshot.subscription_id,
            )
            return ReconcileOutcome.REUSED

        email = self._lookup_customer_email(snapshot.customer_id)
        tier = self._resolve_tier(snapshot)

        record = self.db.insert_membership(
            {
                "stripe_customer_id": snapshot.customer_id,
                "stripe_subscription_id": snapshot.subscription_id,
                "stripe_tier_id": snapshot.product_id,
                "customer_email": email,
                "status": MembershipStatus.ACTIVE.value,
                "tier": tier.value if tier else None,
                "last_renewal": last_renewal,
            }
        )
        logger.info(
            "Created membership %s for customer %s (tier=%s)",
            record.id,
            snapshot.customer_id,
            tier.value if tier else None,
        )
        return ReconcileOutcome.CREATED

    def _lookup_customer_email(self, customer_id: str) -> str:
        try:
            customer = self.provider.retrieve_customer(customer_id)
        except ProviderNotConfiguredError:
            raise
        except Exception as exc:
            raise UpstreamLookupError(f"Could not retrieve customer {customer_id}: {exc}") from exc

        if customer.deleted:
            raise UpstreamLookupError(f"Customer {customer_id} has been deleted in the billing provider")
        email = (customer.email or "").strip()
        if not email:
            raise UpstreamLookupError(f"Customer {customer_id} has no email address")
        return email

    def _resolve_tier(self, snapshot: SubscriptionSnapshot) -> Optional[MembershipTier]:
        if snapshot.price is not None:
            price = BillingPrice(
                id=snapshot.price_id or "",
                nickname=snapshot.price.get("nickname"),
                product_id=snapshot.product_id,
                metadata={
                    str(key): str(value)
                    for key, value in (snapshot.price.get("metadata") or {}).items()
                    if value is not None
                },
            )
        elif snapshot.price_id:
            try:
                price = self.provider.retrieve_price(snapshot.price_id)
            except ProviderNotConfiguredError:
                raise
            except Exception as exc:
                raise UpstreamLookupError(f"Could not retrieve price {snapshot.price_id}: {exc}") from exc
        else:
            logger.warning("Subscription %s has no price; storing membership without a tier", snapshot.subscription_id)
            return None
        return self.tier_resolver.resolve_price(price)

    # ------------------------------------------------------------------
    # customer.subscription.deleted
    # ------------------------------------------------------------------
    def handle_subscription_deleted(self, subscription: Dict[str, Any]) -> ReconcileOutcome:
        snapshot = SubscriptionSnapshot.from_payload(subscription)
        logger.info(
            "Processing subscription deletion: %s for customer: %s",
            snapshot.subscription_id,
            snapshot.customer_id,
        )

        membership = self.db.find_membership_by_subscription_id(snapshot.subscription_id)
        if membership is None:
            logger.warning("No membership found for subscription ID: %s", snapshot.subscription_id)
            return ReconcileOutcome.NOT_FOUND

        self.db.update_membership(membership.id, {"status": MembershipStatus.CANCELLED.value})
        logger.info("Updated membership %s status to %s", membership.id, MembershipStatus.CANCELLED.value)
        return ReconcileOutcome.CANCELLED


__all__ = ["MembershipReconciler", "ReconcileOutcome", "SubscriptionSnapshot"]
