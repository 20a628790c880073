"""
Typed row models for the ``people``, ``memberships``, ``businesses`` and ``routes`` tables.

Rows coming back from the Supabase client are plain dictionaries; every read
path validates them into these models so the rest of the code works with one
canonical column name per field.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator


def normalize_email(value: Optional[str]) -> Optional[str]:
    """Lower-case and trim an email; blank values normalize to ``None``."""

    if value is None:
        return None
    normalized = str(value).strip().lower()
    return normalized or None


class MembershipStatus(str, Enum):
    """Values of the ``membership_status`` enum in the database."""

    ACTIVE = "Active"
    EXPIRED = "Expired"
    DONATION = "Donation"
    CANCELLED = "Cancelled"

    @classmethod
    def parse(cls, value: Any) -> Optional["MembershipStatus"]:
        if value is None or isinstance(value, cls):
            return value
        candidate = str(value).strip().lower()
        for member in cls:
            if member.value.lower() == candidate:
                return member
        return None


class MembershipTier(str, Enum):
    """Values of the ``membership_tier`` enum. Business sponsorships live elsewhere."""

    HOUSEHOLD = "Household"
    INDIVIDUAL = "Individual"
    SENIOR = "Senior"
    STUDENT = "Student"

    @classmethod
    def parse(cls, value: Any) -> Optional["MembershipTier"]:
        if value is None or isinstance(value, cls):
            return value
        candidate = str(value).strip().lower()
        for member in cls:
            if member.value.lower() == candidate:
                return member
        return None


def _coerce_id(value: Any) -> Optional[str]:
    if value is None:
        return None
    rendered = str(value).strip()
    return rendered or None


class MembershipRecord(BaseModel):
    """One row of the ``memberships`` table."""

    model_config = ConfigDict(extra="ignore")

    id: str
    stripe_customer_id: Optional[str] = None
    stripe_subscription_id: Optional[str] = None
    stripe_tier_id: Optional[str] = None
    customer_email: Optional[str] = None
    status: Optional[MembershipStatus] = None
    tier: Optional[MembershipTier] = None
    last_renewal: Optional[date] = None
    created_at: Optional[datetime] = None

    @field_validator("id", mode="before")
    @classmethod
    def _validate_id(cls, value: Any) -> Any:
        return _coerce_id(value)

    @field_validator("status", mode="before")
    @classmethod
    def _validate_status(cls, value: Any) -> Optional[MembershipStatus]:
        return MembershipStatus.parse(value)

    @field_validator("tier", mode="before")
    @classmethod
    def _validate_tier(cls, value: Any) -> Optional[MembershipTier]:
        return MembershipTier.parse(value)

    @field_validator("last_renewal", mode="before")
    @classmethod
    def _validate_last_renewal(cls, value: Any) -> Any:
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, str):
            value = value.strip()
            if not value:
                return None
            # Timestamps ("2025-11-13 20:15", ISO datetimes) keep only their date part.
            return value[:10]
        return value

    @field_validator("created_at")
    @classmethod
    def _validate_created_at(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @property
    def normalized_email(self) -> Optional[str]:
        return normalize_email(self.customer_email)

    @property
    def is_active(self) -> bool:
        return self.status is MembershipStatus.ACTIVE


class PersonRecord(BaseModel):
    """One row of the ``people`` table, optionally joined with its linked membership."""

    model_config = ConfigDict(extra="ignore")

    id: str
    full_name: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    household_id: Optional[str] = None
    membership_id: Optional[str] = None
    membership: Optional[MembershipRecord] = None

    @model_validator(mode="before")
    @classmethod
    def _unwrap_joined_membership(cls, data: Any) -> Any:
        # PostgREST embeds the joined row under the table name, as an object or a list.
        if not isinstance(data, dict) or "memberships" not in data:
            return data
        payload: Dict[str, Any] = dict(data)
        joined = payload.pop("memberships")
        if isinstance(joined, list):
            joined = joined[0] if joined else None
        payload["membership"] = joined
        return payload

    @field_validator("id", "household_id", "membership_id", mode="before")
    @classmethod
    def _validate_ids(cls, value: Any) -> Any:
        return _coerce_id(value)

    @property
    def normalized_email(self) -> Optional[str]:
        return normalize_email(self.email)


class BusinessStatus(str, Enum):
    ACTIVE_MEMBER = "activeMember"
    PAST_SPONSOR = "pastSponsor"
    YET_TO_SUPPORT = "yetToSupport"


class SponsorshipLevel(str, Enum):
    GOLD = "Gold"
    SILVER = "Silver"
    BRONZE = "Bronze"
    IN_KIND = "In-Kind"


def _split_list(value: Any) -> List[str]:
    """Array columns may come back as a list or a comma separated string."""

    if value is None:
        return []
    if isinstance(value, str):
        items = value.split(",")
    elif isinstance(value, (list, tuple)):
        items = value
    else:
        return []
    return [str(item).strip() for item in items if item is not None and str(item).strip()]


class BusinessRecord(BaseModel):
    """One row of the ``businesses`` table (sponsors, not memberships)."""

    model_config = ConfigDict(extra="ignore")

    id: str
    name: str = ""
    contact_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None
    status: BusinessStatus = BusinessStatus.YET_TO_SUPPORT
    sponsorship_tags: List[SponsorshipLevel] = []
    linked_events: List[str] = []

    @field_validator("id", mode="before")
    @classmethod
    def _validate_id(cls, value: Any) -> Any:
        return _coerce_id(value)

    @field_validator("name", mode="before")
    @classmethod
    def _validate_name(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("status", mode="before")
    @classmethod
    def _validate_status(cls, value: Any) -> BusinessStatus:
        if isinstance(value, BusinessStatus):
            return value
        try:
            return BusinessStatus(str(value).strip())
        except ValueError:
            return BusinessStatus.YET_TO_SUPPORT

    @field_validator("sponsorship_tags", mode="before")
    @classmethod
    def _validate_sponsorship_tags(cls, value: Any) -> List[SponsorshipLevel]:
        known = {level.value: level for level in SponsorshipLevel}
        # Unknown tags are dropped rather than failing the whole row.
        return [known[tag] for tag in _split_list(value) if tag in known]

    @field_validator("linked_events", mode="before")
    @classmethod
    def _validate_linked_events(cls, value: Any) -> List[str]:
        return _split_list(value)


class RouteStatus(str, Enum):
    SCHEDULED = "Scheduled"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    OPEN = "Open"


class RouteType(str, Enum):
    SINGLE_FAMILY = "Single family residence"
    MULTI_FAMILY = "Multi-family"
    COMMERCIAL = "Commercial"
    MIXED = "Mixed"


# Labels stored in ``routes.route_type`` mapped onto the route type enum.
ROUTE_TYPE_LABELS: Dict[str, RouteType] = {
    "single family residences": RouteType.SINGLE_FAMILY,
    "single family residence": RouteType.SINGLE_FAMILY,
    "apartments/condos": RouteType.MULTI_FAMILY,
    "multi-family": RouteType.MULTI_FAMILY,
    "businesses": RouteType.COMMERCIAL,
    "commercial": RouteType.COMMERCIAL,
    "mixed": RouteType.MIXED,
}


class RouteRecord(BaseModel):
    """One row of the ``routes`` table with its primary deliverer joined from ``people``."""

    model_config = ConfigDict(extra="ignore")

    id: str
    route_name: str = ""
    leaflet_count: int = 0
    dropoff_location: Optional[str] = None
    distributor: Optional[str] = None
    status: RouteStatus = RouteStatus.OPEN
    route_type: Optional[RouteType] = None
    primary_deliverer_id: Optional[str] = None
    primary_deliverer_email: Optional[str] = None
    deliverer: Optional[PersonRecord] = None

    @field_validator("id", "primary_deliverer_id", mode="before")
    @classmethod
    def _validate_ids(cls, value: Any) -> Any:
        return _coerce_id(value)

    @field_validator("route_name", mode="before")
    @classmethod
    def _validate_route_name(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("leaflet_count", mode="before")
    @classmethod
    def _validate_leaflet_count(cls, value: Any) -> int:
        if value is None or value == "":
            return 0
        try:
            return int(value)
        except (TypeError, ValueError):
            return 0

    @field_validator("status", mode="before")
    @classmethod
    def _validate_status(cls, value: Any) -> RouteStatus:
        if isinstance(value, RouteStatus):
            return value
        try:
            return RouteStatus(str(value).strip())
        except ValueError:
            return RouteStatus.OPEN

    @field_validator("route_type", mode="before")
    @classmethod
    def _validate_route_type(cls, value: Any) -> Optional[RouteType]:
        if value is None or isinstance(value, RouteType):
            return value
        return ROUTE_TYPE_LABELS.get(str(value).strip().lower())

    @field_validator("deliverer", mode="before")
    @classmethod
    def _unwrap_deliverer(cls, value: Any) -> Any:
        if isinstance(value, list):
            return value[0] if value else None
        return value


__all__ = [
    "BusinessRecord",
    "BusinessStatus",
    "MembershipRecord",
    "MembershipStatus",
    "MembershipTier",
    "PersonRecord",
    "RouteRecord",
    "RouteStatus",
    "RouteType",
    "SponsorshipLevel",
    "normalize_email",
]
