"""Pydantic schemas for the public API.

Field names serialize in camelCase because the dashboard reads them that way
(``membershipId``, ``lastRenewal``, ``personName`` ...).
"""

from __future__ import annotations

from datetime import date
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class WebhookAck(BaseModel):
    received: bool = True


class PersonResponse(CamelModel):
    id: str
    name: str = ""
    email: str = ""
    address: str = ""
    household_id: Optional[str] = None
    membership_id: Optional[str] = None
    membership_tier: Optional[str] = None
    membership_status: Optional[str] = None
    last_renewal: Optional[date] = None


class TierInfoResponse(CamelModel):
    tier: Optional[str] = None
    last_renewal: Optional[date] = None
    stripe_subscription_id: Optional[str] = None
    stripe_customer_id: Optional[str] = None
    membership_id: Optional[str] = None
    status: Optional[str] = None


class DuplicateMembershipResponse(CamelModel):
    email: str
    person_name: Optional[str] = None
    membership_count: int
    tiers: List[TierInfoResponse] = Field(default_factory=list)


class DuplicateSummaryResponse(CamelModel):
    total_memberships: int
    unique_emails: int
    duplicate_emails: int
    memberships_in_duplicates: int
    group_sizes: Dict[str, int] = Field(default_factory=dict)
    emails_with_multiple_active: List[str] = Field(default_factory=list)


class LinkUpdateResponse(CamelModel):
    person_id: str
    email: str
    previous_membership_id: Optional[str] = None
    membership_id: str
    action: str


class LinkSummaryResponse(CamelModel):
    linked: int = 0
    updated: int = 0
    skipped: int = 0
    unmatched: int = 0
    dry_run: bool = False
    errors: List[str] = Field(default_factory=list)
    updates: List[LinkUpdateResponse] = Field(default_factory=list)


class UnlinkedMembershipResponse(CamelModel):
    membership_id: str
    email: Optional[str] = None
    tier: Optional[str] = None
    linkable: bool = False


class LinkingStatusResponse(CamelModel):
    total_memberships: int
    linked: int
    unlinked: int
    unlinked_linkable: int
    unlinked_unmatched: int
    active_linked: int
    unlinked_by_status: Dict[str, int] = Field(default_factory=dict)
    active_unlinked: List[UnlinkedMembershipResponse] = Field(default_factory=list)


class BusinessResponse(CamelModel):
    id: str
    company_name: str = ""
    contact_name: str = ""
    email: str = ""
    phone: str = ""
    sponsorship_tags: List[str] = Field(default_factory=list)
    linked_events: List[str] = Field(default_factory=list)
    address: str = ""
    notes: str = ""
    status: str


class DelivererResponse(CamelModel):
    id: str
    name: str = ""
    email: str = ""
    address: str = ""


class RouteResponse(CamelModel):
    id: str
    name: str = ""
    leaflets: int = 0
    dropoff_location: str = ""
    distributor: Optional[str] = None
    status: str
    route_type: Optional[str] = None
    primary_deliverer_id: Optional[str] = None
    primary_deliverer_email: Optional[str] = None
    deliverer: Optional[DelivererResponse] = None
