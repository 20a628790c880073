"""Group memberships by customer email and report the emails holding more than one.

Every multi-membership email is reported, including people with sequential
memberships (expired, then renewed under a new subscription). Deciding
whether such a group is a real duplicate is left to whoever reads the report.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence

from neighbors_admin.db import MembershipRecord, MembershipStatus, MembershipTier, PersonRecord


@dataclass
class TierInfo:
    """One membership inside a duplicate group."""

    membership_id: str
    tier: Optional[MembershipTier]
    status: Optional[MembershipStatus]
    last_renewal: Optional[date]
    stripe_subscription_id: Optional[str]
    stripe_customer_id: Optional[str]

    @classmethod
    def from_record(cls, membership: MembershipRecord) -> "TierInfo":
        return cls(
            membership_id=membership.id,
            tier=membership.tier,
            status=membership.status,
            last_renewal=membership.last_renewal,
            stripe_subscription_id=membership.stripe_subscription_id,
            stripe_customer_id=membership.stripe_customer_id,
        )


@dataclass
class DuplicateMembership:
    email: str
    person_name: Optional[str]
    membership_count: int
    tiers: List[TierInfo] = field(default_factory=list)


@dataclass
class DuplicateSummary:
    total_memberships: int
    unique_emails: int
    duplicate_emails: int
    memberships_in_duplicates: int
    group_sizes: Dict[str, int]
    emails_with_multiple_active: List[str]


def group_memberships_by_email(
    memberships: Iterable[MembershipRecord],
) -> Dict[str, List[MembershipRecord]]:
    """Bucket memberships by normalized email, skipping those without one."""

    groups: Dict[str, List[MembershipRecord]] = {}
    for membership in memberships:
        email = membership.normalized_email
        if email is None:
            continue
        groups.setdefault(email, []).append(membership)
    return groups


def sort_by_renewal(memberships: Sequence[MembershipRecord]) -> List[MembershipRecord]:
    """Most recent renewal first; undated memberships keep their order at the end."""

    dated = [membership for membership in memberships if membership.last_renewal is not None]
    undated = [membership for membership in memberships if membership.last_renewal is None]
    dated.sort(key=lambda membership: membership.last_renewal, reverse=True)
    return dated + undated


def person_names_by_email(people: Iterable[PersonRecord]) -> Dict[str, str]:
    """First person (in the given order) with a name wins for each normalized email."""

    names: Dict[str, str] = {}
    for person in people:
        email = person.normalized_email
        name = (person.full_name or "").strip()
        if email is None or not name or email in names:
            continue
        names[email] = name
    return names


def find_duplicate_memberships(
    memberships: Iterable[MembershipRecord],
    people: Iterable[PersonRecord] = (),
) -> List[DuplicateMembership]:
    """Emails with more than one membership, largest groups first."""

    names = person_names_by_email(people)
    duplicates: List[DuplicateMembership] = []
    for email, group in group_memberships_by_email(memberships).items():
        if len(group) < 2:
            continue
        duplicates.append(
            DuplicateMembership(
                email=email,
                person_name=names.get(email),
                membership_count=len(group),
                tiers=[TierInfo.from_record(membership) for membership in sort_by_renewal(group)],
            )
        )
    duplicates.sort(key=lambda duplicate: (-duplicate.membership_count, duplicate.email))
    return duplicates


def summarize_duplicates(memberships: Sequence[MembershipRecord]) -> DuplicateSummary:
    groups = group_memberships_by_email(memberships)
    duplicate_groups = {email: group for email, group in groups.items() if len(group) > 1}

    sizes: Counter = Counter()
    for group in duplicate_groups.values():
        sizes["4+" if len(group) >= 4 else str(len(group))] += 1

    multiple_active = sorted(
        email
        for email, group in duplicate_groups.items()
        if sum(1 for membership in group if membership.is_active) > 1
    )

    return DuplicateSummary(
        total_memberships=len(memberships),
        unique_emails=len(groups),
        duplicate_emails=len(duplicate_groups),
        memberships_in_duplicates=sum(len(group) for group in duplicate_groups.values()),
        group_sizes={"2": sizes.get("2", 0), "3": sizes.get("3", 0), "4+": sizes.get("4+", 0)},
        emails_with_multiple_active=multiple_active,
    )


__all__ = [
    "DuplicateMembership",
    "DuplicateSummary",
    "TierInfo",
    "find_duplicate_memberships",
    "group_memberships_by_email",
    "person_names_by_email",
    "sort_by_renewal",
    "summarize_duplicates",
]
