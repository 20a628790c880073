"""Link each person to the single best membership sharing their email.

The pass is a convergent reconciliation: it only ever moves a person's link
to a better membership, so a second run over unchanged data writes nothing
and it can run alongside webhook intake.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Dict, List, Optional, Sequence

from neighbors_admin.db import DatabaseClient, MembershipRecord, PersistenceError, PersonRecord

from .duplicates import group_memberships_by_email

logger = logging.getLogger(__name__)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


class LinkAction(str, Enum):
    LINK = "link"
    UPGRADE = "upgrade"
    KEEP = "keep"


def _renewal_rank(membership: MembershipRecord) -> tuple:
    # Undated renewals rank below every dated one.
    return (membership.last_renewal is not None, membership.last_renewal or date.min)


def _created_rank(membership: MembershipRecord) -> tuple:
    return (membership.created_at is not None, membership.created_at or _EPOCH)


def select_best_membership(memberships: Sequence[MembershipRecord]) -> Optional[MembershipRecord]:
    """Most recently renewed Active membership, else the most recently created one."""

    if not memberships:
        return None
    active = [membership for membership in memberships if membership.is_active]
    if active:
        return max(active, key=lambda membership: (_renewal_rank(membership), _created_rank(membership)))
    return max(memberships, key=_created_rank)


def _renewed_later(candidate: MembershipRecord, current: MembershipRecord) -> bool:
    return _renewal_rank(candidate) > _renewal_rank(current)


def decide_link(
    current_membership_id: Optional[str],
    current: Optional[MembershipRecord],
    candidate: MembershipRecord,
) -> LinkAction:
    """Never move a person from a better membership to a worse one."""

    if not current_membership_id:
        return LinkAction.LINK
    if current_membership_id == candidate.id:
        return LinkAction.KEEP

    current_active = current is not None and current.is_active
    if not candidate.is_active:
        return LinkAction.KEEP
    if not current_active:
        return LinkAction.UPGRADE
    if _renewed_later(candidate, current):
        return LinkAction.UPGRADE
    return LinkAction.KEEP


@dataclass
class LinkUpdate:
    person_id: str
    email: str
    previous_membership_id: Optional[str]
    membership_id: str
    action: LinkAction


@dataclass
class LinkPlan:
    updates: List[LinkUpdate] = field(default_factory=list)
    already_optimal: int = 0
    unmatched_emails: int = 0


def plan_membership_links(
    memberships: Sequence[MembershipRecord],
    people: Sequence[PersonRecord],
) -> LinkPlan:
    """Work out which people need their membership link set or upgraded."""

    by_id: Dict[str, MembershipRecord] = {membership.id: membership for membership in memberships}
    people_by_email: Dict[str, List[PersonRecord]] = {}
    for person in people:
        email = person.normalized_email
        if email is not None:
            people_by_email.setdefault(email, []).append(person)

    plan = LinkPlan()
    for email, group in group_memberships_by_email(memberships).items():
        matches = people_by_email.get(email)
        if not matches:
            plan.unmatched_emails += 1
            continue

        best = select_best_membership(group)
        if best is None:
            continue

        for person in matches:
            current = by_id.get(person.membership_id) if person.membership_id else None
            action = decide_link(person.membership_id, current, best)
            if action is LinkAction.KEEP:
                plan.already_optimal += 1
                continue
            plan.updates.append(
                LinkUpdate(
                    person_id=person.id,
                    email=email,
                    previous_membership_id=person.membership_id,
                    membership_id=best.id,
                    action=action,
                )
            )
    return plan


@dataclass
class LinkSummary:
    linked: int = 0
    updated: int = 0
    skipped: int = 0
    unmatched: int = 0
    dry_run: bool = False
    errors: List[str] = field(default_factory=list)
    updates: List[LinkUpdate] = field(default_factory=list)

    @property
    def error_count(self) -> int:
        return len(self.errors)


class MembershipLinker:
    """Batch job applying :func:`plan_membership_links` through a privileged client."""

    def __init__(self, db: DatabaseClient):
        self.db = db

    def run(self, *, dry_run: bool = False) -> LinkSummary:
        memberships = self.db.list_memberships()
        people = self.db.list_people(with_email_only=True)
        plan = plan_membership_links(memberships, people)

        summary = LinkSummary(
            skipped=plan.already_optimal,
            unmatched=plan.unmatched_emails,
            dry_run=dry_run,
        )
        logger.info(
            "Linking pass: %s memberships, %s people with email, %s link changes planned",
            len(memberships),
            len(people),
            len(plan.updates),
        )

        for update in plan.updates:
            if not dry_run:
                try:
                    self.db.update_person_membership(update.person_id, update.membership_id)
                except PersistenceError as exc:
                    message = f"Error linking membership for {update.email}: {exc}"
                    logger.error(message)
                    summary.errors.append(message)
                    continue
            if update.action is LinkAction.LINK:
                summary.linked += 1
            else:
                summary.updated += 1
            summary.updates.append(update)
            logger.info(
                "%s %s: %s -> %s",
                "Would link" if dry_run else "Linked",
                update.email,
                update.previous_membership_id,
                update.membership_id,
            )
        return summary


@dataclass
class UnlinkedMembership:
    membership_id: str
    email: Optional[str]
    tier: Optional[str]
    linkable: bool


@dataclass
class LinkingStatus:
    total_memberships: int
    linked: int
    unlinked: int
    unlinked_linkable: int
    unlinked_unmatched: int
    active_linked: int
    unlinked_by_status: Dict[str, int]
    active_unlinked: List[UnlinkedMembership]


def linking_status(
    memberships: Sequence[MembershipRecord],
    people: Sequence[PersonRecord],
) -> LinkingStatus:
    """How many memberships are referenced by a person, and how many could be."""

    linked_ids = {person.membership_id for person in people if person.membership_id}
    person_emails = {person.normalized_email for person in people if person.normalized_email}

    linked = [membership for membership in memberships if membership.id in linked_ids]
    unlinked = [membership for membership in memberships if membership.id not in linked_ids]
    linkable = [membership for membership in unlinked if membership.normalized_email in person_emails]

    by_status: Counter = Counter(
        membership.status.value if membership.status else "unknown" for membership in unlinked
    )
    active_unlinked = [
        UnlinkedMembership(
            membership_id=membership.id,
            email=membership.customer_email,
            tier=membership.tier.value if membership.tier else None,
            linkable=membership.normalized_email in person_emails,
        )
        for membership in unlinked
        if membership.is_active
    ]

    return LinkingStatus(
        total_memberships=len(memberships),
        linked=len(linked),
        unlinked=len(unlinked),
        unlinked_linkable=len(linkable),
        unlinked_unmatched=len(unlinked) - len(linkable),
        active_linked=sum(1 for membership in linked if membership.is_active),
        unlinked_by_status=dict(by_status),
        active_unlinked=active_unlinked,
    )


__all__ = [
    "LinkAction",
    "LinkPlan",
    "LinkSummary",
    "LinkUpdate",
    "LinkingStatus",
    "MembershipLinker",
    "UnlinkedMembership",
    "decide_link",
    "linking_status",
    "plan_membership_links",
    "select_best_membership",
]
