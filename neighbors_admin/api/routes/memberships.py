"""Duplicate-membership reports and the on-demand linking pass."""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status
from starlette.concurrency import run_in_threadpool

from ...db import DatabaseClient, PersistenceError
from ...memberships import (
    DuplicateMembership,
    MembershipLinker,
    find_duplicate_memberships,
    linking_status,
    summarize_duplicates,
)
from ...memberships.linking import LinkSummary
from ..dependencies import get_public_database, get_service_database
from ..schemas import (
    DuplicateMembershipResponse,
    DuplicateSummaryResponse,
    LinkingStatusResponse,
    LinkSummaryResponse,
    LinkUpdateResponse,
    TierInfoResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _upstream_error(exc: PersistenceError) -> HTTPException:
    logger.error("Membership query failed: %s", exc)
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc))


def _duplicate_response(duplicate: DuplicateMembership) -> DuplicateMembershipResponse:
    return DuplicateMembershipResponse(
        email=duplicate.email,
        person_name=duplicate.person_name,
        membership_count=duplicate.membership_count,
        tiers=[
            TierInfoResponse(
                tier=info.tier.value if info.tier else None,
                last_renewal=info.last_renewal,
                stripe_subscription_id=info.stripe_subscription_id,
                stripe_customer_id=info.stripe_customer_id,
                membership_id=info.membership_id,
                status=info.status.value if info.status else None,
            )
            for info in duplicate.tiers
        ],
    )


def _link_summary_response(summary: LinkSummary) -> LinkSummaryResponse:
    return LinkSummaryResponse(
        linked=summary.linked,
        updated=summary.updated,
        skipped=summary.skipped,
        unmatched=summary.unmatched,
        dry_run=summary.dry_run,
        errors=list(summary.errors),
        updates=[
            LinkUpdateResponse(
                person_id=update.person_id,
                email=update.email,
                previous_membership_id=update.previous_membership_id,
                membership_id=update.membership_id,
                action=update.action.value,
            )
            for update in summary.updates
        ],
    )


@router.get("/memberships/duplicates", response_model=List[DuplicateMembershipResponse])
def list_duplicate_memberships(
    db: DatabaseClient = Depends(get_public_database),
) -> List[DuplicateMembershipResponse]:
    try:
        memberships = db.list_memberships(with_email_only=True)
        people = db.list_people(with_email_only=True)
    except PersistenceError as exc:
        raise _upstream_error(exc) from exc
    return [_duplicate_response(duplicate) for duplicate in find_duplicate_memberships(memberships, people)]


@router.get("/memberships/duplicates/summary", response_model=DuplicateSummaryResponse)
def duplicate_membership_summary(
    db: DatabaseClient = Depends(get_public_database),
) -> DuplicateSummaryResponse:
    try:
        memberships = db.list_memberships()
    except PersistenceError as exc:
        raise _upstream_error(exc) from exc
    return DuplicateSummaryResponse(**asdict(summarize_duplicates(memberships)))


@router.get("/memberships/linking-status", response_model=LinkingStatusResponse)
def membership_linking_status(
    db: DatabaseClient = Depends(get_public_database),
) -> LinkingStatusResponse:
    try:
        memberships = db.list_memberships()
        people = db.list_people()
    except PersistenceError as exc:
        raise _upstream_error(exc) from exc
    return LinkingStatusResponse(**asdict(linking_status(memberships, people)))


@router.post("/memberships/link", response_model=LinkSummaryResponse)
async def link_memberships(
    dry_run: bool = Query(False, description="Report the planned link changes without writing them"),
    db: DatabaseClient = Depends(get_service_database),
) -> LinkSummaryResponse:
    linker = MembershipLinker(db)
    try:
        summary = await run_in_threadpool(linker.run, dry_run=dry_run)
    except PersistenceError as exc:
        raise _upstream_error(exc) from exc
    return _link_summary_response(summary)
