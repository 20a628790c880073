"""Membership reconciliation: webhook intake, duplicate detection and person linking."""

from .duplicates import (
    DuplicateMembership,
    DuplicateSummary,
    TierInfo,
    find_duplicate_memberships,
    group_memberships_by_email,
    summarize_duplicates,
)
from .errors import MalformedEventError, MembershipError, UpstreamLookupError
from .intake import (
    SUBSCRIPTION_CREATED,
    SUBSCRIPTION_DELETED,
    DispatchResult,
    dispatch_event,
    handles_event_type,
)
from .linking import (
    LinkAction,
    LinkingStatus,
    LinkSummary,
    MembershipLinker,
    decide_link,
    linking_status,
    plan_membership_links,
    select_best_membership,
)
from .reconciler import MembershipReconciler, ReconcileOutcome

__all__ = [
    "DuplicateMembership",
    "DuplicateSummary",
    "TierInfo",
    "find_duplicate_memberships",
    "group_memberships_by_email",
    "summarize_duplicates",
    "MalformedEventError",
    "MembershipError",
    "UpstreamLookupError",
    "SUBSCRIPTION_CREATED",
    "SUBSCRIPTION_DELETED",
    "DispatchResult",
    "dispatch_event",
    "handles_event_type",
    "LinkAction",
    "LinkingStatus",
    "LinkSummary",
    "MembershipLinker",
    "decide_link",
    "linking_status",
    "plan_membership_links",
    "select_best_membership",
    "MembershipReconciler",
    "ReconcileOutcome",
]
