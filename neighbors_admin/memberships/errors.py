"""Errors raised while reconciling billing events into memberships."""

from __future__ import annotations


class MembershipError(RuntimeError):
    """Base class for membership reconciliation failures."""


class UpstreamLookupError(MembershipError):
    """The billing provider could not supply what a new membership needs.

    Raised when the customer is deleted, has no email on file, or the lookup
    itself fails. Without an email the membership can never be linked to a
    person, so the event must fail and be redelivered.
    """


class MalformedEventError(MembershipError):
    """A subscription payload is missing a field the handler requires."""
