"""Route verified Stripe events to the membership handlers."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from .errors import MalformedEventError
from .reconciler import MembershipReconciler, ReconcileOutcome

logger = logging.getLogger(__name__)

SUBSCRIPTION_CREATED = "customer.subscription.created"
SUBSCRIPTION_DELETED = "customer.subscription.deleted"


@dataclass
class DispatchResult:
    event_id: Optional[str]
    event_type: str
    handled: bool
    outcome: Optional[ReconcileOutcome] = None


def handles_event_type(event_type: Optional[str]) -> bool:
    return event_type in (SUBSCRIPTION_CREATED, SUBSCRIPTION_DELETED)


def _handlers(reconciler: MembershipReconciler) -> Dict[str, Callable[[Dict[str, Any]], ReconcileOutcome]]:
    return {
        SUBSCRIPTION_CREATED: reconciler.handle_subscription_created,
        SUBSCRIPTION_DELETED: reconciler.handle_subscription_deleted,
    }


def dispatch_event(event: Dict[str, Any], reconciler: MembershipReconciler) -> DispatchResult:
    """Run the handler for ``event['type']``; unrecognized kinds are acknowledged untouched."""

    event_id = event.get("id")
    event_type = event.get("type") or "unknown"

    handler = _handlers(reconciler).get(event_type)
    if handler is None:
        logger.info("Unhandled event type: %s (%s)", event_type, event_id)
        return DispatchResult(event_id=event_id, event_type=event_type, handled=False)

    data = event.get("data") or {}
    subscription = data.get("object") if isinstance(data, dict) else None
    if not isinstance(subscription, dict):
        raise MalformedEventError(f"Event {event_id} ({event_type}) carries no subscription object")

    outcome = handler(subscription)
    logger.info("Handled %s event %s: %s", event_type, event_id, outcome.value)
    return DispatchResult(event_id=event_id, event_type=event_type, handled=True, outcome=outcome)


__all__ = [
    "DispatchResult",
    "SUBSCRIPTION_CREATED",
    "SUBSCRIPTION_DELETED",
    "dispatch_event",
    "handles_event_type",
]
