"""Stripe webhook endpoint feeding membership reconciliation."""

from __future__ import annotations

import logging
from typing import Callable

from fastapi import APIRouter, Depends, HTTPException, Request, status
from starlette.concurrency import run_in_threadpool

from ...billing import BillingProvider, WebhookSecretNotConfiguredError
from ...db import DatabaseClient
from ...memberships import MembershipReconciler, dispatch_event, handles_event_type
from ..dependencies import get_billing, get_service_database_resolver
from ..schemas import WebhookAck

logger = logging.getLogger(__name__)

router = APIRouter()

SIGNATURE_HEADER = "Stripe-Signature"


@router.post("/webhooks/stripe", response_model=WebhookAck, status_code=status.HTTP_200_OK)
async def stripe_webhook(
    request: Request,
    provider: BillingProvider = Depends(get_billing),
    resolve_database: Callable[[], DatabaseClient] = Depends(get_service_database_resolver),
) -> WebhookAck:
    """Verify, decode and apply one Stripe event.

    A 500 makes Stripe redeliver the event, which is the only retry
    mechanism; a 400 is not retried.
    """

    if not provider.webhook_configured():
        logger.error("Missing STRIPE_WEBHOOK_SECRET environment variable")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Webhook secret not configured",
        )

    signature = request.headers.get(SIGNATURE_HEADER)
    if not signature:
        logger.warning("Rejected webhook without %s header", SIGNATURE_HEADER)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing stripe-signature header",
        )

    # The raw body is the signed payload; it is handed over untouched.
    payload = await request.body()
    try:
        event = provider.parse_event(payload, signature)
    except WebhookSecretNotConfiguredError as exc:
        logger.error("Webhook secret disappeared between checks: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Webhook secret not configured",
        ) from exc
    except Exception as exc:
        logger.warning("Webhook signature verification failed: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Webhook signature verification failed: {exc}",
        ) from exc

    event_type = event.get("type")
    if not handles_event_type(event_type):
        logger.info("Unhandled event type: %s (%s)", event_type, event.get("id"))
        return WebhookAck(received=True)

    # Raises a 500 when Supabase is not configured, so Stripe redelivers.
    db = resolve_database()
    reconciler = MembershipReconciler(db, provider)
    try:
        await run_in_threadpool(dispatch_event, event, reconciler)
    except Exception as exc:
        logger.exception(
            "Error processing webhook event %s (type %s)",
            event.get("id"),
            event.get("type"),
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Webhook handling failed: {exc}",
        ) from exc

    return WebhookAck(received=True)
