"""Thin wrapper around the Stripe SDK used by the membership webhook."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import stripe


class WebhookSecretNotConfiguredError(RuntimeError):
    """Raised when the webhook signing secret is missing for the environment."""


@dataclass
class BillingCustomer:
    """The parts of a Stripe customer the membership code reads."""

    id: str
    email: Optional[str] = None
    name: Optional[str] = None
    deleted: bool = False


@dataclass
class BillingPrice:
    """The parts of a Stripe price used to derive a membership tier."""

    id: str
    nickname: Optional[str] = None
    product_id: Optional[str] = None
    metadata: Dict[str, str] = field(default_factory=dict)


def _field(obj: Any, key: str) -> Any:
    """Read ``key`` from a Stripe object or a plain dict, ``None`` when absent."""

    if obj is None:
        return None
    try:
        return obj[key]
    except (KeyError, TypeError, AttributeError):
        return None


def _plain_metadata(metadata: Any) -> Dict[str, str]:
    if metadata is None:
        return {}
    try:
        keys = list(metadata.keys())
    except AttributeError:
        return {}
    return {str(key): str(metadata[key]) for key in keys if metadata[key] is not None}


class StripeBillingService:
    """Handles the Stripe interactions required by the membership webhook."""

    def __init__(
        self,
        secret_key: Optional[str],
        *,
        webhook_secret: Optional[str] = None,
        tolerance: int = 300,
    ):
        if secret_key:
            stripe.api_key = secret_key
        self._secret_key = secret_key
        self._webhook_secret = webhook_secret
        self._tolerance = tolerance

    @property
    def webhook_configured(self) -> bool:
        return bool(self._webhook_secret)

    # ------------------------------------------------------------------
    # Webhooks
    # ------------------------------------------------------------------
    def parse_event(self, payload: bytes, signature: str) -> Dict[str, Any]:
        """Verify the signature over the raw body, then decode the event.

        Nothing is read from the payload before the signature checks out.
        """

        if not self._webhook_secret:
            raise WebhookSecretNotConfiguredError("Stripe webhook secret is not configured; cannot verify signatures")
        body = payload.decode("utf-8") if isinstance(payload, (bytes, bytearray)) else payload
        stripe.WebhookSignature.verify_header(body, signature, self._webhook_secret, self._tolerance)
        event = json.loads(body)
        if not isinstance(event, dict):
            raise ValueError("Stripe event payload must be a JSON object")
        return event

    # ------------------------------------------------------------------
    # Customers & prices
    # ------------------------------------------------------------------
    def _require_secret_key(self) -> None:
        if not self._secret_key:
            raise RuntimeError("Stripe secret key is required for API lookups")

    def retrieve_customer(self, customer_id: str) -> BillingCustomer:
        self._require_secret_key()
        customer = stripe.Customer.retrieve(customer_id)
        return BillingCustomer(
            id=_field(customer, "id") or customer_id,
            email=_field(customer, "email"),
            name=_field(customer, "name"),
            deleted=bool(_field(customer, "deleted")),
        )

    def retrieve_price(self, price_id: str) -> BillingPrice:
        self._require_secret_key()
        price = stripe.Price.retrieve(price_id)
        product = _field(price, "product")
        product_id = product if isinstance(product, str) else _field(product, "id")
        return BillingPrice(
            id=_field(price, "id") or price_id,
            nickname=_field(price, "nickname"),
            product_id=product_id,
            metadata=_plain_metadata(_field(price, "metadata")),
        )
