"""Stripe implementation of the billing provider interface."""

from __future__ import annotations

from typing import Any, Dict, Optional

from neighbors_admin.config import CONFIG

from ..stripe_service import (
    BillingCustomer,
    BillingPrice,
    StripeBillingService,
    WebhookSecretNotConfiguredError,
)
from .base import BillingProvider, ProviderNotConfiguredError


class StripeBillingProvider(BillingProvider):
    key = "stripe"

    def __init__(self) -> None:
        self._service: Optional[StripeBillingService] = None

    def is_configured(self) -> bool:
        return bool(getattr(CONFIG, "stripe_secret_key", None))

    def webhook_configured(self) -> bool:
        return bool(getattr(CONFIG, "stripe_webhook_secret", None))

    def _build_service(self) -> StripeBillingService:
        if self._service is None:
            self._service = StripeBillingService(
                getattr(CONFIG, "stripe_secret_key", None),
                webhook_secret=getattr(CONFIG, "stripe_webhook_secret", None),
                tolerance=getattr(CONFIG, "stripe_webhook_tolerance", 300),
            )
        return self._service

    def _ensure_service(self) -> StripeBillingService:
        if not self.is_configured():
            raise ProviderNotConfiguredError("Stripe billing is not configured")
        return self._build_service()

    def parse_event(self, payload: bytes, signature: str) -> Dict[str, Any]:
        if not self.webhook_configured():
            raise WebhookSecretNotConfiguredError("Stripe webhook secret is not configured")
        return self._build_service().parse_event(payload, signature)

    def retrieve_customer(self, customer_id: str) -> BillingCustomer:
        service = self._ensure_service()
        return service.retrieve_customer(customer_id)

    def retrieve_price(self, price_id: str) -> BillingPrice:
        service = self._ensure_service()
        return service.retrieve_price(price_id)


__all__ = [
    "StripeBillingProvider",
    "WebhookSecretNotConfiguredError",
]
