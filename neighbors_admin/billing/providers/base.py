"""Provider abstraction for the billing events the membership code consumes."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict

from ..stripe_service import BillingCustomer, BillingPrice


class ProviderNotConfiguredError(RuntimeError):
    """Raised when a billing provider is missing required configuration."""


class BillingProvider(ABC):
    """Interface for payment providers whose subscription events we reconcile."""

    key: str

    @abstractmethod
    def is_configured(self) -> bool:
        """Return True when the provider has the API secret it needs."""

    @abstractmethod
    def webhook_configured(self) -> bool:
        """Return True when webhook signatures can be verified."""

    @abstractmethod
    def parse_event(self, payload: bytes, signature: str) -> Dict[str, Any]:
        """Validate and decode webhook payloads for the provider."""

    @abstractmethod
    def retrieve_customer(self, customer_id: str) -> BillingCustomer:
        """Fetch the customer record (email, deletion flag) from the provider."""

    @abstractmethod
    def retrieve_price(self, price_id: str) -> BillingPrice:
        """Fetch the price record used to derive a membership tier."""
