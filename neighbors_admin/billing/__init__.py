"""Billing provider access and tier mapping for membership reconciliation."""

from .stripe_service import (
    BillingCustomer,
    BillingPrice,
    StripeBillingService,
    WebhookSecretNotConfiguredError,
)
from .providers import (
    BillingProvider,
    ProviderNotConfiguredError,
    get_billing_provider,
    reset_billing_providers,
)
from .tiers import TierResolver

__all__ = [
    "BillingCustomer",
    "BillingPrice",
    "StripeBillingService",
    "WebhookSecretNotConfiguredError",
    "BillingProvider",
    "ProviderNotConfiguredError",
    "get_billing_provider",
    "reset_billing_providers",
    "TierResolver",
]
