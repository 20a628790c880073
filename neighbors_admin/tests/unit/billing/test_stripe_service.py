"""Tests for the Stripe wrapper and provider registry."""

from __future__ import annotations

import json

import pytest
import stripe

from neighbors_admin.billing import (
    ProviderNotConfiguredError,
    StripeBillingService,
    WebhookSecretNotConfiguredError,
    get_billing_provider,
    reset_billing_providers,
)
from neighbors_admin.billing.providers import StripeBillingProvider
from neighbors_admin.config import reload_config

SECRET = "whsec_unit"


def test_parse_event_verifies_then_decodes(sign_stripe_payload) -> None:
    body = json.dumps({"id": "evt_1", "type": "customer.subscription.deleted", "data": {"object": {"id": "sub_1"}}})
    service = StripeBillingService("sk_test_123", webhook_secret=SECRET)

    event = service.parse_event(body.encode("utf-8"), sign_stripe_payload(body, SECRET))

    assert event["id"] == "evt_1"
    assert event["data"]["object"]["id"] == "sub_1"


def test_parse_event_rejects_tampered_body(sign_stripe_payload) -> None:
    body = json.dumps({"id": "evt_1", "type": "customer.subscription.created"})
    signature = sign_stripe_payload(body, SECRET)
    tampered = body.replace("evt_1", "evt_2")
    service = StripeBillingService("sk_test_123", webhook_secret=SECRET)

    with pytest.raises(stripe.SignatureVerificationError):
        service.parse_event(tampered.encode("utf-8"), signature)


def test_parse_event_rejects_stale_timestamp(sign_stripe_payload) -> None:
    body = json.dumps({"id": "evt_1"})
    signature = sign_stripe_payload(body, SECRET, timestamp=1_000_000)
    service = StripeBillingService("sk_test_123", webhook_secret=SECRET)

    with pytest.raises(stripe.SignatureVerificationError):
        service.parse_event(body.encode("utf-8"), signature)


def test_parse_event_requires_webhook_secret() -> None:
    service = StripeBillingService("sk_test_123")

    with pytest.raises(WebhookSecretNotConfiguredError):
        service.parse_event(b"{}", "t=1,v1=abc")


def test_retrieve_customer_maps_deleted_flag(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        stripe.Customer,
        "retrieve",
        classmethod(lambda cls, customer_id, **kwargs: {"id": customer_id, "deleted": True}),
    )
    service = StripeBillingService("sk_test_123", webhook_secret=SECRET)

    customer = service.retrieve_customer("cus_gone")

    assert customer.id == "cus_gone"
    assert customer.deleted is True
    assert customer.email is None


def test_retrieve_price_flattens_product_and_metadata(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        stripe.Price,
        "retrieve",
        classmethod(
            lambda cls, price_id, **kwargs: {
                "id": price_id,
                "nickname": "Senior Membership",
                "product": {"id": "prod_senior", "name": "Senior"},
                "metadata": {"tier": "Senior"},
            }
        ),
    )
    service = StripeBillingService("sk_test_123", webhook_secret=SECRET)

    price = service.retrieve_price("price_senior")

    assert price.product_id == "prod_senior"
    assert price.nickname == "Senior Membership"
    assert price.metadata == {"tier": "Senior"}


def test_provider_reports_configuration(monkeypatch: pytest.MonkeyPatch) -> None:
    provider = get_billing_provider()
    assert isinstance(provider, StripeBillingProvider)
    assert provider.is_configured() is True
    assert provider.webhook_configured() is True

    monkeypatch.delenv("STRIPE_SECRET_KEY")
    monkeypatch.delenv("STRIPE_WEBHOOK_SECRET")
    reload_config()
    reset_billing_providers()
    provider = get_billing_provider()

    assert provider.is_configured() is False
    assert provider.webhook_configured() is False
    with pytest.raises(ProviderNotConfiguredError):
        provider.retrieve_customer("cus_1")
    with pytest.raises(WebhookSecretNotConfiguredError):
        provider.parse_event(b"{}", "t=1,v1=abc")


def test_unknown_provider_key_is_rejected() -> None:
    with pytest.raises(KeyError):
        get_billing_provider("paypal")
