"""Tests for environment-driven settings."""

from __future__ import annotations

import pytest

from neighbors_admin import config
from neighbors_admin.config import CONFIG, DEFAULT_TIER_KEYWORDS, reload_config


def test_public_supabase_aliases_are_honoured(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("SUPABASE_URL")
    monkeypatch.delenv("SUPABASE_ANON_KEY")
    monkeypatch.setenv("NEXT_PUBLIC_SUPABASE_URL", "https://public.supabase.co")
    monkeypatch.setenv("NEXT_PUBLIC_SUPABASE_ANON_KEY", "public-anon")

    reload_config()

    assert CONFIG.supabase_url == "https://public.supabase.co"
    assert CONFIG.supabase_anon_key == "public-anon"
    assert config.SUPABASE_URL == "https://public.supabase.co"


def test_blank_webhook_secret_counts_as_missing(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("STRIPE_WEBHOOK_SECRET", "   ")

    reload_config()

    assert CONFIG.stripe_webhook_secret is None


def test_unknown_environment_falls_back_to_prod(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ENV", "staging")
    monkeypatch.delenv("LOG_LEVEL", raising=False)

    reload_config()

    assert CONFIG.environment == "prod"
    assert CONFIG.is_development is False
    assert CONFIG.log_level == "INFO"


def test_invalid_tier_keywords_fall_back_to_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MEMBERSHIP_TIER_KEYWORDS", "household=Household")

    reload_config()

    assert CONFIG.membership_tier_keywords == DEFAULT_TIER_KEYWORDS


def test_excluded_keywords_and_cors_origins_split_on_commas(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MEMBERSHIP_EXCLUDED_TIER_KEYWORDS", "Business, Gift ,")
    monkeypatch.setenv("API_CORS_ORIGINS", "http://localhost:3000,https://admin.example.org")
    monkeypatch.setenv("SUPABASE_PAGE_SIZE", "not-a-number")

    reload_config()

    assert CONFIG.membership_excluded_tier_keywords == ("business", "gift")
    assert CONFIG.api_cors_origins == ("http://localhost:3000", "https://admin.example.org")
    assert CONFIG.supabase_page_size == 1000


def test_load_envs_reads_local_file_first(tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("STRIPE_SECRET_KEY")
    (tmp_path / ".env.local").write_text("STRIPE_SECRET_KEY=sk_from_local\n")
    (tmp_path / ".env").write_text("STRIPE_SECRET_KEY=sk_from_env\nAPI_TITLE=From Dotenv\n")
    monkeypatch.delenv("API_TITLE", raising=False)

    config.load_envs(str(tmp_path))

    assert CONFIG.stripe_secret_key == "sk_from_local"
    assert CONFIG.api_title == "From Dotenv"
