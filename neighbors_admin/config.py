"""Environment-driven runtime settings for the admin backend."""

from __future__ import annotations

import json
import os
from types import SimpleNamespace
from typing import Dict, Optional, Sequence, Tuple


DEFAULT_TIER_KEYWORDS: Dict[str, str] = {
    "household": "Household",
    "family": "Household",
    "individual": "Individual",
    "senior": "Senior",
    "student": "Student",
}

DEFAULT_EXCLUDED_TIER_KEYWORDS: Tuple[str, ...] = ("business", "corporate", "sponsor")


def _env_str(
    name: str,
    default: Optional[str] = None,
    *,
    alias: Optional[str] = None,
    empty_to_none: bool = True,
) -> Optional[str]:
    raw = os.getenv(name)
    if raw is None and alias:
        raw = os.getenv(alias)
    if raw is None:
        return default
    value = raw.strip()
    if not value and empty_to_none:
        return None if default is None else default
    return value if value else default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


def _env_tuple(name: str, default: Sequence[str]) -> Tuple[str, ...]:
    raw = os.getenv(name)
    if not raw:
        return tuple(default)
    items = tuple(part.strip() for part in raw.split(",") if part.strip())
    return items or tuple(default)


def _parse_tier_keywords(raw: Optional[str]) -> Dict[str, str]:
    """Parse ``MEMBERSHIP_TIER_KEYWORDS`` (``{"keyword": "Tier"}``) into a lower-cased map."""

    if not raw:
        return dict(DEFAULT_TIER_KEYWORDS)
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        return dict(DEFAULT_TIER_KEYWORDS)
    if not isinstance(parsed, dict):
        return dict(DEFAULT_TIER_KEYWORDS)

    keywords: Dict[str, str] = {}
    for keyword, tier in parsed.items():
        if isinstance(keyword, str) and isinstance(tier, str) and keyword.strip() and tier.strip():
            keywords[keyword.strip().lower()] = tier.strip()
    return keywords or dict(DEFAULT_TIER_KEYWORDS)


class Settings(SimpleNamespace):
    """Simple attribute container used throughout the codebase."""

CONFIG = Settings()


def _compute_values() -> tuple[dict[str, object], dict[str, object]]:
    # -----------------------------------------------------------------------
    # RUNTIME ENVIRONMENT
    # -----------------------------------------------------------------------
    environment = _env_str("ENV", "prod", empty_to_none=False).lower()
    if environment not in {"dev", "test", "prod"}:
        environment = "prod"
    is_development = environment == "dev"

    # -----------------------------------------------------------------------
    # SUPABASE
    # -----------------------------------------------------------------------
    supabase_url = _env_str("SUPABASE_URL", None, alias="NEXT_PUBLIC_SUPABASE_URL")
    supabase_anon_key = _env_str("SUPABASE_ANON_KEY", None, alias="NEXT_PUBLIC_SUPABASE_ANON_KEY")
    supabase_service_role_key = _env_str("SUPABASE_SERVICE_ROLE_KEY", None)
    supabase_page_size = max(_env_int("SUPABASE_PAGE_SIZE", 1000), 1)

    # -----------------------------------------------------------------------
    # BILLING / STRIPE
    # -----------------------------------------------------------------------
    stripe_secret_key = _env_str("STRIPE_SECRET_KEY", None)
    stripe_webhook_secret = _env_str("STRIPE_WEBHOOK_SECRET", None)
    stripe_webhook_tolerance = _env_int("STRIPE_WEBHOOK_TOLERANCE", 300)
    billing_default_provider = _env_str("BILLING_PROVIDER_DEFAULT", "stripe", empty_to_none=False).lower()

    # -----------------------------------------------------------------------
    # MEMBERSHIP TIER MAPPING
    # -----------------------------------------------------------------------
    raw_tier_keywords = _env_str("MEMBERSHIP_TIER_KEYWORDS", None)
    membership_tier_keywords = _parse_tier_keywords(raw_tier_keywords)
    membership_excluded_tier_keywords = tuple(
        keyword.lower()
        for keyword in _env_tuple("MEMBERSHIP_EXCLUDED_TIER_KEYWORDS", DEFAULT_EXCLUDED_TIER_KEYWORDS)
    )

    # -----------------------------------------------------------------------
    # LOGGING & API
    # -----------------------------------------------------------------------
    log_level = _env_str("LOG_LEVEL", "DEBUG" if is_development else "INFO", empty_to_none=False).upper()
    api_title = _env_str("API_TITLE", "Neighbors Admin API", empty_to_none=False)
    api_version = _env_str("API_VERSION", "1.0.0", empty_to_none=False)
    api_cors_origins = _env_tuple("API_CORS_ORIGINS", ())

    globals_map = {
        "ENVIRONMENT": environment,
        "IS_DEVELOPMENT": is_development,
        "SUPABASE_URL": supabase_url,
        "SUPABASE_ANON_KEY": supabase_anon_key,
        "SUPABASE_SERVICE_ROLE_KEY": supabase_service_role_key,
        "SUPABASE_PAGE_SIZE": supabase_page_size,
        "STRIPE_SECRET_KEY": stripe_secret_key,
        "STRIPE_WEBHOOK_SECRET": stripe_webhook_secret,
        "STRIPE_WEBHOOK_TOLERANCE": stripe_webhook_tolerance,
        "BILLING_PROVIDER_DEFAULT": billing_default_provider,
        "MEMBERSHIP_TIER_KEYWORDS": raw_tier_keywords,
        "MEMBERSHIP_TIER_KEYWORDS_MAP": membership_tier_keywords,
        "MEMBERSHIP_EXCLUDED_TIER_KEYWORDS": membership_excluded_tier_keywords,
        "LOG_LEVEL": log_level,
    }

    config_map = {
        "environment": environment,
        "is_development": is_development,
        "supabase_url": supabase_url,
        "supabase_anon_key": supabase_anon_key,
        "supabase_service_role_key": supabase_service_role_key,
        "supabase_page_size": supabase_page_size,
        "stripe_secret_key": stripe_secret_key,
        "stripe_webhook_secret": stripe_webhook_secret,
        "stripe_webhook_tolerance": stripe_webhook_tolerance,
        "billing_default_provider": billing_default_provider,
        "membership_tier_keywords": membership_tier_keywords,
        "membership_excluded_tier_keywords": membership_excluded_tier_keywords,
        "log_level": log_level,
        "api_title": api_title,
        "api_version": api_version,
        "api_cors_origins": api_cors_origins,
    }

    return globals_map, config_map


def reload_config() -> None:
    globals_map, config_map = _compute_values()
    globals().update(globals_map)
    CONFIG.__dict__.update(config_map)


def load_envs(global_dir: str) -> None:
    """Load environment variables from ``.env.local`` and ``.env`` in ``global_dir``."""
    from dotenv import load_dotenv

    # .env.local wins; load_dotenv never overrides variables that are already set.
    load_dotenv(os.path.join(global_dir, ".env.local"))
    load_dotenv(os.path.join(global_dir, ".env"))

    reload_config()


# Load once on import so downstream modules can use CONFIG immediately.
reload_config()
