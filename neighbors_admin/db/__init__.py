"""
Database module for the admin backend.

This module provides:
- Supabase client handles (privileged and public)
- Typed row models for people, memberships, businesses and routes
- Persistence errors
"""

from .client import (
    DatabaseClient,
    SupabaseDatabaseClient,
    create_database_client,
    create_public_database_client,
    create_service_database_client,
)
from .errors import DatabaseNotConfiguredError, PersistenceError
from .models import (
    BusinessRecord,
    BusinessStatus,
    MembershipRecord,
    MembershipStatus,
    MembershipTier,
    PersonRecord,
    RouteRecord,
    RouteStatus,
    RouteType,
    SponsorshipLevel,
    normalize_email,
)

__all__ = [
    "DatabaseClient",
    "SupabaseDatabaseClient",
    "create_database_client",
    "create_public_database_client",
    "create_service_database_client",
    "DatabaseNotConfiguredError",
    "PersistenceError",
    "BusinessRecord",
    "BusinessStatus",
    "MembershipRecord",
    "MembershipStatus",
    "MembershipTier",
    "PersonRecord",
    "RouteRecord",
    "RouteStatus",
    "RouteType",
    "SponsorshipLevel",
    "normalize_email",
]
