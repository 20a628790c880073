"""
Neighbors admin backend.

This package contains:
- api: FastAPI application, routes and response schemas
- billing: Stripe webhook verification, customer/price lookups, tier mapping
- db: Supabase client handles and typed row models
- memberships: subscription reconciliation, duplicate detection, person linking
"""
